from django.contrib import admin
from .models import GroupTrip, GroupBooking


@admin.register(GroupTrip)
class GroupTripAdmin(admin.ModelAdmin):
    """
    Admin interface for GroupTrip model.
    """
    list_display = ['id', 'date', 'time_slot', 'status', 'price_per_person', 'max_participants', 'captain']
    list_filter = ['status', 'time_slot', 'date']
    search_fields = ['description', 'meeting_point', 'captain__username']
    readonly_fields = ['id', 'created_at', 'updated_at']
    date_hierarchy = 'date'

    fieldsets = (
        ('Basic Information', {
            'fields': ('id', 'captain', 'description', 'created_at', 'updated_at')
        }),
        ('Schedule', {
            'fields': ('date', 'time_slot', 'meeting_point')
        }),
        ('Capacity & Pricing', {
            'fields': ('max_participants', 'min_required', 'price_per_person')
        }),
        ('Fishing', {
            'fields': ('difficulty_rating', 'target_species')
        }),
        ('Status', {
            'fields': ('status',)
        }),
    )

    def get_queryset(self, request):
        """Optimize queryset with select_related"""
        queryset = super().get_queryset(request)
        return queryset.select_related('captain')


@admin.register(GroupBooking)
class GroupBookingAdmin(admin.ModelAdmin):
    """
    Admin interface for GroupBooking model.
    """
    list_display = ['id', 'trip', 'user', 'participants', 'status', 'payment_status', 'created_at']
    list_filter = ['status', 'payment_status', 'created_at']
    search_fields = ['contact_name', 'contact_email', 'user__username']
    readonly_fields = ['id', 'created_at', 'updated_at']

    def get_queryset(self, request):
        """Optimize queryset with select_related"""
        queryset = super().get_queryset(request)
        return queryset.select_related('trip', 'user')
