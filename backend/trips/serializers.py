"""
Serializers for the trips module.
"""
from rest_framework import serializers
from trips.models import GroupBooking


class BookingRecordSerializer(serializers.Serializer):
    """
    Validates a booking row before it enters the recommendation engine.
    Only the fields the engine depends on are checked.
    """
    id = serializers.CharField()
    user_id = serializers.CharField()
    trip_id = serializers.CharField()
    participants = serializers.IntegerField(min_value=1)
    status = serializers.ChoiceField(choices=GroupBooking.Status.choices)
