"""
Tunables for the collaborative filtering engine.

Defaults live here; deployments override them through
settings.COLLABORATIVE_FILTERING.
"""
from django.conf import settings

DEFAULTS = {
    'BASE_RATING': 1.0,
    'COMPLETED_BONUS': 0.5,
    'GROUP_BONUS': 0.2,
    'SIMILARITY_THRESHOLD': 0.1,
    'MAX_NEIGHBORS': 5,
    'RECOMMENDATIONS_PER_USER': 3,
    'FETCH_PAGE_SIZE': 5,
}


def cf_setting(name: str):
    """Return a tunable, falling back to the built-in default"""
    overrides = getattr(settings, 'COLLABORATIVE_FILTERING', {})
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
