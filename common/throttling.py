"""Scoped throttling that reads rates from settings at request time.

DRF caches ``DEFAULT_THROTTLE_RATES`` on import; looking the rate up on
every request lets tests using ``settings`` overrides affect rates.
"""

from django.conf import settings
from rest_framework.throttling import ScopedRateThrottle


class SettingsScopedRateThrottle(ScopedRateThrottle):
    def get_rate(self):
        rf = getattr(settings, "REST_FRAMEWORK", {})
        rates = rf.get("DEFAULT_THROTTLE_RATES", {})
        return rates.get(self.scope)
