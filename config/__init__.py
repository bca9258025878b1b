"""Engine configuration utilities."""

from .settings import DEFAULT_BILLING_DAY, DEFAULT_FALLBACK_FX_RATE, Settings, get_settings

__all__ = [
    "DEFAULT_BILLING_DAY",
    "DEFAULT_FALLBACK_FX_RATE",
    "Settings",
    "get_settings",
]
