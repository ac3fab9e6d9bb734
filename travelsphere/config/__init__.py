"""Runtime configuration helpers."""

from travelsphere.config.settings import (
    BookingSettings,
    ProviderSnapshot,
    load_settings,
    resolve_provider_snapshot,
)

__all__ = [
    "BookingSettings",
    "ProviderSnapshot",
    "load_settings",
    "resolve_provider_snapshot",
]
