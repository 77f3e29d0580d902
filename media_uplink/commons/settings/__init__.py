"""Settings management module."""

from media_uplink.commons.settings.loader import (
    SettingsLoader,
    get_settings,
    reset_settings,
)
from media_uplink.commons.settings.models import (
    AppSettings,
    BackoffSettings,
    BlobStorageSettings,
    BucketSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    QueueSettings,
    Settings,
    TelemetrySettings,
    UploadSettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    # Storage
    "BlobStorageSettings",
    "BucketSettings",
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    # Pipeline
    "UploadSettings",
    "QueueSettings",
    "BackoffSettings",
    # Telemetry
    "TelemetrySettings",
]
