from .loader import SETTINGS_ENV, load_settings, settings_path_from_env
from .models import (
    BindingSettings,
    CatalogSettings,
    ObservabilitySettings,
    PathsSettings,
    ServerSettings,
    Settings,
)

__all__ = [
    "load_settings",
    "settings_path_from_env",
    "SETTINGS_ENV",
    "Settings",
    "ServerSettings",
    "BindingSettings",
    "CatalogSettings",
    "PathsSettings",
    "ObservabilitySettings",
]
