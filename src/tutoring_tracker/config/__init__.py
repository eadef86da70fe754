from .settings import Settings, refresh_settings_from_store, user_settings_store
from .user_settings_store import UserSettingsStore

__all__ = ["Settings", "UserSettingsStore", "refresh_settings_from_store", "user_settings_store"]
