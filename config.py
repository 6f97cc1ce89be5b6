"""
Environment-driven settings for Fitness Sync.

Values come from the process environment, optionally seeded from a ``.env``
file in the working directory.
"""
import os
import warnings
from typing import Dict, Optional

import pytz
from dotenv import load_dotenv

load_dotenv()


class ConfigError(Exception):
    """Raised when the environment cannot produce a usable configuration."""
    pass


class Config:
    """Validated settings for the sync client, store and logging."""

    REQUIRED_VARS = {
        'FITNESS_API_BASE_URL': 'Base URL of the fitness tracker web API',
    }

    # Credentials may also come from the standard Google variable
    CREDENTIAL_VARS = ('GCS_CREDENTIALS_PATH', 'GOOGLE_APPLICATION_CREDENTIALS')

    DEFAULTS = {
        'TIMEZONE': 'UTC',
        'CACHE_DIR': '.cache',
        'LOG_LEVEL': 'INFO',
        'HEALTH_EXPORT_PATH': 'data/health_export.json',
        'API_TIMEOUT': '30',
        'MAX_RETRIES': '3',
        'SYNC_LOOKBACK_DAYS': '7',
    }

    def __init__(self):
        self._settings: Dict[str, Optional[str]] = {}
        self._load_required()
        self._load_defaults()
        self._load_credentials_path()
        self._check_timezone()

    def _load_required(self) -> None:
        missing = [
            f"{name} ({description})"
            for name, description in self.REQUIRED_VARS.items()
            if not os.getenv(name)
        ]
        if missing:
            raise ConfigError(
                "Missing required environment variables:\n"
                + "\n".join(f"  - {entry}" for entry in missing)
                + "\n\nSet them in the environment or in a .env file."
            )

        for name in self.REQUIRED_VARS:
            self._settings[name] = os.getenv(name)

    def _load_defaults(self) -> None:
        for name, default in self.DEFAULTS.items():
            self._settings[name] = os.getenv(name) or default

    def _load_credentials_path(self) -> None:
        path = next((os.getenv(name) for name in self.CREDENTIAL_VARS if os.getenv(name)), None)

        # Cloud logging is optional; an unreadable path only disables it
        if path and not os.path.exists(path):
            warnings.warn(
                f"Google Cloud credentials file not found: {path}. Cloud logging will be disabled."
            )
            path = None

        self._settings['GCS_CREDENTIALS_PATH'] = path

    def _check_timezone(self) -> None:
        try:
            pytz.timezone(self._settings['TIMEZONE'])
        except pytz.UnknownTimeZoneError:
            raise ConfigError(f"Unknown TIMEZONE: {self._settings['TIMEZONE']}")

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Look up a setting, falling back to the raw environment."""
        if key in self._settings:
            return self._settings[key]
        return os.getenv(key, default)

    def get_int(self, key: str, default: int = 0) -> int:
        """Look up an integer setting; unparseable values yield the default."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        if value is None:
            return default
        return value.strip().lower() in ('true', '1', 'yes', 'on')

    @property
    def api_base_url(self) -> str:
        return self._settings['FITNESS_API_BASE_URL'].rstrip('/')

    @property
    def gcs_credentials_path(self) -> Optional[str]:
        return self._settings['GCS_CREDENTIALS_PATH']

    @property
    def timezone(self) -> str:
        return self._settings['TIMEZONE']

    @property
    def cache_dir(self) -> str:
        return self._settings['CACHE_DIR']

    @property
    def log_level(self) -> str:
        return self._settings['LOG_LEVEL']

    @property
    def health_export_path(self) -> str:
        return self._settings['HEALTH_EXPORT_PATH']

    @property
    def api_timeout(self) -> int:
        return self.get_int('API_TIMEOUT', 30)

    @property
    def max_retries(self) -> int:
        return self.get_int('MAX_RETRIES', 3)

    @property
    def sync_lookback_days(self) -> int:
        return self.get_int('SYNC_LOOKBACK_DAYS', 7)


_config_instance: Optional[Config] = None


def get_config() -> Config:
    """Return the process-wide Config, creating it on first use."""
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance
