"""
Configuration management for the APOD widget integration.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import json
import logging
import os
from typing import Any, Dict

from uc_intg_apod.svg import WidgetFamily

_LOG = logging.getLogger(__name__)

MIN_REFRESH_INTERVAL = 15
MAX_REFRESH_INTERVAL = 720

DEFAULT_CONFIG = {
    "api_key": "",
    "refresh_interval": 60,
    "hd_images": False,
    "widget_family": WidgetFamily.MEDIUM.value,
    "device_id": "apod_widget",
    "device_name": "Astronomy Picture of the Day"
}


class Config:
    """Configuration management for the APOD integration."""

    def __init__(self, config_file_path: str):
        """Initialize configuration."""
        self._config_file_path = config_file_path
        self._config: Dict[str, Any] = {}
        self.load()

    @property
    def config_file_path(self) -> str:
        return self._config_file_path

    def load(self) -> None:
        """Load configuration from file, falling back to defaults."""
        try:
            if os.path.exists(self._config_file_path):
                with open(self._config_file_path, "r", encoding="utf-8") as file:
                    data = json.load(file)
                if not isinstance(data, dict):
                    raise ValueError("configuration root must be an object")
                self._config = {**DEFAULT_CONFIG, **data}
                _LOG.info("Configuration loaded from %s", self._config_file_path)
            else:
                _LOG.info("Configuration file not found, using defaults")
                self._config = DEFAULT_CONFIG.copy()
        except (OSError, ValueError) as ex:
            _LOG.error("Failed to load configuration: %s", ex)
            self._config = DEFAULT_CONFIG.copy()

    def save(self) -> None:
        """Save configuration to file."""
        try:
            directory = os.path.dirname(self._config_file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self._config_file_path, "w", encoding="utf-8") as file:
                json.dump(self._config, file, indent=2)
            _LOG.info("Configuration saved to %s", self._config_file_path)
        except OSError as ex:
            _LOG.error("Failed to save configuration: %s", ex)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value."""
        self._config[key] = value

    def update(self, data: Dict[str, Any]) -> None:
        """Update configuration with new data and persist it."""
        self._config.update(data)
        self.save()

    @property
    def api_key(self) -> str:
        """Get NASA API key."""
        return self._config.get("api_key", "")

    @property
    def is_configured(self) -> bool:
        """Setup has stored an API key (DEMO_KEY counts)."""
        return bool(self.api_key)

    @property
    def refresh_interval(self) -> int:
        """Get refresh interval in minutes, clamped to the accepted range."""
        try:
            interval = int(self._config.get("refresh_interval", DEFAULT_CONFIG["refresh_interval"]))
        except (TypeError, ValueError):
            interval = DEFAULT_CONFIG["refresh_interval"]
        return max(MIN_REFRESH_INTERVAL, min(MAX_REFRESH_INTERVAL, interval))

    @property
    def hd_images(self) -> bool:
        """Show high resolution images when published."""
        return bool(self._config.get("hd_images", False))

    @property
    def widget_family(self) -> WidgetFamily:
        """Widget size used for rendered states."""
        try:
            return WidgetFamily(self._config.get("widget_family", DEFAULT_CONFIG["widget_family"]))
        except ValueError:
            _LOG.warning("Unknown widget family %s, using medium", self._config.get("widget_family"))
            return WidgetFamily.MEDIUM

    @property
    def device_id(self) -> str:
        """Get device ID."""
        return self._config.get("device_id", DEFAULT_CONFIG["device_id"])

    @property
    def device_name(self) -> str:
        """Get device name."""
        return self._config.get("device_name", DEFAULT_CONFIG["device_name"])
