"""
Setup flow for the APOD widget integration with API validation.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import ucapi

from uc_intg_apod.client import DEMO_KEY, APODClient
from uc_intg_apod.config import MAX_REFRESH_INTERVAL, MIN_REFRESH_INTERVAL, Config
from uc_intg_apod.errors import APODRequestError
from uc_intg_apod.svg import WidgetFamily

_LOG = logging.getLogger(__name__)

FAMILY_LABELS = {
    WidgetFamily.SMALL: "Small",
    WidgetFamily.MEDIUM: "Medium",
    WidgetFamily.LARGE: "Large",
}


def _as_bool(value: Any) -> bool:
    """Checkbox values arrive as strings from the remote."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


class APODSetup:
    """APOD integration setup handler."""

    def __init__(self, config: Config, apod_client: APODClient, setup_complete_callback: Optional[Callable[[], Awaitable[None]]]):
        """Initialize setup handler."""
        self._config = config
        self._apod_client = apod_client
        self._setup_complete_callback = setup_complete_callback

    async def setup_handler(self, driver_setup_request: ucapi.SetupDriver) -> ucapi.SetupAction:
        """
        Handle driver setup requests.

        :param driver_setup_request: setup request from the remote
        :return: setup action response
        """
        _LOG.debug("Setup handler called: %s", type(driver_setup_request).__name__)

        if isinstance(driver_setup_request, ucapi.DriverSetupRequest):
            if driver_setup_request.setup_data and "api_key" in driver_setup_request.setup_data:
                return await self._apply_settings(driver_setup_request.setup_data)
            return self._settings_form()
        elif isinstance(driver_setup_request, ucapi.UserDataResponse):
            return await self._apply_settings(driver_setup_request.input_values)
        elif isinstance(driver_setup_request, ucapi.UserConfirmationResponse):
            _LOG.debug("User confirmation: %s", driver_setup_request.confirm)
            if driver_setup_request.confirm:
                return ucapi.SetupComplete()
            return ucapi.SetupError(ucapi.IntegrationSetupError.OTHER)
        elif isinstance(driver_setup_request, ucapi.AbortDriverSetup):
            _LOG.debug("Setup aborted: %s", driver_setup_request.error)
            return ucapi.SetupError(driver_setup_request.error)
        else:
            _LOG.error("Unknown setup request type: %s", type(driver_setup_request))
            return ucapi.SetupError(ucapi.IntegrationSetupError.OTHER)

    def _settings(self, api_key: str, refresh_interval: int, hd_images: bool, family: WidgetFamily) -> List[Dict[str, Any]]:
        return [
            {
                "id": "api_key",
                "label": {"en": "NASA API Key (leave empty to use DEMO_KEY with 30 req/hour limit)"},
                "field": {"text": {"value": api_key if api_key != DEMO_KEY else "", "placeholder": "Get free key at api.nasa.gov"}},
            },
            {
                "id": "refresh_interval",
                "label": {"en": "Refresh interval (minutes)"},
                "field": {"number": {"value": refresh_interval, "min": MIN_REFRESH_INTERVAL, "max": MAX_REFRESH_INTERVAL, "steps": 15}},
            },
            {
                "id": "hd_images",
                "label": {"en": "Use high resolution images"},
                "field": {"checkbox": {"value": hd_images}},
            },
            {
                "id": "widget_family",
                "label": {"en": "Widget size"},
                "field": {"dropdown": {
                    "value": family.value,
                    "items": [{"id": item.value, "label": {"en": label}} for item, label in FAMILY_LABELS.items()],
                }},
            },
        ]

    def _settings_form(self) -> ucapi.RequestUserInput:
        """Initial setup form with the stored settings."""
        return ucapi.RequestUserInput(
            title="Astronomy Picture of the Day",
            settings=self._settings(
                self._config.api_key,
                self._config.refresh_interval,
                self._config.hd_images,
                self._config.widget_family,
            )
        )

    async def _apply_settings(self, values: Dict[str, Any]) -> ucapi.SetupAction:
        """Validate and store settings, then test the APOD API."""
        _LOG.debug("Received user data: %s", list(values.keys()))

        try:
            api_key = str(values.get("api_key", "")).strip() or DEMO_KEY
            refresh_interval = int(values.get("refresh_interval", self._config.refresh_interval))
            hd_images = _as_bool(values.get("hd_images", False))
            family = WidgetFamily(values.get("widget_family", WidgetFamily.MEDIUM.value))
            force_setup = _as_bool(values.get("force_setup", False))
        except (TypeError, ValueError) as ex:
            _LOG.error("Invalid setup data: %s", ex)
            return ucapi.SetupError(ucapi.IntegrationSetupError.OTHER)

        if not MIN_REFRESH_INTERVAL <= refresh_interval <= MAX_REFRESH_INTERVAL:
            return ucapi.SetupError(ucapi.IntegrationSetupError.OTHER)

        # Save configuration before testing so a forced setup keeps it.
        self._config.update({
            "api_key": api_key,
            "refresh_interval": refresh_interval,
            "hd_images": hd_images,
            "widget_family": family.value,
        })

        if force_setup:
            _LOG.info("Setup forced by user - bypassing API validation")
            return await self._complete()

        test_result = await self._test_apod_api_connection()
        if test_result["success"]:
            _LOG.info("Setup validation passed")
            return await self._complete()

        _LOG.warning("API validation failed, offering bypass option")
        settings = self._settings(api_key, refresh_interval, hd_images, family)
        settings[0]["label"] = {"en": f"{test_result['error']}\n\nTry a different API key or force setup:"}
        settings.append({
            "id": "force_setup",
            "label": {"en": "Force setup completion (the widget stays blank until the API answers)"},
            "field": {"checkbox": {"value": False}},
        })
        return ucapi.RequestUserInput(title="NASA API Connection Issue", settings=settings)

    async def _complete(self) -> ucapi.SetupAction:
        if self._setup_complete_callback:
            await self._setup_complete_callback()
        return ucapi.SetupComplete()

    async def _test_apod_api_connection(self) -> Dict[str, Any]:
        """Fetch today's picture from the service, retrying once, and classify a failure."""
        _LOG.info("Testing APOD API connection...")

        entry = None
        for attempt in range(2):
            _LOG.debug("Testing APOD API (attempt %d/2)", attempt + 1)
            entry = await self._apod_client.fetch_entry(use_cache=False)
            if entry.is_success:
                _LOG.info("APOD API test passed: %s", (entry.photo.title or "")[:40])
                return {"success": True, "error": None}
            if attempt == 0:
                await asyncio.sleep(0.5)

        error = entry.error if entry is not None else None
        if isinstance(error, APODRequestError) and error.status in (401, 403):
            error_msg = "NASA API key is invalid"
        elif isinstance(error, APODRequestError) and error.status == 429:
            error_msg = "NASA API rate limit reached"
        elif isinstance(error, APODRequestError) and error.status is None:
            error_msg = "Network connectivity issue - check internet connection"
        else:
            error_msg = "APOD service returned an unexpected answer"

        _LOG.warning("APOD API test failed: %s", error)
        return {"success": False, "error": error_msg}
