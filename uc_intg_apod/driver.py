#!/usr/bin/env python3
"""
APOD widget integration driver.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""
import asyncio
import logging
import os
import signal
from typing import Optional

import ucapi

from uc_intg_apod.client import APODClient
from uc_intg_apod.config import Config
from uc_intg_apod.media_player import APODWidget
from uc_intg_apod.setup import APODSetup

logging.basicConfig(
    level=os.getenv("UC_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)8s | %(name)s | %(message)s"
)
logging.getLogger("aiohttp").setLevel(logging.WARNING)

_LOG = logging.getLogger(__name__)

loop: Optional[asyncio.AbstractEventLoop] = None
api: Optional[ucapi.IntegrationAPI] = None
apod_client: Optional[APODClient] = None
apod_config: Optional[Config] = None
widget: Optional[APODWidget] = None


async def on_setup_complete():
    """Callback executed when driver setup is complete."""
    global widget
    _LOG.info("Setup complete. Creating entities...")

    if not api or not apod_client:
        _LOG.error("Cannot create entities: API or client not initialized.")
        return

    try:
        if not apod_config.is_configured:
            _LOG.error("APOD client is not configured after setup")
            await api.set_device_state(ucapi.DeviceStates.ERROR)
            return

        if widget:
            # Reconfigure: the remote keeps the subscribed instance, so update it in place.
            _LOG.info("Reloading media player entity: %s", widget.id)
            widget.attach(api)
            await widget.reload()
        else:
            widget = APODWidget(apod_config, apod_client, api)
            api.available_entities.add(widget)
            _LOG.info("Added media player entity: %s", widget.id)

        await api.set_device_state(ucapi.DeviceStates.CONNECTED)

    except Exception as e:
        _LOG.error("Error creating entities: %s", e, exc_info=True)
        await api.set_device_state(ucapi.DeviceStates.ERROR)


async def on_r2_connect():
    """Handle Remote connection."""
    _LOG.info("Remote connected.")

    if api and apod_config and apod_config.is_configured:
        await api.set_device_state(ucapi.DeviceStates.CONNECTED)
    else:
        _LOG.info("Integration not configured yet.")


async def on_disconnect():
    """Handle Remote disconnection."""
    _LOG.info("Remote disconnected.")

    if widget:
        await widget.shutdown()


async def on_subscribe_entities(entity_ids: list[str]):
    """Handle entity subscription."""
    _LOG.info("Entities subscribed: %s", entity_ids)

    for entity_id in entity_ids:
        if widget and entity_id == widget.id:
            try:
                widget.attach(api)
                await widget.push_initial_state()
                _LOG.info("APOD widget fully initialized and ready")
            except Exception as ex:
                _LOG.error("Error initializing widget: %s", ex, exc_info=True)


async def on_unsubscribe_entities(entity_ids: list[str]):
    """Handle entity unsubscription from Remote."""
    _LOG.info("Remote unsubscribed from entities: %s", entity_ids)

    for entity_id in entity_ids:
        if widget and entity_id == widget.id:
            _LOG.info("Widget entity unsubscribed - stopping refresh")
            await widget.shutdown()


def _driver_json_path() -> str:
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    for candidate in (os.path.join(project_root, "driver.json"), "driver.json"):
        if os.path.exists(candidate):
            return candidate
    raise FileNotFoundError("driver.json not found")


async def init_integration():
    """Initialize the integration objects and API."""
    global api, apod_client, apod_config

    driver_json_path = _driver_json_path()
    _LOG.info("Using driver.json from: %s", driver_json_path)

    api = ucapi.IntegrationAPI(loop)

    config_path = os.path.join(api.config_dir_path, "config.json")
    _LOG.info("Using config file: %s", config_path)
    apod_config = Config(config_path)

    apod_client = APODClient(apod_config)

    setup_handler = APODSetup(apod_config, apod_client, on_setup_complete)

    await api.init(driver_json_path, setup_handler.setup_handler)

    api.add_listener(ucapi.Events.CONNECT, on_r2_connect)
    api.add_listener(ucapi.Events.DISCONNECT, on_disconnect)
    api.add_listener(ucapi.Events.SUBSCRIBE_ENTITIES, on_subscribe_entities)
    api.add_listener(ucapi.Events.UNSUBSCRIBE_ENTITIES, on_unsubscribe_entities)

    _LOG.info("Integration API initialized successfully")


async def main():
    """Main entry point."""
    _LOG.info("Starting APOD Widget Integration Driver")

    try:
        await init_integration()

        if apod_config and apod_config.is_configured:
            _LOG.info("Integration is already configured")
            await on_setup_complete()
        else:
            _LOG.warning("Integration is not configured. Waiting for setup...")

    except Exception as e:
        _LOG.error("Failed to start integration: %s", e, exc_info=True)
        if api:
            await api.set_device_state(ucapi.DeviceStates.ERROR)
        raise


def shutdown_handler(signum, frame):
    """Handle termination signals for graceful shutdown."""
    _LOG.warning("Received signal %s. Shutting down...", signum)

    async def cleanup():
        try:
            if widget:
                await widget.shutdown()

            if apod_client:
                await apod_client.close()

            tasks = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
            for task in tasks:
                task.cancel()

            await asyncio.gather(*tasks, return_exceptions=True)

        except Exception as e:
            _LOG.error("Error during cleanup: %s", e)
        finally:
            _LOG.info("Stopping event loop...")
            loop.stop()

    loop.create_task(cleanup())


def run():
    """Run the driver until stopped."""
    global loop
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    signal.signal(signal.SIGINT, shutdown_handler)
    signal.signal(signal.SIGTERM, shutdown_handler)

    try:
        loop.run_until_complete(main())
        loop.run_forever()
    except (KeyboardInterrupt, asyncio.CancelledError):
        _LOG.info("Driver stopped.")
    finally:
        if not loop.is_closed():
            loop.close()


if __name__ == "__main__":
    run()
