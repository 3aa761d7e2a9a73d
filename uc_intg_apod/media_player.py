"""
APOD widget media player entity.

The remote's media player card is the widget surface: the rendered entry is
pushed as image, title (caption), artist (copyright) and album (date).

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import asyncio
import datetime
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import ucapi
from ucapi import StatusCodes

from uc_intg_apod.client import APODClient
from uc_intg_apod.config import Config
from uc_intg_apod.dates import FIRST_APOD_DATE, format_ymd
from uc_intg_apod.models import Entry
from uc_intg_apod.svg import WidgetFamily, render_data_url
from uc_intg_apod.view import Empty, ErrorPlaceholder, PhotoView, Spinner, render_entry

_LOG = logging.getLogger(__name__)

CommandHandler = Callable[[ucapi.Entity, str, dict[str, Any] | None], Awaitable[StatusCodes]]

SUPPRESS_MEDIA_COMMANDS = [
    ucapi.media_player.Commands.PLAY_PAUSE,
    ucapi.media_player.Commands.SHUFFLE,
    ucapi.media_player.Commands.REPEAT,
    ucapi.media_player.Commands.STOP,
    ucapi.media_player.Commands.FAST_FORWARD,
    ucapi.media_player.Commands.REWIND,
    ucapi.media_player.Commands.SEEK,
    ucapi.media_player.Commands.MUTE_TOGGLE,
    ucapi.media_player.Commands.MUTE,
    ucapi.media_player.Commands.UNMUTE,
    ucapi.media_player.Commands.VOLUME,
    ucapi.media_player.Commands.VOLUME_UP,
    ucapi.media_player.Commands.VOLUME_DOWN
]


def entry_attributes(
    entry: Entry,
    family: WidgetFamily = WidgetFamily.MEDIUM,
    prefer_hd: bool = False,
) -> Dict[Any, Any]:
    """
    Media player attributes showing a rendered entry.

    :param entry: entry to show
    :param family: widget size for drawn states
    :param prefer_hd: show the high resolution image when available
    """
    view = render_entry(entry, prefer_hd=prefer_hd)

    attributes = {
        ucapi.media_player.Attributes.MEDIA_TITLE: "",
        ucapi.media_player.Attributes.MEDIA_ARTIST: "",
        ucapi.media_player.Attributes.MEDIA_ALBUM: "",
    }

    if isinstance(view, PhotoView):
        attributes.update({
            ucapi.media_player.Attributes.STATE: ucapi.media_player.States.PLAYING,
            ucapi.media_player.Attributes.MEDIA_IMAGE_URL: view.image,
            ucapi.media_player.Attributes.MEDIA_TITLE: view.caption.text if view.caption else "",
            ucapi.media_player.Attributes.MEDIA_ARTIST: view.copyright.text if view.copyright else "",
            ucapi.media_player.Attributes.MEDIA_ALBUM: view.date_label.text,
        })
    elif isinstance(view, ErrorPlaceholder):
        attributes.update({
            ucapi.media_player.Attributes.STATE: ucapi.media_player.States.PLAYING,
            ucapi.media_player.Attributes.MEDIA_IMAGE_URL: render_data_url(view, family),
            ucapi.media_player.Attributes.MEDIA_TITLE: view.message.text,
        })
    elif isinstance(view, Spinner):
        attributes.update({
            ucapi.media_player.Attributes.STATE: ucapi.media_player.States.BUFFERING,
            ucapi.media_player.Attributes.MEDIA_IMAGE_URL: render_data_url(view, family),
        })
    else:
        attributes.update({
            ucapi.media_player.Attributes.STATE: ucapi.media_player.States.ON,
            ucapi.media_player.Attributes.MEDIA_IMAGE_URL: render_data_url(Empty(), family),
        })

    return attributes


class APODWidget(ucapi.MediaPlayer):
    """Astronomy Picture of the Day widget entity."""

    def __init__(
        self,
        config: Config,
        apod_client: APODClient,
        api: Optional[ucapi.IntegrationAPI] = None,
        cmd_handler: CommandHandler | None = None,
    ):
        """Initialize the APOD widget entity."""
        self._config = config
        self._apod_client = apod_client
        self._api = api
        self._entry = Entry.not_loading()
        self._date: Optional[datetime.date] = None
        self._powered = True
        self._refresh_task: Optional[asyncio.Task] = None
        self._fetch_task: Optional[asyncio.Task] = None

        features = [
            ucapi.media_player.Features.ON_OFF,
            ucapi.media_player.Features.NEXT,
            ucapi.media_player.Features.PREVIOUS,
            ucapi.media_player.Features.MEDIA_IMAGE_URL,
            ucapi.media_player.Features.MEDIA_TITLE,
            ucapi.media_player.Features.MEDIA_ARTIST,
            ucapi.media_player.Features.MEDIA_ALBUM,
        ]

        attributes = entry_attributes(self._entry, config.widget_family)

        super().__init__(
            identifier=config.device_id,
            name=config.device_name,
            features=features,
            attributes=attributes,
            device_class=ucapi.media_player.DeviceClasses.STREAMING_BOX,
            cmd_handler=cmd_handler or self._handle_command,
        )

        _LOG.info("APOD widget entity initialized")

    @property
    def entry(self) -> Entry:
        """Entry currently shown."""
        return self._entry

    @property
    def date(self) -> Optional[datetime.date]:
        """Day shown, None for today."""
        return self._date

    def attach(self, api: ucapi.IntegrationAPI) -> None:
        """Attach the integration API used to push attribute updates."""
        self._api = api

    async def _handle_command(self, entity: ucapi.Entity, cmd_id: str, params: dict[str, Any] | None = None) -> StatusCodes:
        """Handle media player commands."""
        _LOG.debug("COMMAND: %s", cmd_id)

        try:
            if cmd_id == ucapi.media_player.Commands.ON:
                return await self._cmd_on()
            elif cmd_id == ucapi.media_player.Commands.OFF:
                return await self._cmd_off()
            elif cmd_id == ucapi.media_player.Commands.NEXT:
                return await self._cmd_next_day()
            elif cmd_id == ucapi.media_player.Commands.PREVIOUS:
                return await self._cmd_previous_day()
            elif cmd_id in SUPPRESS_MEDIA_COMMANDS:
                _LOG.debug("Ignoring command '%s'", cmd_id)
                return StatusCodes.OK
            else:
                _LOG.warning("Unexpected command: %s", cmd_id)
                return StatusCodes.NOT_IMPLEMENTED

        except Exception as ex:
            _LOG.error("Error handling command %s: %s", cmd_id, ex, exc_info=True)
            return StatusCodes.SERVER_ERROR

    async def _cmd_on(self) -> StatusCodes:
        """Turn on and resume refreshing."""
        self._powered = True
        self.attributes.update(entry_attributes(self._entry, self._config.widget_family, self._config.hd_images))
        await self._push_update_force()
        self.start_refresh()
        return StatusCodes.OK

    async def _cmd_off(self) -> StatusCodes:
        """Turn off and stop refreshing."""
        self._powered = False
        await self._stop_all_updates()
        self.attributes[ucapi.media_player.Attributes.STATE] = ucapi.media_player.States.OFF
        await self._push_update_force()
        return StatusCodes.OK

    async def _cmd_next_day(self) -> StatusCodes:
        """Show the following day, up to today."""
        if self._date is None:
            _LOG.debug("Already showing today's picture")
            return StatusCodes.OK

        next_date = self._date + datetime.timedelta(days=1)
        await self.show_date(None if next_date >= datetime.date.today() else next_date)
        return StatusCodes.OK

    async def _cmd_previous_day(self) -> StatusCodes:
        """Show the preceding day, back to the first APOD."""
        current = self._date or datetime.date.today()
        previous_date = current - datetime.timedelta(days=1)
        if previous_date < FIRST_APOD_DATE:
            _LOG.debug("No APOD before %s", format_ymd(FIRST_APOD_DATE))
            return StatusCodes.OK

        await self.show_date(previous_date)
        return StatusCodes.OK

    async def show_date(self, date: Optional[datetime.date]) -> None:
        """Switch to another day: show the spinner, then fetch in the background."""
        self._date = date
        _LOG.info("SWITCHING TO: %s", format_ymd(date) if date else "today")

        await self.set_entry(Entry.loading())

        if self._fetch_task and not self._fetch_task.done():
            self._fetch_task.cancel()
        self._fetch_task = asyncio.create_task(self.refresh())

    async def set_entry(self, entry: Entry) -> None:
        """Show an entry and push it to the remote."""
        self._entry = entry
        if not self._powered:
            return
        self.attributes.update(entry_attributes(entry, self._config.widget_family, self._config.hd_images))
        await self._push_update_force()

    async def refresh(self) -> None:
        """Fetch the current day and show the result."""
        date = self._date
        entry = await self._apod_client.fetch_entry(date)

        if date != self._date:
            _LOG.debug("Discarding stale result for %s", date)
            return
        if entry.is_failure and self._entry.is_success:
            # Keep showing the last good picture on a failed refresh of the same day.
            _LOG.info("Refresh failed, keeping %s", self._entry.photo.date)
            return

        await self.set_entry(entry)

    async def _refresh_loop(self) -> None:
        """Re-fetch every refresh interval."""
        while True:
            try:
                await self.refresh()
            except asyncio.CancelledError:
                raise
            except Exception as ex:
                _LOG.error("Refresh error: %s", ex, exc_info=True)
            await asyncio.sleep(self._config.refresh_interval * 60)

    def start_refresh(self) -> None:
        """Start the periodic refresh task unless it is already running."""
        if self._refresh_task and not self._refresh_task.done():
            return
        self._refresh_task = asyncio.create_task(self._refresh_loop())

    async def _push_update(self) -> None:
        """Push state update to the remote."""
        try:
            if self._api and self._api.configured_entities.contains(self.id):
                self._api.configured_entities.update_attributes(self.id, self.attributes)
        except Exception as ex:
            _LOG.error("Error pushing update: %s", ex)

    async def _push_update_force(self) -> None:
        """Force push state update."""
        _LOG.info("UPDATE: %s -> %s",
                  self.attributes[ucapi.media_player.Attributes.STATE],
                  self.attributes[ucapi.media_player.Attributes.MEDIA_TITLE])
        await self._push_update()

    async def push_initial_state(self) -> None:
        """Push initial state and start refreshing."""
        _LOG.debug("Pushing initial state to remote")
        await self._push_update()
        if self._powered:
            if not self._entry.is_success:
                await self.set_entry(Entry.loading())
            self.start_refresh()

    async def reload(self) -> None:
        """Apply changed settings to the shown entry and restart refreshing when subscribed."""
        await self._stop_all_updates()
        if self._powered:
            self.attributes.update(entry_attributes(self._entry, self._config.widget_family, self._config.hd_images))
        if self._api and self._api.configured_entities.contains(self.id):
            await self.push_initial_state()

    async def _stop_all_updates(self) -> None:
        """Stop all running update tasks."""
        for task in (self._fetch_task, self._refresh_task):
            if task and not task.done():
                task.cancel()
        self._fetch_task = None
        self._refresh_task = None

    async def shutdown(self) -> None:
        """Shutdown the widget and cleanup."""
        _LOG.debug("Shutting down APOD widget")
        await self._stop_all_updates()
