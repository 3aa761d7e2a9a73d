"""Tests for the APOD widget entity."""

import asyncio
import datetime

import ucapi
from ucapi import StatusCodes
from ucapi.media_player import Attributes, Commands, States

from uc_intg_apod.dates import FIRST_APOD_DATE
from uc_intg_apod.errors import APODRequestError
from uc_intg_apod.media_player import APODWidget, entry_attributes
from uc_intg_apod.models import Entry, PhotoOfDay
from uc_intg_apod.previews import sample_photo


class FakeAPODClient:
    def __init__(self, entry: Entry) -> None:
        self.entry = entry
        self.dates: list = []

    async def fetch_entry(self, date=None, use_cache=True) -> Entry:
        self.dates.append(date)
        return self.entry


class FakeEntities:
    def __init__(self) -> None:
        self.updates: list = []

    def contains(self, entity_id) -> bool:
        return True

    def update_attributes(self, entity_id, attributes) -> None:
        self.updates.append((entity_id, dict(attributes)))


class FakeAPI:
    def __init__(self) -> None:
        self.configured_entities = FakeEntities()

    def pushed_states(self) -> list:
        return [attributes[Attributes.STATE] for _, attributes in self.configured_entities.updates]


def _run_command(widget: APODWidget, cmd_id: str) -> StatusCodes:
    async def run():
        status = await widget._handle_command(widget, cmd_id)
        if widget._fetch_task:
            await widget._fetch_task
        return status

    return asyncio.run(run())


def test_photo_attributes() -> None:
    attributes = entry_attributes(Entry.of(sample_photo()))

    assert attributes[Attributes.STATE] == States.PLAYING
    assert attributes[Attributes.MEDIA_IMAGE_URL] == sample_photo().url
    assert attributes[Attributes.MEDIA_TITLE] == "Moon over Andromeda"
    assert attributes[Attributes.MEDIA_ARTIST] == "Adam Block"
    assert attributes[Attributes.MEDIA_ALBUM] == "Sep 25"


def test_photo_attributes_hd() -> None:
    attributes = entry_attributes(Entry.of(sample_photo()), prefer_hd=True)

    assert attributes[Attributes.MEDIA_IMAGE_URL] == sample_photo().hdurl


def test_placeholder_attributes() -> None:
    photo = PhotoOfDay.from_payload({"date": "2021-01-01", "media_type": "video", "title": "A video"})

    attributes = entry_attributes(Entry.of(photo))

    assert attributes[Attributes.STATE] == States.PLAYING
    assert attributes[Attributes.MEDIA_IMAGE_URL].startswith("data:image/svg+xml;base64,")
    assert attributes[Attributes.MEDIA_TITLE] == "Couldn’t load image"
    assert attributes[Attributes.MEDIA_ARTIST] == ""


def test_loading_attributes() -> None:
    attributes = entry_attributes(Entry.loading())

    assert attributes[Attributes.STATE] == States.BUFFERING
    assert attributes[Attributes.MEDIA_IMAGE_URL].startswith("data:image/svg+xml;base64,")


def test_empty_attributes_ignore_error() -> None:
    failure = entry_attributes(Entry.failure(APODRequestError("https://x", 500)))
    not_loading = entry_attributes(Entry.not_loading())

    assert failure == not_loading
    assert failure[Attributes.STATE] == States.ON
    assert failure[Attributes.MEDIA_TITLE] == ""


def test_widget_identity(config) -> None:
    widget = APODWidget(config, FakeAPODClient(Entry.not_loading()))

    assert widget.id == "apod_widget"
    assert widget.entry.state.value == "not_loading"
    assert ucapi.media_player.Features.MEDIA_ALBUM in widget.features


def test_previous_and_next_day(config) -> None:
    client = FakeAPODClient(Entry.of(sample_photo()))
    widget = APODWidget(config, client)
    today = datetime.date.today()

    assert _run_command(widget, Commands.PREVIOUS) == StatusCodes.OK
    assert widget.date == today - datetime.timedelta(days=1)
    assert client.dates == [widget.date]
    assert widget.attributes[Attributes.MEDIA_TITLE] == "Moon over Andromeda"

    assert _run_command(widget, Commands.NEXT) == StatusCodes.OK
    assert widget.date is None
    assert client.dates[-1] is None


def test_next_on_today_does_nothing(config) -> None:
    client = FakeAPODClient(Entry.of(sample_photo()))
    widget = APODWidget(config, client)

    assert _run_command(widget, Commands.NEXT) == StatusCodes.OK
    assert client.dates == []


def test_previous_stops_at_first_apod(config) -> None:
    client = FakeAPODClient(Entry.of(sample_photo()))
    widget = APODWidget(config, client)
    widget._date = FIRST_APOD_DATE

    assert _run_command(widget, Commands.PREVIOUS) == StatusCodes.OK
    assert widget.date == FIRST_APOD_DATE
    assert client.dates == []


def test_failed_refresh_keeps_last_photo(config) -> None:
    client = FakeAPODClient(Entry.of(sample_photo()))
    widget = APODWidget(config, client)

    asyncio.run(widget.refresh())
    client.entry = Entry.failure(APODRequestError("https://x", 500))
    asyncio.run(widget.refresh())

    assert widget.entry.is_success
    assert widget.attributes[Attributes.STATE] == States.PLAYING


def test_failure_without_photo_renders_empty(config) -> None:
    client = FakeAPODClient(Entry.failure(APODRequestError("https://x", 500)))
    widget = APODWidget(config, client)

    asyncio.run(widget.refresh())

    assert widget.entry.is_failure
    assert widget.attributes[Attributes.STATE] == States.ON


def test_off_and_on(config) -> None:
    client = FakeAPODClient(Entry.of(sample_photo()))
    api = FakeAPI()
    widget = APODWidget(config, client, api)
    asyncio.run(widget.refresh())

    assert _run_command(widget, Commands.OFF) == StatusCodes.OK
    assert widget.attributes[Attributes.STATE] == States.OFF

    async def turn_on():
        status = await widget._handle_command(widget, Commands.ON)
        await widget.shutdown()
        return status

    assert asyncio.run(turn_on()) == StatusCodes.OK
    assert widget.attributes[Attributes.STATE] == States.PLAYING
    assert api.pushed_states()[-3:] == [States.PLAYING, States.OFF, States.PLAYING]


def test_ignored_and_unknown_commands(config) -> None:
    widget = APODWidget(config, FakeAPODClient(Entry.not_loading()))

    assert _run_command(widget, Commands.VOLUME_UP) == StatusCodes.OK
    assert _run_command(widget, "teleport") == StatusCodes.NOT_IMPLEMENTED


def test_pushes_to_configured_entities(config) -> None:
    api = FakeAPI()
    widget = APODWidget(config, FakeAPODClient(Entry.of(sample_photo())), api)

    asyncio.run(widget.refresh())

    entity_id, attributes = api.configured_entities.updates[-1]
    assert entity_id == "apod_widget"
    assert attributes[Attributes.MEDIA_TITLE] == "Moon over Andromeda"


def test_reload_applies_settings_and_restarts_refresh(config) -> None:
    api = FakeAPI()
    widget = APODWidget(config, FakeAPODClient(Entry.of(sample_photo())), api)
    asyncio.run(widget.refresh())
    config.update({"hd_images": True})

    async def reload():
        await widget.reload()
        refreshing = widget._refresh_task is not None
        await widget.shutdown()
        return refreshing

    assert asyncio.run(reload())
    assert widget.attributes[Attributes.MEDIA_IMAGE_URL] == sample_photo().hdurl
    entity_id, attributes = api.configured_entities.updates[-1]
    assert entity_id == "apod_widget"
    assert attributes[Attributes.MEDIA_IMAGE_URL] == sample_photo().hdurl
