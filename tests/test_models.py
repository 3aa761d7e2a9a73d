"""Tests for the photo of the day and entry model."""

import json

import pytest

from uc_intg_apod.dates import DateComponents
from uc_intg_apod.errors import InvalidDateError, InvalidPayloadError
from uc_intg_apod.models import Entry, LoadState, PhotoOfDay


def test_from_payload_decodes_all_fields(preview_payload) -> None:
    photo = PhotoOfDay.from_payload(preview_payload)

    assert photo.date == DateComponents(2020, 9, 25)
    assert photo.title == "Moon over Andromeda"
    assert photo.copyright == "Adam Block"
    assert photo.media_type == "image"
    assert photo.service_version == "v1"
    assert photo.hdurl.endswith("m31abtpmoon.jpg")
    assert photo.url.endswith("m31abtpmoon1024.jpg")
    assert photo.explanation.startswith("The Great Spiral Galaxy")


def test_from_payload_optional_fields() -> None:
    photo = PhotoOfDay.from_payload({"date": "2021-01-01"})

    assert photo.title is None
    assert photo.copyright is None
    assert photo.load_image() is None


def test_copyright_whitespace_is_collapsed() -> None:
    photo = PhotoOfDay.from_payload({"date": "2021-01-01", "copyright": "\nJane Doe\n& John Roe \n"})

    assert photo.copyright == "Jane Doe & John Roe"


def test_from_payload_requires_date() -> None:
    with pytest.raises(InvalidPayloadError):
        PhotoOfDay.from_payload({"title": "No date"})


def test_from_payload_rejects_bad_date() -> None:
    with pytest.raises(InvalidDateError):
        PhotoOfDay.from_payload({"date": "yesterday"})


@pytest.mark.parametrize("payload", [[], "text", None])
def test_from_payload_rejects_non_objects(payload) -> None:
    with pytest.raises(InvalidPayloadError):
        PhotoOfDay.from_payload(payload)


def test_from_payload_rejects_non_string_field() -> None:
    with pytest.raises(InvalidPayloadError):
        PhotoOfDay.from_payload({"date": "2021-01-01", "title": 42})


def test_from_json_rejects_garbage() -> None:
    with pytest.raises(InvalidPayloadError):
        PhotoOfDay.from_json("<html>")


def test_from_json_rejects_undecodable_bytes() -> None:
    with pytest.raises(InvalidPayloadError):
        PhotoOfDay.from_json(b"\xff\xfe\xfd")


def test_to_payload_drops_empty_fields(preview_payload) -> None:
    photo = PhotoOfDay.from_payload(preview_payload)

    assert photo.to_payload() == preview_payload
    assert PhotoOfDay.from_payload({"date": "2021-1-2"}).to_payload() == {"date": "2021-01-02"}


def test_load_image_prefers_standard_url(preview_payload) -> None:
    photo = PhotoOfDay.from_payload(preview_payload)

    assert photo.load_image() == preview_payload["url"]
    assert photo.load_image(prefer_hd=True) == preview_payload["hdurl"]
    assert photo.image == preview_payload["url"]


def test_load_image_none_for_video() -> None:
    photo = PhotoOfDay.from_payload(
        {"date": "2021-01-01", "media_type": "video", "url": "https://www.youtube.com/embed/abc"}
    )

    assert photo.load_image() is None


def test_load_image_ignores_non_http_urls() -> None:
    photo = PhotoOfDay.from_payload({"date": "2021-01-01", "media_type": "image", "url": "ftp://host/x.jpg"})

    assert photo.load_image() is None


def test_with_image_overrides(preview_payload) -> None:
    photo = PhotoOfDay.from_payload({**preview_payload, "media_type": "video"})
    override = photo.with_image("data:image/png;base64,AAAA")

    assert override.load_image() == "data:image/png;base64,AAAA"
    assert photo.load_image() is None


def test_photo_is_immutable(preview_payload) -> None:
    photo = PhotoOfDay.from_payload(preview_payload)

    with pytest.raises(AttributeError):
        photo.title = "Changed"


def test_entry_constructors(preview_payload) -> None:
    photo = PhotoOfDay.from_json(json.dumps(preview_payload))
    error = RuntimeError("bad server response")

    assert Entry.not_loading().state is LoadState.NOT_LOADING
    assert Entry.loading().state is LoadState.LOADING
    assert Entry.success(photo).is_success
    assert Entry.of(photo) == Entry.success(photo)
    assert Entry.failure(error).is_failure
    assert Entry.failure(error).error is error
    assert not Entry.loading().is_success
    assert not Entry.loading().is_failure


def test_entry_rejects_inconsistent_state(preview_payload) -> None:
    photo = PhotoOfDay.from_payload(preview_payload)

    with pytest.raises(ValueError):
        Entry(LoadState.LOADED)
    with pytest.raises(ValueError):
        Entry(LoadState.LOADING, photo=photo)
    with pytest.raises(ValueError):
        Entry(LoadState.LOADED, photo=photo, error=RuntimeError())
