"""Tests for the preview fixtures."""

import os

from uc_intg_apod.models import LoadState
from uc_intg_apod.previews import (
    REDACTION_MARK,
    SAMPLE_IMAGE,
    build_previews,
    previews_by_name,
    redacted,
    sample_photo,
    write_previews,
)
from uc_intg_apod.svg import WidgetFamily
from uc_intg_apod.view import Empty, PhotoView, Spinner, render_entry


def test_sample_photo_decodes() -> None:
    photo = sample_photo()

    assert photo.title == "Moon over Andromeda"
    assert photo.copyright == "Adam Block"
    assert str(photo.date) == "2020-09-25"


def test_previews_cover_every_state() -> None:
    previews = previews_by_name()

    assert previews["not_loading"].subject.state is LoadState.NOT_LOADING
    assert previews["loading"].subject.state is LoadState.LOADING
    assert previews["failure"].subject.is_failure
    assert previews["small"].family is WidgetFamily.SMALL
    assert previews["failure"].family is WidgetFamily.PREVIEW
    assert render_entry(previews["medium"].subject).image == SAMPLE_IMAGE
    assert isinstance(render_entry(previews["loading"].subject), Spinner)
    assert isinstance(render_entry(previews["failure"].subject), Empty)
    assert previews["wide"].subject.aspect_ratio == 3
    assert previews["tall"].subject.caption.text == "Hello"


def test_redacted_masks_text_of_equal_length() -> None:
    photo = redacted(sample_photo())

    assert photo.title == f"{REDACTION_MARK * 4} {REDACTION_MARK * 4} {REDACTION_MARK * 9}"
    assert photo.copyright == f"{REDACTION_MARK * 4} {REDACTION_MARK * 5}"
    assert photo.url == sample_photo().url


def test_write_previews(tmp_path) -> None:
    written = write_previews(str(tmp_path / "previews"))

    assert len(written) == len(build_previews())
    for path in written:
        assert os.path.exists(path)
        with open(path, encoding="utf-8") as file:
            assert file.read().startswith("<svg")


def test_photo_previews_render_as_photo_views() -> None:
    for name in ("small", "medium", "remote_image", "placeholder"):
        assert isinstance(render_entry(previews_by_name()[name].subject), PhotoView)
