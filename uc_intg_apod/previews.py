"""
Preview fixtures for the APOD widget.

Sample entries covering every state the widget can show, used by the ``previews``
command of main.py and by the tests.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import dataclasses
import datetime
import logging
import os
from typing import Dict, List, NamedTuple, Union

from uc_intg_apod.dates import DateComponents
from uc_intg_apod.errors import APODRequestError
from uc_intg_apod.models import Entry, PhotoOfDay
from uc_intg_apod.svg import WidgetFamily, render_svg
from uc_intg_apod.view import PhotoView, photo_view, render_entry

_LOG = logging.getLogger(__name__)

PREVIEW_JSON = """
{
  "copyright": "Adam Block",
  "date": "2020-09-25",
  "explanation": "The Great Spiral Galaxy in Andromeda (also known as M31), a mere 2.5 million light-years distant, is the closest large spiral to our own Milky Way. Andromeda is visible to the unaided eye as a small, faint, fuzzy patch, but because its surface brightness is so low, casual skygazers can't appreciate the galaxy's impressive extent in planet Earth's sky. This entertaining composite image compares the angular size of the nearby galaxy to a brighter, more familiar celestial sight. In it, a deep exposure of Andromeda, tracing beautiful blue star clusters in spiral arms far beyond the bright yellow core, is combined with a typical view of a nearly full Moon. Shown at the same angular scale, the Moon covers about 1/2 degree on the sky, while the galaxy is clearly several times that size. The deep Andromeda exposure also includes two bright satellite galaxies, M32 and M110 (below and right).",
  "hdurl": "https://apod.nasa.gov/apod/image/2009/m31abtpmoon.jpg",
  "media_type": "image",
  "service_version": "v1",
  "title": "Moon over Andromeda",
  "url": "https://apod.nasa.gov/apod/image/2009/m31abtpmoon1024.jpg"
}
"""

# Small inline image standing in for a locally bundled sample photo.
SAMPLE_IMAGE = (
    "data:image/svg+xml;base64,"
    "PHN2ZyB4bWxucz0iaHR0cDovL3d3dy53My5vcmcvMjAwMC9zdmciIHdpZHRoPSI0MDAiIGhlaWdodD0iMzAwIj48"
    "cmVjdCB3aWR0aD0iMTAwJSIgaGVpZ2h0PSIxMDAlIiBmaWxsPSIjMWExYTJlIi8+PC9zdmc+"
)

REDACTION_MARK = "█"


class Preview(NamedTuple):
    """A named preview: what to render and at which widget size."""

    name: str
    subject: Union[Entry, PhotoView]
    family: WidgetFamily


def sample_photo() -> PhotoOfDay:
    """The Moon over Andromeda sample, as decoded from PREVIEW_JSON."""
    return PhotoOfDay.from_json(PREVIEW_JSON)


def redacted(photo: PhotoOfDay) -> PhotoOfDay:
    """Placeholder copy of a photo with its caption and copyright blanked out."""

    def _mask(text):
        if text is None:
            return None
        return "".join(" " if char.isspace() else REDACTION_MARK for char in text)

    return dataclasses.replace(photo, title=_mask(photo.title), copyright=_mask(photo.copyright))


def _today() -> DateComponents:
    today = datetime.date.today()
    return DateComponents(today.year, today.month, today.day)


def build_previews() -> List[Preview]:
    """All widget previews, in display order."""
    photo = sample_photo()
    with_image = photo.with_image(SAMPLE_IMAGE)

    return [
        Preview("small", Entry.of(with_image), WidgetFamily.SMALL),
        Preview("medium", Entry.of(with_image), WidgetFamily.MEDIUM),
        Preview(
            "wide",
            photo_view(_today(), SAMPLE_IMAGE, caption="Hello", copyright="There", aspect_ratio=3),
            WidgetFamily.MEDIUM,
        ),
        Preview(
            "tall",
            photo_view(_today(), SAMPLE_IMAGE, caption="Hello", copyright="There", aspect_ratio=0.3),
            WidgetFamily.MEDIUM,
        ),
        Preview("remote_image", Entry.of(photo), WidgetFamily.MEDIUM),
        Preview("placeholder", Entry.of(redacted(photo)), WidgetFamily.MEDIUM),
        Preview("not_loading", Entry.not_loading(), WidgetFamily.PREVIEW),
        Preview("loading", Entry.loading(), WidgetFamily.PREVIEW),
        Preview(
            "failure",
            Entry.failure(APODRequestError("https://api.nasa.gov/planetary/apod", 502, "Bad server response")),
            WidgetFamily.PREVIEW,
        ),
    ]


def previews_by_name() -> Dict[str, Preview]:
    return {preview.name: preview for preview in build_previews()}


def write_previews(directory: str) -> List[str]:
    """
    Render every preview to an SVG file.

    :param directory: output directory, created when missing
    :return: written file paths
    """
    os.makedirs(directory, exist_ok=True)
    written = []
    for preview in build_previews():
        view = preview.subject if isinstance(preview.subject, PhotoView) else render_entry(preview.subject)
        path = os.path.join(directory, f"{preview.name}.svg")
        with open(path, "w", encoding="utf-8") as file:
            file.write(render_svg(view, preview.family))
        _LOG.info("Preview written: %s", path)
        written.append(path)
    return written
