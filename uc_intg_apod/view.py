"""
Widget view tree for APOD entries.

The renderer maps an Entry to a small, immutable tree of view nodes. It has no
side effects; drawing the tree is left to the svg module and the media player
entity.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from uc_intg_apod.dates import DateComponents, format_month_day
from uc_intg_apod.models import Entry, LoadState

_LOG = logging.getLogger(__name__)

BLACK = "#000000"
OVERLAY_FOREGROUND = "#e6e6e6"  # sRGB white 0.9
PLACEHOLDER_FOREGROUND = "#8e8e93"

PLACEHOLDER_SYMBOL = "exclamationmark.triangle"
PLACEHOLDER_MESSAGE = "Couldn’t load image"


class Font(str, Enum):
    """Text styles, smallest to largest, with their point sizes."""

    CAPTION2 = "caption2"
    FOOTNOTE = "footnote"

    @property
    def size(self) -> int:
        return {"caption2": 11, "footnote": 13}[self.value]


class ColorScheme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True)
class Insets:
    top: float = 0
    leading: float = 0
    bottom: float = 0
    trailing: float = 0


@dataclass(frozen=True)
class Shadow:
    color: str = BLACK
    radius: float = 2
    x: float = 0
    y: float = 0


@dataclass(frozen=True)
class Label:
    """A line of overlay text."""

    text: str
    font: Font
    bold: bool = False
    line_spacing: float = 0


@dataclass(frozen=True)
class Empty:
    """Nothing to show."""


@dataclass(frozen=True)
class Spinner:
    """Progress indicator over a plain backdrop."""

    background: str = BLACK
    color_scheme: ColorScheme = ColorScheme.DARK


@dataclass(frozen=True)
class ErrorPlaceholder:
    """Warning glyph shown when a loaded photo has no image to display."""

    symbol: str = PLACEHOLDER_SYMBOL
    symbol_size: int = 64
    symbol_weight: str = "ultraLight"
    message: Label = Label(PLACEHOLDER_MESSAGE, Font.FOOTNOTE)
    spacing: float = 8
    foreground: str = PLACEHOLDER_FOREGROUND
    background: str = BLACK


@dataclass(frozen=True)
class PhotoView:
    """Photo filling the widget, with date, caption and copyright on top."""

    date: DateComponents
    image: Optional[str]
    caption: Optional[Label] = None
    copyright: Optional[Label] = None
    date_label: Label = field(init=False)
    aspect_ratio: Optional[float] = None
    padding: Insets = Insets(top=14, leading=16, bottom=12, trailing=10)
    spacing: float = 4
    foreground: str = OVERLAY_FOREGROUND
    shadow: Shadow = Shadow()
    background: str = BLACK

    def __post_init__(self):
        object.__setattr__(self, "date_label", Label(format_month_day(self.date), Font.CAPTION2))


View = Union[Empty, Spinner, ErrorPlaceholder, PhotoView]


def photo_view(
    date: DateComponents,
    image: Optional[str],
    caption: Optional[str] = None,
    copyright: Optional[str] = None,
    aspect_ratio: Optional[float] = None,
) -> PhotoView:
    """Build a photo view from plain strings."""
    return PhotoView(
        date=date,
        image=image,
        caption=Label(caption, Font.FOOTNOTE, bold=True, line_spacing=-4) if caption is not None else None,
        copyright=Label(copyright, Font.CAPTION2) if copyright is not None else None,
        aspect_ratio=aspect_ratio,
    )


def render_entry(entry: Entry, prefer_hd: bool = False) -> View:
    """
    Render a widget entry.

    Not-loading and failed entries render nothing, a loading entry renders a
    spinner, and a loaded photo renders the photo view or, when it has no
    image, the error placeholder.

    :param entry: entry to render
    :param prefer_hd: show the high resolution image when available
    :return: view tree
    """
    if entry.state is LoadState.NOT_LOADING:
        return Empty()

    if entry.state is LoadState.LOADING:
        return Spinner()

    if entry.is_failure:
        _LOG.debug("Entry failed to load: %s", entry.error)
        return Empty()

    photo = entry.photo
    image = photo.load_image(prefer_hd=prefer_hd)
    if image is None:
        return ErrorPlaceholder()

    return photo_view(photo.date, image, caption=photo.title, copyright=photo.copyright)
