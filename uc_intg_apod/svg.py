"""
SVG drawing for widget view trees.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import base64
from enum import Enum
from typing import List, Tuple
from xml.sax.saxutils import escape, quoteattr

from uc_intg_apod.view import (
    Empty,
    ErrorPlaceholder,
    Label,
    PhotoView,
    Spinner,
    View,
)

FONT_FAMILY = "-apple-system, 'Helvetica Neue', Arial, sans-serif"


class WidgetFamily(str, Enum):
    """Widget sizes in points."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    PREVIEW = "preview"

    @property
    def size(self) -> Tuple[int, int]:
        return {
            "small": (158, 158),
            "medium": (338, 158),
            "large": (338, 354),
            "preview": (200, 200),
        }[self.value]


def _text(label: Label, x: float, y: float, fill: str, anchor: str = "start", extra: str = "") -> str:
    weight = ' font-weight="bold"' if label.bold else ""
    return (
        f'<text x="{x:g}" y="{y:g}" font-family="{FONT_FAMILY}" font-size="{label.font.size}"'
        f'{weight} fill="{fill}" text-anchor="{anchor}"{extra}>{escape(label.text)}</text>'
    )


def _draw_spinner(view: Spinner, width: int, height: int) -> List[str]:
    cx, cy, radius = width / 2, height / 2, 10
    track = "#3a3a3c" if view.color_scheme.value == "dark" else "#d1d1d6"
    arc = "#ebebf5" if view.color_scheme.value == "dark" else "#3c3c43"
    return [
        f'<rect width="100%" height="100%" fill="{view.background}"/>',
        f'<circle cx="{cx:g}" cy="{cy:g}" r="{radius}" fill="none" stroke="{track}" stroke-width="3"/>',
        f'<path d="M {cx:g} {cy - radius:g} A {radius} {radius} 0 0 1 {cx + radius:g} {cy:g}" '
        f'fill="none" stroke="{arc}" stroke-width="3" stroke-linecap="round"/>',
    ]


def _draw_placeholder(view: ErrorPlaceholder, width: int, height: int) -> List[str]:
    glyph = view.symbol_size
    message_size = view.message.font.size
    block = glyph + view.spacing + message_size
    top = (height - block) / 2
    cx = width / 2
    # Triangle outline standing in for the warning symbol.
    left, right, apex, base = cx - glyph / 2, cx + glyph / 2, top + glyph * 0.1, top + glyph * 0.9
    return [
        f'<rect width="100%" height="100%" fill="{view.background}"/>',
        f'<path d="M {cx:g} {apex:g} L {right:g} {base:g} L {left:g} {base:g} Z" fill="none" '
        f'stroke="{view.foreground}" stroke-width="1" stroke-linejoin="round"/>',
        f'<line x1="{cx:g}" y1="{top + glyph * 0.38:g}" x2="{cx:g}" y2="{top + glyph * 0.66:g}" '
        f'stroke="{view.foreground}" stroke-width="1"/>',
        f'<circle cx="{cx:g}" cy="{top + glyph * 0.76:g}" r="1" fill="{view.foreground}"/>',
        _text(view.message, cx, top + glyph + view.spacing + message_size, view.foreground, anchor="middle"),
    ]


def _draw_photo(view: PhotoView, width: int, height: int) -> List[str]:
    pad = view.padding
    shadow = ' filter="url(#shadow)"'
    parts = [
        "<defs>"
        f'<filter id="shadow"><feDropShadow dx="{view.shadow.x:g}" dy="{view.shadow.y:g}" '
        f'stdDeviation="{view.shadow.radius / 2:g}" flood-color="{view.shadow.color}"/></filter>'
        "</defs>",
        f'<rect width="100%" height="100%" fill="{view.background}"/>',
    ]
    if view.image:
        frame_w, frame_h = width, height
        if view.aspect_ratio:
            # Fill the widget with a frame of the requested ratio, centered.
            frame_w = max(width, height * view.aspect_ratio)
            frame_h = frame_w / view.aspect_ratio
        x, y = (width - frame_w) / 2, (height - frame_h) / 2
        parts.append(
            f'<image href={quoteattr(view.image)} x="{x:g}" y="{y:g}" width="{frame_w:g}" '
            f'height="{frame_h:g}" preserveAspectRatio="xMidYMid slice"/>'
        )

    parts.append(
        _text(view.date_label, width - pad.trailing, pad.top + view.date_label.font.size,
              view.foreground, anchor="end", extra=shadow)
    )

    # Bottom-aligned stack: caption above copyright.
    baseline = height - pad.bottom
    if view.copyright is not None:
        parts.append(_text(view.copyright, pad.leading, baseline, view.foreground, extra=shadow))
        baseline -= view.copyright.font.size + view.spacing
    if view.caption is not None:
        parts.append(_text(view.caption, pad.leading, baseline, view.foreground, extra=shadow))
    return parts


def render_svg(view: View, family: WidgetFamily = WidgetFamily.MEDIUM) -> str:
    """
    Draw a view tree as an SVG document.

    :param view: view tree from render_entry
    :param family: widget size to draw at
    :return: SVG markup
    """
    width, height = family.size

    if isinstance(view, Empty):
        body: List[str] = []
    elif isinstance(view, Spinner):
        body = _draw_spinner(view, width, height)
    elif isinstance(view, ErrorPlaceholder):
        body = _draw_placeholder(view, width, height)
    elif isinstance(view, PhotoView):
        body = _draw_photo(view, width, height)
    else:
        raise TypeError(f"Cannot draw {type(view).__name__}")

    content = "\n    ".join(body)
    return (
        f'<svg width="{width}" height="{height}" viewBox="0 0 {width} {height}" '
        f'xmlns="http://www.w3.org/2000/svg">\n    {content}\n</svg>'
    )


def render_data_url(view: View, family: WidgetFamily = WidgetFamily.MEDIUM) -> str:
    """Draw a view tree as a base64 SVG data URL."""
    svg_content = render_svg(view, family)
    b64_svg = base64.b64encode(svg_content.encode("utf-8")).decode("utf-8")
    return f"data:image/svg+xml;base64,{b64_svg}"
