"""
APOD data model: the photo of the day and the widget entry state wrapping it.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import dataclasses
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from uc_intg_apod.dates import DateComponents, parse_ymd
from uc_intg_apod.errors import InvalidPayloadError

_LOG = logging.getLogger(__name__)

PAYLOAD_FIELDS = (
    "copyright",
    "date",
    "explanation",
    "hdurl",
    "media_type",
    "service_version",
    "title",
    "url",
)


def _optional_text(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidPayloadError(f"Field {key!r} must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class PhotoOfDay:
    """One Astronomy Picture of the Day as published by the APOD service."""

    date: DateComponents
    title: Optional[str] = None
    copyright: Optional[str] = None
    explanation: Optional[str] = None
    url: Optional[str] = None
    hdurl: Optional[str] = None
    media_type: Optional[str] = None
    service_version: Optional[str] = None
    image_override: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "PhotoOfDay":
        """
        Build a photo from a decoded APOD JSON object.

        :param payload: APOD JSON object
        :raises InvalidPayloadError: payload is not an object or misses its date
        :raises InvalidDateError: date is not of the form YYYY-MM-DD
        """
        if not isinstance(payload, dict):
            raise InvalidPayloadError(f"Expected an APOD object, got {type(payload).__name__}")
        if "date" not in payload:
            raise InvalidPayloadError("APOD object has no date")

        date = parse_ymd(payload["date"])

        copyright_text = _optional_text(payload, "copyright")
        if copyright_text is not None:
            # The service wraps long credits over several lines.
            copyright_text = " ".join(copyright_text.split()) or None

        return cls(
            date=date,
            title=_optional_text(payload, "title"),
            copyright=copyright_text,
            explanation=_optional_text(payload, "explanation"),
            url=_optional_text(payload, "url"),
            hdurl=_optional_text(payload, "hdurl"),
            media_type=_optional_text(payload, "media_type"),
            service_version=_optional_text(payload, "service_version"),
        )

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "PhotoOfDay":
        """Decode a photo from an APOD JSON document."""
        try:
            payload = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as ex:
            raise InvalidPayloadError(f"Invalid APOD JSON: {ex}") from ex
        return cls.from_payload(payload)

    def to_payload(self) -> Dict[str, Any]:
        """Return the APOD JSON object for this photo, without empty fields."""
        payload = {key: getattr(self, key) for key in PAYLOAD_FIELDS}
        payload["date"] = str(self.date)
        return {key: value for key, value in payload.items() if value is not None}

    def with_image(self, image: Optional[str]) -> "PhotoOfDay":
        """Copy of this photo that shows the given image instead of the published one."""
        return dataclasses.replace(self, image_override=image)

    def load_image(self, prefer_hd: bool = False) -> Optional[str]:
        """
        Get the displayable image for this photo.

        :param prefer_hd: use the high resolution image when one is published
        :return: image URL, or None when the entry has no image to show
        """
        if self.image_override:
            return self.image_override

        if self.media_type != "image":
            _LOG.debug("APOD %s is %s, no image to show", self.date, self.media_type)
            return None

        candidates = (self.hdurl, self.url) if prefer_hd else (self.url, self.hdurl)
        for candidate in candidates:
            if candidate and candidate.startswith(("http://", "https://", "data:image/")):
                return candidate
        return None

    @property
    def image(self) -> Optional[str]:
        """Displayable image, if any."""
        return self.load_image()

    @property
    def caption(self) -> Optional[str]:
        """Caption shown on the widget."""
        return self.title


class LoadState(str, Enum):
    """Loading state of a widget entry."""

    NOT_LOADING = "not_loading"
    LOADING = "loading"
    LOADED = "loaded"


@dataclass(frozen=True)
class Entry:
    """
    Widget entry: nothing requested, loading, or loaded with a photo or an error.

    Use the constructors rather than building instances by hand.
    """

    state: LoadState
    photo: Optional[PhotoOfDay] = None
    error: Optional[BaseException] = None

    def __post_init__(self):
        if self.state is LoadState.LOADED:
            if (self.photo is None) == (self.error is None):
                raise ValueError("Loaded entry needs exactly one of photo or error")
        elif self.photo is not None or self.error is not None:
            raise ValueError(f"{self.state.value} entry carries no result")

    @classmethod
    def not_loading(cls) -> "Entry":
        return cls(LoadState.NOT_LOADING)

    @classmethod
    def loading(cls) -> "Entry":
        return cls(LoadState.LOADING)

    @classmethod
    def success(cls, photo: PhotoOfDay) -> "Entry":
        return cls(LoadState.LOADED, photo=photo)

    @classmethod
    def failure(cls, error: BaseException) -> "Entry":
        return cls(LoadState.LOADED, error=error)

    @classmethod
    def of(cls, photo: PhotoOfDay) -> "Entry":
        """Entry for an already loaded photo."""
        return cls.success(photo)

    @property
    def is_success(self) -> bool:
        return self.state is LoadState.LOADED and self.photo is not None

    @property
    def is_failure(self) -> bool:
        return self.state is LoadState.LOADED and self.error is not None
