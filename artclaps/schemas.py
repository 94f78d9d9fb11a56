"""
artclaps.schemas — Validated payload shapes shared by services and routes
==========================================================================
"""

from __future__ import annotations

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from artclaps.errors import ValidationFailed


class CamelModel(BaseModel):
    """Request body accepting the camelCase keys the web client sends."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ArtistLink(CamelModel):
    """One ``{label, url[, platform]}`` entry on an artist page."""

    label: str = Field(min_length=1)
    url: HttpUrl
    platform: str | None = None

    @field_validator("label", "url", "platform", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
        return value

    @field_validator("platform")
    @classmethod
    def _blank_platform(cls, value: str | None) -> str | None:
        return value or None

    def stored(self) -> dict[str, str]:
        """JSON form kept in ``users.artist_links``."""
        return self.model_dump(mode="json", exclude_none=True)


_LINKS = TypeAdapter(list[ArtistLink])
_URL = TypeAdapter(HttpUrl)


def is_blank_link(item: Any) -> bool:
    """True for a row missing a label or a URL once whitespace is stripped."""
    if isinstance(item, ArtistLink):
        return False
    if not isinstance(item, dict):
        return False
    label = str(item.get("label") or "").strip()
    url = str(item.get("url") or "").strip()
    return not (label and url)


def drop_blank_links(raw: Any) -> Any:
    """Filter blank rows out of a list payload; anything else passes through."""
    if not isinstance(raw, list):
        return raw
    return [item for item in raw if not is_blank_link(item)]


def parse_links(raw: Any) -> list[ArtistLink]:
    """Validate a link list, raising ``ValidationFailed`` with a client message."""
    try:
        return _LINKS.validate_python(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = first.get("loc", ())
        if not loc:
            raise ValidationFailed("Artist links must be an array") from None
        value = first.get("input")
        if loc[-1] == "url" and isinstance(value, str) and value.strip():
            raise ValidationFailed(f"Invalid URL: {value.strip()}") from None
        raise ValidationFailed("Each link must have a label and URL") from None


def parse_url(raw: str) -> str:
    """Normalised absolute http(s) URL, or ``ValidationFailed``."""
    try:
        return str(_URL.validate_python(raw.strip()))
    except ValidationError:
        raise ValidationFailed(f"Invalid URL: {raw}") from None
