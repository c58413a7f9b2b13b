"""Validation of adapter output before it becomes a domain entity.

Optional fields are defaulted instead of rejected. Only load-bearing fields
fail validation: the continuation key on every item, and the audio URL on a
detail.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tunebridge.domain.entities import Platform, PlayableTrack, Provider, SearchMatch, TrackExtra
from tunebridge.domain.errors import UnplayableFault, ValidationFault

logger = logging.getLogger(__name__)

_CLOCK_PATTERN = re.compile(r"^\s*(?:(\d+):)?(\d+):(\d{1,2})(?:\.\d+)?\s*$")
_CHINESE_DURATION_PATTERN = re.compile(r"^\s*(?:(\d+)\s*分)?\s*(?:(\d+)\s*秒)?\s*$")
_LEADING_NUMBER_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)")


def parse_duration_ms(value: Any) -> Optional[int]:
    """Parse ``mm:ss``, ``h:mm:ss``, ``m分s秒`` or a plain number (ms)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if value > 0 else None
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return int(text) or None
    match = _CLOCK_PATTERN.match(text)
    if match:
        hours, minutes, seconds = match.groups()
        total = int(hours or 0) * 3600 + int(minutes) * 60 + int(seconds)
        return total * 1000 or None
    match = _CHINESE_DURATION_PATTERN.match(text)
    if match and any(match.groups()):
        minutes, seconds = match.groups()
        return (int(minutes or 0) * 60 + int(seconds or 0)) * 1000 or None
    return None


def parse_bitrate(value: Any) -> Optional[int]:
    """Parse ``320``, ``"320kbps"`` or ``"320 kbps"``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if value > 0 else None
    match = _LEADING_NUMBER_PATTERN.match(str(value))
    if not match:
        return None
    return int(float(match.group(1))) or None


def _text(value: Any) -> str:
    if value is None:
        return ''
    return str(value).strip()


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


class TrackExtraSchema(BaseModel):
    model_config = ConfigDict(extra='ignore')

    quality: Optional[str] = None
    duration_ms: Optional[int] = None
    bitrate: Optional[int] = None
    size: Optional[str] = None
    album: Optional[str] = None
    platform_url: Optional[str] = None

    @field_validator('quality', 'size', 'album', 'platform_url', mode='before')
    @classmethod
    def coerce_optional_text(cls, value: Any) -> Optional[str]:
        return _optional_text(value)

    @field_validator('duration_ms', mode='before')
    @classmethod
    def coerce_duration(cls, value: Any) -> Optional[int]:
        return parse_duration_ms(value)

    @field_validator('bitrate', mode='before')
    @classmethod
    def coerce_bitrate(cls, value: Any) -> Optional[int]:
        return parse_bitrate(value)


class SearchItemSchema(BaseModel):
    model_config = ConfigDict(extra='ignore')

    key: str = ''
    title: str = ''
    artist: str = ''
    cover: str = ''
    extra: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('key', 'title', 'artist', 'cover', mode='before')
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _text(value)

    @field_validator('extra', mode='before')
    @classmethod
    def coerce_extra(cls, value: Any) -> Dict[str, Any]:
        if not isinstance(value, Mapping):
            return {}
        return {k: v for k, v in value.items() if v is not None}


class DetailSchema(SearchItemSchema):
    audio_url: str = ''
    lyrics: str = ''
    cloud_id: Optional[str] = None
    details: TrackExtraSchema = Field(default_factory=TrackExtraSchema)

    @field_validator('audio_url', 'lyrics', mode='before')
    @classmethod
    def coerce_detail_text(cls, value: Any) -> str:
        return _text(value)

    @field_validator('cloud_id', mode='before')
    @classmethod
    def coerce_cloud_id(cls, value: Any) -> Optional[str]:
        return _optional_text(value)

    @field_validator('details', mode='before')
    @classmethod
    def coerce_details(cls, value: Any) -> Any:
        return value if isinstance(value, Mapping) else {}


def validate_search_item(raw: Mapping[str, Any], platform: Platform, provider: Provider) -> SearchMatch:
    source = Provider(provider).value
    try:
        item = SearchItemSchema.model_validate(dict(raw))
    except ValidationError as e:
        raise ValidationFault(f"Invalid search item: {e}", code=422, provider=source)
    if not item.key:
        raise ValidationFault("Search item has no continuation key", code=422, provider=source)
    return SearchMatch(
        key=item.key,
        title=item.title,
        artist=item.artist,
        cover=item.cover,
        platform=Platform(platform),
        provider=Provider(provider),
        extra=item.extra,
    )


def validate_search_items(raw_items: List[Mapping[str, Any]], platform: Platform,
                          provider: Provider) -> List[SearchMatch]:
    """Validate a page of items, dropping only the invalid ones."""
    matches = []
    for index, raw in enumerate(raw_items):
        try:
            matches.append(validate_search_item(raw, platform, provider))
        except ValidationFault as e:
            logger.debug(f"Dropping search item {index} from {Provider(provider).value}: {e}")
    return matches


def validate_detail(raw: Mapping[str, Any], platform: Platform, provider: Provider) -> PlayableTrack:
    source = Provider(provider).value
    try:
        detail = DetailSchema.model_validate(dict(raw))
    except ValidationError as e:
        raise ValidationFault(f"Invalid detail: {e}", code=422, provider=source)
    if not detail.key:
        raise ValidationFault("Detail has no continuation key", code=422, provider=source)
    if not detail.audio_url:
        raise UnplayableFault(f"No audio URL for {detail.key}", code=404, provider=source)
    return PlayableTrack(
        key=detail.key,
        title=detail.title,
        artist=detail.artist,
        cover=detail.cover,
        platform=Platform(platform),
        provider=Provider(provider),
        extra=detail.extra,
        audio_url=detail.audio_url,
        lyrics=detail.lyrics,
        cloud_id=detail.cloud_id,
        details=TrackExtra(**detail.details.model_dump()),
    )
