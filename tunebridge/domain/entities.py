from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


class Platform(str, Enum):
    """Catalog a user recognizes as "where the song lives"."""

    WY = "wy"
    QQ = "qq"
    KG = "kg"
    KG_SQ = "kg_sq"
    KW = "kw"
    MG = "mg"
    BD = "bd"
    DY = "dy"
    QS = "qs"
    FIVE_SING = "5s"
    XMLY = "xmly"


class Provider(str, Enum):
    """Upstream integration. One provider may serve several platforms."""

    XF = "xf"
    SBY = "sby"
    XZG = "xzg"
    LZ = "lz"
    CGG = "cgg"


PLATFORM_NAMES: Dict[Platform, str] = {
    Platform.WY: "NetEase Cloud Music",
    Platform.QQ: "QQ Music",
    Platform.KG: "Kugou",
    Platform.KG_SQ: "Kugou lossless",
    Platform.KW: "Kuwo",
    Platform.MG: "Migu",
    Platform.BD: "Baidu",
    Platform.DY: "Douyin",
    Platform.QS: "Qishui",
    Platform.FIVE_SING: "5sing",
    Platform.XMLY: "Ximalaya",
}


def platform_name(platform: Platform) -> str:
    """Return the display name of a platform."""
    return PLATFORM_NAMES[Platform(platform)]


@dataclass(frozen=True)
class Interface:
    """A (platform, provider) pair the strategy may probe."""

    platform: Platform
    provider: Provider

    @property
    def label(self) -> str:
        return f"{self.platform.value}:{self.provider.value}"

    @classmethod
    def parse(cls, label: str) -> "Interface":
        """Parse a ``platform:provider`` label such as ``wy:sby``."""
        platform, sep, provider = label.strip().partition(":")
        if not sep:
            raise ValueError(f"Invalid interface label: {label!r}")
        return cls(Platform(platform.strip().lower()), Provider(provider.strip().lower()))


@dataclass(frozen=True)
class SearchMatch:
    """A search candidate returned by one provider for one platform.

    ``key`` is an opaque continuation key: it is enough to replay a detail or
    lyrics fetch without any server-side session.
    """

    key: str
    title: str
    artist: str
    platform: Platform
    provider: Provider
    cover: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Read-only view over a private copy
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra or {})))


@dataclass(frozen=True)
class TrackExtra:
    """Optional technical attributes of a playable track."""

    quality: Optional[str] = None
    duration_ms: Optional[int] = None
    bitrate: Optional[int] = None
    size: Optional[str] = None
    album: Optional[str] = None
    platform_url: Optional[str] = None


@dataclass(frozen=True)
class PlayableTrack(SearchMatch):
    """A search match resolved to an audio URL.

    A track without an audio URL is not usable at all; adapters raise
    ``UnplayableFault`` instead of returning one.
    """

    audio_url: str = ""
    lyrics: str = ""
    cloud_id: Optional[str] = None
    details: TrackExtra = field(default_factory=TrackExtra)

    @property
    def is_playable(self) -> bool:
        return bool(self.audio_url)
