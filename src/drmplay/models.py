"""Dataclasses and enums for drmplay runtime."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional
from uuid import UUID

LIVE_STREAM_TITLE = "Live Stream"


class DrmType(str, Enum):
    """DRM protection scheme requested by a descriptor."""

    NONE = "none"
    WIDEVINE = "widevine"
    PLAYREADY = "playready"
    CLEARKEY = "clearkey"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(cls, value: str) -> "DrmType":
        """Map a scheme name case-insensitively, defaulting to UNKNOWN."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN

    @property
    def system_id(self) -> Optional[UUID]:
        """DRM system identifier the playback engine expects, if any."""
        return _SYSTEM_IDS.get(self)


_SYSTEM_IDS = {
    DrmType.WIDEVINE: UUID("edef8ba9-79d6-4ace-a3c8-27dcd51d21ed"),
    DrmType.PLAYREADY: UUID("9a04f079-9840-4286-ab92-e65be0885f95"),
    DrmType.CLEARKEY: UUID("e2719d58-a985-b3c9-781a-b030af78d30e"),
}


class ResumeState(str, Enum):
    """Lifecycle of the one-shot resume restore of a playback session."""

    IDLE = "idle"
    WAITING_FOR_READY = "waiting_for_ready"
    RESTORED = "restored"
    SKIPPED = "skipped"
    DETACHED = "detached"


@dataclass(frozen=True)
class StreamConfig:
    """Playback configuration parsed from a stream descriptor."""

    url: str
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)
    drm_type: DrmType = DrmType.NONE
    drm_license_uri: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def header(self, name: str) -> Optional[str]:
        """Look up a header value ignoring the case of its name."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def user_agent(self) -> Optional[str]:
        return self.header("User-Agent")

    @property
    def drm_enabled(self) -> bool:
        """True when the engine should be given a DRM configuration."""
        return self.drm_type.system_id is not None and bool(self.drm_license_uri)

    def to_dict(self) -> Dict[str, Any]:
        system_id = self.drm_type.system_id
        return {
            "url": self.url,
            "headers": dict(self.headers),
            "drm_type": self.drm_type.value,
            "drm_license_uri": self.drm_license_uri or None,
            "drm_system_id": str(system_id) if system_id and self.drm_enabled else None,
        }


@dataclass
class HistoryEntry:
    """What is remembered about a stream between playback sessions."""

    key: str
    title: str = ""
    last_position_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.key,
            "title": self.title,
            "last_position_ms": self.last_position_ms,
        }
