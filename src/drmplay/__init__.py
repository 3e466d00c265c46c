"""drmplay: Parse stream descriptors and remember where playback stopped."""

from .descriptor import DescriptorError, EmptyInputError, derive_title, parse, tokenize
from .history import DiskResumeStore, ResumeStore, StoreWriteError
from .models import DrmType, HistoryEntry, StreamConfig
from .session import PlaybackSession, ResumeController

__all__ = [
    "DescriptorError",
    "DiskResumeStore",
    "DrmType",
    "EmptyInputError",
    "HistoryEntry",
    "PlaybackSession",
    "ResumeController",
    "ResumeStore",
    "StoreWriteError",
    "StreamConfig",
    "derive_title",
    "parse",
    "tokenize",
]
