"""Parse stream descriptors into playback configurations.

A descriptor is a single string of the form ``URL(|KEY=VALUE)*``. The first
segment is the stream URL and is used verbatim. Every following segment is a
percent-encoded ``key=value`` pair: the reserved keys ``drmScheme`` /
``drmType`` and ``drmLicense`` (case-insensitive) configure DRM, anything else
becomes an HTTP request header.

Parsing favours playback over strictness: malformed segments are dropped,
undecodable values are kept raw and unknown DRM schemes are carried inertly.
Only a descriptor without a URL is rejected.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterator, Optional
from urllib.parse import unquote, urlsplit

from .models import LIVE_STREAM_TITLE, DrmType, StreamConfig

logger = logging.getLogger(__name__)

SEGMENT_DELIMITER = "|"
KEY_VALUE_SEPARATOR = "="


class DescriptorError(ValueError):
    """Raised when a descriptor cannot be turned into a stream configuration."""


class EmptyInputError(DescriptorError):
    """Raised when a descriptor is empty or carries no URL."""


@dataclass(frozen=True)
class Token:
    """A single descriptor field. The URL token has no key."""

    key: Optional[str]
    value: str


_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _percent_decode(value: str) -> str:
    if "%" not in value:
        return value
    if _BAD_ESCAPE.search(value):
        logger.debug("Keeping raw value with invalid percent escape: %r", value)
        return value
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError:
        logger.debug("Keeping raw value that does not decode as UTF-8: %r", value)
        return value


def tokenize(raw: str) -> Iterator[Token]:
    """Split a descriptor into its URL token followed by key/value tokens."""
    segments = iter(raw.split(SEGMENT_DELIMITER))
    yield Token(key=None, value=next(segments))

    for segment in segments:
        key, separator, value = segment.partition(KEY_VALUE_SEPARATOR)
        if not separator or not key:
            logger.debug("Skipping malformed descriptor segment %r", segment)
            continue
        yield Token(key=key, value=_percent_decode(value))


class DescriptorParser:
    """Parser for stream descriptors."""

    DRM_SCHEME_KEYS = frozenset({"drmscheme", "drmtype"})
    DRM_LICENSE_KEY = "drmlicense"

    # Path suffixes that name a download rather than something worth showing.
    GENERIC_EXTENSIONS = frozenset({".bin"})

    @staticmethod
    def parse(raw: Optional[str]) -> StreamConfig:
        """Parse a descriptor into a StreamConfig.

        Raises:
            EmptyInputError: if ``raw`` is empty, whitespace-only or has no URL.
        """
        if raw is None or not raw.strip():
            raise EmptyInputError("Descriptor is empty")

        tokens = tokenize(raw)
        url = next(tokens).value
        if not url.strip():
            raise EmptyInputError("Descriptor has no stream URL")

        headers: Dict[str, str] = {}
        drm_type = DrmType.NONE
        drm_license_uri = ""

        for token in tokens:
            name = token.key.lower()
            if name in DescriptorParser.DRM_SCHEME_KEYS:
                drm_type = DrmType.from_value(token.value)
                if drm_type is DrmType.UNKNOWN:
                    logger.debug("Unsupported DRM scheme %r, DRM stays inert", token.value)
            elif name == DescriptorParser.DRM_LICENSE_KEY:
                drm_license_uri = token.value
            else:
                DescriptorParser._set_header(headers, token.key, token.value)

        if drm_type is DrmType.NONE or not drm_license_uri:
            drm_type = DrmType.NONE
            drm_license_uri = ""

        return StreamConfig(
            url=url,
            headers=headers,
            drm_type=drm_type,
            drm_license_uri=drm_license_uri,
        )

    @staticmethod
    def derive_title(url: str) -> str:
        """Display name for a stream: its file name, or a live placeholder."""
        try:
            parts = urlsplit(url)
        except ValueError:
            return LIVE_STREAM_TITLE

        if "?" in url:
            return LIVE_STREAM_TITLE

        segment = unquote(parts.path.rsplit("/", 1)[-1])
        if not segment or "?" in segment or "." not in segment.strip("."):
            return LIVE_STREAM_TITLE

        extension = segment[segment.rfind("."):].lower()
        if extension in DescriptorParser.GENERIC_EXTENSIONS:
            return LIVE_STREAM_TITLE
        return segment

    @staticmethod
    def _set_header(headers: Dict[str, str], name: str, value: str) -> None:
        for existing in [key for key in headers if key.lower() == name.lower()]:
            del headers[existing]
        headers[name] = value


parse = DescriptorParser.parse
derive_title = DescriptorParser.derive_title
