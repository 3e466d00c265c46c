"""Playback session handling: history recording and one-shot resume."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from .descriptor import derive_title, parse
from .history import ResumeStore, StoreWriteError
from .models import ResumeState, StreamConfig

logger = logging.getLogger(__name__)


class Player(Protocol):
    """The parts of a playback engine a session talks to."""

    @property
    def is_live(self) -> bool:
        """Whether the current item has no fixed, seekable timeline."""

    @property
    def position_ms(self) -> int:
        """Current playback offset in milliseconds."""

    def seek_to(self, position_ms: int) -> None:
        """Jump to an absolute offset."""


class ResumeController:
    """Applies a stored playback position at most once per session."""

    def __init__(self, store: ResumeStore, key: str) -> None:
        self.store = store
        self.key = key
        self.state = ResumeState.IDLE
        self.outcome: Optional[ResumeState] = None
        self.restored_position_ms: Optional[int] = None

    def arm(self) -> None:
        """Start waiting for the engine to become ready."""
        if self.state is ResumeState.IDLE:
            self.state = ResumeState.WAITING_FOR_READY

    def on_ready(self, player: Player) -> bool:
        """
        Handle a ready event from the engine.

        Only the first ready event after arm() is acted upon; the controller
        detaches itself afterwards.

        Returns:
            True if the player was asked to seek
        """
        if self.state is not ResumeState.WAITING_FOR_READY:
            return False

        position = self._stored_position()
        if position > 0 and not player.is_live:
            player.seek_to(position)
            self.restored_position_ms = position
            self.outcome = ResumeState.RESTORED
            logger.info("Resumed %s at %d ms", self.key, position)
        else:
            self.outcome = ResumeState.SKIPPED

        self.state = ResumeState.DETACHED
        return self.outcome is ResumeState.RESTORED

    def detach(self) -> None:
        """Stop listening without acting."""
        self.state = ResumeState.DETACHED

    def _stored_position(self) -> int:
        try:
            return self.store.load_position(self.key)
        except StoreWriteError as exc:
            logger.warning("Could not load resume position for %s: %s", self.key, exc)
            return 0


class PlaybackSession:
    """Ties a parsed descriptor, a player and the history store together."""

    def __init__(self, raw: str, store: ResumeStore, player: Player) -> None:
        self.raw = raw
        self.store = store
        self.player = player
        self.config: Optional[StreamConfig] = None
        self.title: Optional[str] = None
        self._resume: Optional[ResumeController] = None
        self._closed = False

    @property
    def resume_state(self) -> ResumeState:
        return self._resume.state if self._resume else ResumeState.IDLE

    @property
    def resume_outcome(self) -> Optional[ResumeState]:
        return self._resume.outcome if self._resume else None

    def start(self) -> StreamConfig:
        """
        Parse the descriptor and prepare resume handling.

        Raises:
            EmptyInputError: if the descriptor has no URL
        """
        if self._closed:
            raise RuntimeError("Session is closed")
        if self.config is not None:
            return self.config

        config = parse(self.raw)
        self.config = config
        self.title = derive_title(config.url)

        try:
            self.store.record_entry(config.url, self.title)
        except StoreWriteError as exc:
            logger.warning("Could not record history for %s: %s", config.url, exc)

        self._resume = ResumeController(self.store, config.url)
        self._resume.arm()
        return config

    def on_ready(self) -> bool:
        """Forward the engine's ready event; True if playback was resumed."""
        if self._resume is None:
            return False
        return self._resume.on_ready(self.player)

    def suspend(self) -> None:
        """Remember the current position when playback pauses or stops."""
        if self.config is None or self.player.is_live:
            return

        position = max(0, int(self.player.position_ms))
        try:
            self.store.save_position(self.config.url, position)
        except StoreWriteError as exc:
            logger.warning("Could not save position for %s: %s", self.config.url, exc)

    def close(self) -> None:
        """End the session; a pending resume never fires afterwards."""
        if self._resume is not None:
            self._resume.detach()
        self._closed = True
