from __future__ import annotations

import re
from enum import Enum
from typing import Callable, List, Optional, Sequence

from loguru import logger

from folio.reveal.scheduler import Scheduler, TimerHandle

REDACTION_MARKER = " {REDACTED}"

UnitSplitter = Callable[[str], Sequence[str]]
ChannelListener = Callable[["TextChannel"], None]


def character_units(text: str) -> List[str]:
    return list(text)


def word_units(text: str) -> List[str]:
    """Splits into alternating runs of whitespace and non-whitespace."""
    return re.findall(r"\s+|\S+", text)


class ChannelState(str, Enum):
    REVEALING = "revealing"
    COMPLETE = "complete"
    STOPPED = "stopped"


class TextChannel:
    """
    One progressively revealed piece of text.

    `revealed` only ever grows, one unit per tick. One tick after the last
    unit the marker is appended and the channel completes. The channel's own
    timer callback is the only writer.
    """

    def __init__(self, source: str, units: Sequence[str], marker: Optional[str]):
        self.source = source
        self._units = list(units)
        self._marker = marker or ""
        self._cursor = 0
        self._revealed = ""
        self._timer: Optional[TimerHandle] = None
        self._listeners: List[ChannelListener] = []
        self.state = ChannelState.REVEALING

    @property
    def revealed(self) -> str:
        return self._revealed

    @property
    def done(self) -> bool:
        return self.state is ChannelState.COMPLETE

    @property
    def active(self) -> bool:
        return self.state is ChannelState.REVEALING

    @property
    def total_units(self) -> int:
        return len(self._units)

    @property
    def revealed_units(self) -> int:
        return self._cursor

    def subscribe(self, listener: ChannelListener) -> None:
        """Registers a callback invoked after every change to `revealed`."""
        self._listeners.append(listener)

    def tick(self) -> None:
        if not self.active:
            return
        if self._cursor < len(self._units):
            self._revealed += self._units[self._cursor]
            self._cursor += 1
        else:
            self._complete()
        self._notify()

    def _attach(self, timer: TimerHandle) -> None:
        self._timer = timer
        if not self.active:
            timer.cancel()

    def _complete(self) -> None:
        # An empty source was never clipped from anything, so it gets no marker.
        if self.source:
            self._revealed = self.source + self._marker
        self.state = ChannelState.COMPLETE
        self._release_timer()

    def _fast_forward(self) -> None:
        if not self.active:
            return
        self._cursor = len(self._units)
        self._complete()
        self._notify()

    def _halt(self) -> None:
        if not self.active:
            return
        self.state = ChannelState.STOPPED
        self._release_timer()

    def _release_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def __repr__(self) -> str:
        return (
            f"TextChannel(state={self.state.value}, "
            f"units={self._cursor}/{len(self._units)})"
        )


class RevealEngine:
    """
    Drives progressive reveal for one display slot.

    Starting a new reveal halts the previous channel before the new timer is
    scheduled, so two channels never write to the same slot.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        marker: Optional[str] = REDACTION_MARKER,
        split_units: UnitSplitter = character_units,
    ):
        self._scheduler = scheduler
        self._marker = marker
        self._split_units = split_units
        self._current: Optional[TextChannel] = None

    @property
    def current(self) -> Optional[TextChannel]:
        return self._current

    @property
    def display(self) -> str:
        return self._current.revealed if self._current else ""

    def start(
        self,
        source: str,
        unit_interval_ms: float,
        *,
        on_update: Optional[ChannelListener] = None,
    ) -> TextChannel:
        """
        Begins revealing `source`, halting any reveal still running here.

        The first unit is revealed immediately; `on_update` is subscribed
        before that happens so it sees every change.
        """
        if unit_interval_ms <= 0:
            raise ValueError(
                f"unit_interval_ms must be positive, got {unit_interval_ms!r}"
            )
        source = source or ""

        previous = self._current
        if previous is not None and previous.active:
            logger.info(f"Superseding in-flight reveal {previous!r}.")
            previous._halt()

        units = self._split_units(source)
        channel = TextChannel(source, units, self._marker)
        if on_update is not None:
            channel.subscribe(on_update)
        self._current = channel

        if not units:
            channel._complete()
            channel._notify()
            logger.debug("Empty reveal source; completed immediately.")
            return channel

        logger.debug(
            f"Starting reveal of {len(units)} units every {unit_interval_ms}ms."
        )
        timer = self._scheduler.call_every(unit_interval_ms, channel.tick, immediate=True)
        channel._attach(timer)
        return channel

    def stop(self, channel: Optional[TextChannel] = None) -> None:
        """Halts ticking immediately, keeping whatever prefix was reached."""
        channel = channel or self._current
        if channel is None:
            return
        if channel.active:
            logger.info(f"Stopping reveal {channel!r}.")
        channel._halt()

    def finish(self, channel: Optional[TextChannel] = None) -> None:
        """Jumps an active channel straight to its completed value."""
        channel = channel or self._current
        if channel is None:
            return
        channel._fast_forward()
