"""
Speech Provider Boundary

Protocols for the host speech-recognition capability and the timer used for
debounced restarts, plus the two bundled schedulers.

A recognizer is a handle for one recognition session. It is configured
through attributes, driven with ``start``/``stop``/``abort`` and reports back
through four callbacks:

- ``on_start()``
- ``on_end()``
- ``on_error(code, message)``
- ``on_result(batch)``
"""

from typing import Callable, Protocol
import asyncio
import heapq
import itertools
import logging

from medscribe.transcription.transcript_types import RecognitionResultBatch

logger = logging.getLogger(__name__)

StartCallback = Callable[[], None]
EndCallback = Callable[[], None]
ErrorCallback = Callable[[str, "str | None"], None]
ResultCallback = Callable[[RecognitionResultBatch], None]


class SpeechRecognizer(Protocol):
    """One recognition session handle."""

    continuous: bool
    interim_results: bool
    lang: str
    max_alternatives: int

    on_start: StartCallback | None
    on_end: EndCallback | None
    on_error: ErrorCallback | None
    on_result: ResultCallback | None

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def abort(self) -> None:
        ...


class RecognizerFactory(Protocol):
    """Creates fresh recognizer handles.

    A factory may expose ``is_available()``; when it returns False the host
    has no recognition capability.
    """

    def __call__(self) -> SpeechRecognizer:
        ...


def detect_capability(factory: RecognizerFactory | None) -> bool:
    """Probe once whether speech recognition is available."""
    if factory is None:
        return False
    probe = getattr(factory, "is_available", None)
    if probe is None:
        return True
    available = bool(probe())
    if not available:
        logger.info("[Speech] Recognizer factory reports no recognition capability")
    return available


class TimerHandle(Protocol):
    """A scheduled callback that can be cancelled."""

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Schedules a callback after a delay in seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        """Initialize with an explicit loop, or use the running loop lazily."""
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class ManualTimer:
    """Timer owned by a ManualScheduler."""

    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler driven by a virtual clock.

    Nothing runs until ``advance`` moves the clock past a timer's due time.
    Used for scripted replays and tests.
    """

    def __init__(self, start_time: float = 0.0):
        """Initialize the virtual clock."""
        self.now = start_time
        self._heap: list[tuple[float, int, ManualTimer]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + max(delay, 0.0), callback)
        heapq.heappush(self._heap, (timer.when, next(self._seq), timer))
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        """Timers that have neither fired nor been cancelled."""
        return [timer for _, _, timer in sorted(self._heap) if timer.pending]

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due timers in order. Returns the count fired."""
        target = self.now + seconds
        fired = 0
        while self._heap and self._heap[0][0] <= target:
            when, _, timer = heapq.heappop(self._heap)
            if not timer.pending:
                continue
            self.now = when
            timer.fired = True
            timer.callback()
            fired += 1
        self.now = target
        return fired
