"""Progressive, order-stable resolution of suggestions for a long list.

Resolving hundreds of candidates at once floods the registry and makes
rows pop in all over the list; resolving them one by one makes big
repositories slow to become usable. :class:`SuggestionScheduler` splits
the (already ordered) candidates in two:

- **foreground** — the first ``ceil(viewport * 1.75)`` candidates, resolved
  strictly one at a time. Each usable result is written into the first
  empty slot of the display, so the visible rows fill top to bottom.
- **background** — the rest, cut into groups of ``viewport`` candidates.
  Members of a group resolve concurrently; a group starts once the
  previous one has settled. A settled group is committed in one splice,
  and never before the whole foreground has been committed.

When everything has been committed, slots that never received a result
(dropped candidates, nothing to upgrade) are removed.

All display mutations happen in a single consumer coroutine that drains a
queue of completion events, so ordering never depends on how the event
loop interleaves callbacks::

    EMPTY -> LOADING -> FILLED | DROPPED

Committed rows never move. Consumers that want to act on rows while the
background is still loading wait with :meth:`SuggestionScheduler.wait_foreground`
and :meth:`SuggestionScheduler.wait_for_row`.

Typical usage::

    scheduler = SuggestionScheduler(resolver, viewport_size=20, on_update=redraw)
    rows = await scheduler.run(candidates)   # None when cancelled
"""

from __future__ import annotations

import math
import asyncio
from enum import Enum
from collections import deque
from dataclasses import dataclass
from typing import (
    Callable,
    Deque,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from upkeep.constants import FOREGROUND_FACTOR
from upkeep.core.resolver import SuggestionResolver
from upkeep.models import DependencyCandidate, SuggestionSet
from upkeep.utils.logger import get_logger

logger = get_logger("core.scheduler")

__all__ = [
    "SlotState",
    "SuggestionBoard",
    "SuggestionScheduler",
    "partition",
]

T = TypeVar("T")

Rows = Tuple[Optional[SuggestionSet], ...]
UpdateCallback = Callable[[Rows], None]


def partition(items: Sequence[T], size: int) -> List[List[T]]:
    """Split *items* into consecutive chunks of at most *size* elements."""
    if size < 1:
        raise ValueError(f"partition size must be positive, got {size}")
    return [list(items[start:start + size]) for start in range(0, len(items), size)]


class SlotState(str, Enum):
    """Lifecycle of one candidate inside the scheduler."""

    EMPTY = "empty"
    LOADING = "loading"
    FILLED = "filled"
    DROPPED = "dropped"


# ---------------------------------------------------------------------------
# Display array
# ---------------------------------------------------------------------------


class SuggestionBoard:
    """Fixed-length display array filled from the top.

    Filled slots always form a prefix of the array, so a cursor to the
    first empty slot replaces a linear scan. Once closed, every mutation is
    ignored.

    Args:
        size: Number of slots, one per candidate.
    """

    def __init__(self, size: int) -> None:
        self._rows: List[Optional[SuggestionSet]] = [None] * size
        self._cursor = 0
        self.closed = False

    @property
    def rows(self) -> Rows:
        return tuple(self._rows)

    @property
    def filled_count(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._rows)

    def fill_next(self, suggestion: SuggestionSet) -> bool:
        """Write *suggestion* into the first empty slot."""
        if self.closed:
            return False
        self._rows[self._cursor] = suggestion
        self._cursor += 1
        return True

    def splice(self, suggestions: Sequence[SuggestionSet]) -> bool:
        """Write *suggestions* into consecutive slots from the first empty one."""
        if self.closed or not suggestions:
            return False
        end = self._cursor + len(suggestions)
        self._rows[self._cursor:end] = suggestions
        self._cursor = end
        return True

    def compact(self) -> bool:
        """Drop every slot that is still empty."""
        if self.closed:
            return False
        del self._rows[self._cursor:]
        return True

    def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Completion events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _ForegroundResolved:
    index: int
    result: Optional[SuggestionSet]


@dataclass(frozen=True)
class _GroupSettled:
    results: Tuple[Tuple[int, Optional[SuggestionSet]], ...]


@dataclass(frozen=True)
class _PhaseFinished:
    foreground: bool


@dataclass(frozen=True)
class _Stop:
    pass


_Event = Union[_ForegroundResolved, _GroupSettled, _PhaseFinished, _Stop]


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


class SuggestionScheduler:
    """Resolve suggestions for an ordered candidate list, feeding a live view.

    Args:
        resolver: Resolver producing one :class:`SuggestionSet` (or ``None``)
            per candidate.
        viewport_size: Number of rows visible at once; drives the
            foreground size and the background group size.
        on_update: Called with a snapshot of the display array after every
            change. Never called after :meth:`cancel`.

    Raises:
        ValueError: *viewport_size* is smaller than one.
    """

    def __init__(
        self,
        resolver: SuggestionResolver,
        viewport_size: int,
        *,
        on_update: Optional[UpdateCallback] = None,
    ) -> None:
        if viewport_size < 1:
            raise ValueError(f"viewport_size must be positive, got {viewport_size}")

        self.resolver = resolver
        self.viewport_size = viewport_size
        self.on_update = on_update

        self.board = SuggestionBoard(0)
        self.states: List[SlotState] = []

        self.finished = False
        self._foreground_committed = False
        self._waiters: List["asyncio.Future[None]"] = []

        self._cancelled = False
        self._queue: Optional["asyncio.Queue[_Event]"] = None
        self._producers: List["asyncio.Task[None]"] = []

    @property
    def foreground_count(self) -> int:
        return math.ceil(self.viewport_size * FOREGROUND_FACTOR)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def plan(
        self,
        candidates: Sequence[DependencyCandidate],
    ) -> Tuple[List[int], List[List[int]]]:
        """Return candidate indices for the foreground and each background group."""
        indices = list(range(len(candidates)))
        foreground = indices[: self.foreground_count]
        background = partition(indices[self.foreground_count:], self.viewport_size)
        return foreground, background

    async def run(
        self,
        candidates: Sequence[DependencyCandidate],
    ) -> Optional[List[SuggestionSet]]:
        """Resolve every candidate and return the final, compacted rows.

        Returns:
            Usable suggestion sets in display order, or ``None`` when the
            scheduler was cancelled before finishing.
        """
        self.board = SuggestionBoard(len(candidates))
        self.states = [SlotState.EMPTY] * len(candidates)
        self.finished = False
        self._foreground_committed = False

        try:
            if self._cancelled:
                self.board.close()
                return None
            if not candidates:
                return []
            return await self._run(candidates)
        finally:
            self.finished = True
            self._wake()

    async def _run(
        self,
        candidates: Sequence[DependencyCandidate],
    ) -> Optional[List[SuggestionSet]]:
        foreground, background = self.plan(candidates)
        logger.debug(
            "Resolving %d candidate(s): %d in foreground, %d background group(s)",
            len(candidates),
            len(foreground),
            len(background),
        )

        queue: "asyncio.Queue[_Event]" = asyncio.Queue()
        self._queue = queue
        self._producers = [
            asyncio.create_task(self._run_foreground(candidates, foreground, queue)),
            asyncio.create_task(self._run_background(candidates, background, queue)),
        ]

        completed = False
        try:
            await self._consume(queue)
            completed = not self._cancelled
        finally:
            for task in self._producers:
                task.cancel()
            await asyncio.gather(*self._producers, return_exceptions=True)
            self._producers = []
            self._queue = None
            if not completed:
                self.board.close()

        if self._cancelled:
            return None
        return [row for row in self.board.rows if row is not None]

    def cancel(self) -> None:
        """Stop resolving and freeze the display array.

        In-flight lookups are abandoned; no display change is made, and
        ``on_update`` is not called, after this returns.
        """
        if self._cancelled:
            return
        self._cancelled = True
        self.board.close()
        for task in self._producers:
            task.cancel()
        if self._queue is not None:
            self._queue.put_nowait(_Stop())
        self._wake()
        logger.debug("Suggestion scheduler cancelled")

    async def wait_foreground(self) -> None:
        """Wait until every foreground result has been committed.

        Also returns when :meth:`run` ends early (cancelled, no candidates).
        """
        while not (self._foreground_committed or self.finished):
            await self._changed()

    async def wait_for_row(self, index: int) -> Optional[SuggestionSet]:
        """Wait until display slot *index* holds a committed row.

        Committed rows never move, so callers can walk the display from
        the top while later rows are still loading.

        Returns:
            The row, or ``None`` once loading has ended (finished or
            cancelled) without filling that slot.
        """
        while not self._cancelled:
            if index < self.board.filled_count:
                return self.board.rows[index]
            if self.finished:
                return None
            await self._changed()
        return None

    # ------------------------------------------------------------------
    # Producers
    # ------------------------------------------------------------------

    async def _run_foreground(
        self,
        candidates: Sequence[DependencyCandidate],
        indices: Sequence[int],
        queue: "asyncio.Queue[_Event]",
    ) -> None:
        for index in indices:
            self.states[index] = SlotState.LOADING
            result = await self._resolve(candidates[index])
            queue.put_nowait(_ForegroundResolved(index, result))
        queue.put_nowait(_PhaseFinished(foreground=True))

    async def _run_background(
        self,
        candidates: Sequence[DependencyCandidate],
        groups: Sequence[Sequence[int]],
        queue: "asyncio.Queue[_Event]",
    ) -> None:
        for group in groups:
            for index in group:
                self.states[index] = SlotState.LOADING
            results = await asyncio.gather(
                *(self._resolve(candidates[index]) for index in group)
            )
            queue.put_nowait(_GroupSettled(tuple(zip(group, results))))
        queue.put_nowait(_PhaseFinished(foreground=False))

    async def _resolve(self, candidate: DependencyCandidate) -> Optional[SuggestionSet]:
        try:
            return await self.resolver.resolve(candidate)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to resolve suggestions for %s: %s", candidate.name, exc)
            return None

    # ------------------------------------------------------------------
    # Consumer
    # ------------------------------------------------------------------

    async def _consume(self, queue: "asyncio.Queue[_Event]") -> None:
        foreground_open = True
        background_open = True
        deferred: Deque[_GroupSettled] = deque()

        while foreground_open or background_open:
            event = await queue.get()
            if self._cancelled or isinstance(event, _Stop):
                return

            if isinstance(event, _ForegroundResolved):
                self._commit_foreground(event)
            elif isinstance(event, _GroupSettled):
                if foreground_open:
                    deferred.append(event)
                else:
                    self._commit_group(event)
            elif event.foreground:
                foreground_open = False
                logger.debug("Foreground committed; flushing %d group(s)", len(deferred))
                while deferred and not self._cancelled:
                    self._commit_group(deferred.popleft())
                self._foreground_committed = True
                self._wake()
            else:
                background_open = False

        if self.board.compact():
            logger.debug("Compacted display to %d row(s)", len(self.board))
            self._notify()

    def _commit_foreground(self, event: _ForegroundResolved) -> None:
        if event.result is None:
            self.states[event.index] = SlotState.DROPPED
            return
        if self.board.fill_next(event.result):
            self.states[event.index] = SlotState.FILLED
            self._notify()

    def _commit_group(self, event: _GroupSettled) -> None:
        survivors: List[SuggestionSet] = []
        for index, result in event.results:
            if result is None:
                self.states[index] = SlotState.DROPPED
            else:
                self.states[index] = SlotState.FILLED
                survivors.append(result)
        if self.board.splice(survivors):
            self._notify()

    def _notify(self) -> None:
        if self._cancelled:
            return
        if self.on_update is not None:
            self.on_update(self.board.rows)
        self._wake()

    def _wake(self) -> None:
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    async def _changed(self) -> None:
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        await waiter
