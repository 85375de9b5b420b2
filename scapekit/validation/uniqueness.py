"""Debounced, supersedable title uniqueness checking.

Each ``schedule()`` call bumps a generation counter and restarts the debounce
timer. Once the timer fires, the lookup runs to completion, but its answer is
applied only if both the generation and the title still match what is
current. Older answers are dropped, so typing "A" then "B" always ends on
B's status no matter which lookup returns first.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

from scapekit.config import get_title_debounce_seconds

from .lib import NameStatus

logger = logging.getLogger(__name__)

# (title, user_id, exclude_id) -> id of a conflicting scape, or None
TitleLookup = Callable[[str, str, str | None], Awaitable[str | None]]


class TitleUniquenessChecker:
    """Tracks whether the current title is free among a creator's scapes.

    Args:
        lookup: Coroutine function returning the id of another scape with the
            same title, or None.
        user_id: Creator whose scapes are searched.
        exclude_id: Scape being edited; excluded from the search so a scape
            never conflicts with itself.
        debounce_seconds: Quiet period before a lookup is issued. Defaults to
            ``SCAPE_TITLE_DEBOUNCE_MS``.

    Example:
        >>> checker = TitleUniquenessChecker(persistence.find_title_conflict, "user-1")
        >>> checker.schedule("Summer Mix")
        >>> await checker.wait()
        >>> checker.status
        <NameStatus.UNIQUE: 'unique'>
    """

    def __init__(
        self,
        lookup: TitleLookup,
        user_id: str,
        exclude_id: str | None = None,
        debounce_seconds: float | None = None,
    ):
        self._lookup = lookup
        self._user_id = user_id
        self._exclude_id = exclude_id
        self._debounce = (
            get_title_debounce_seconds()
            if debounce_seconds is None
            else max(0.0, debounce_seconds)
        )
        self._status = NameStatus.UNKNOWN
        self._settled = NameStatus.UNKNOWN
        self._settled_title: str | None = None
        self._title: str | None = None
        self._generation = 0
        self._timer: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def status(self) -> NameStatus:
        return self._status

    @property
    def title(self) -> str | None:
        """Title the current status refers to."""
        return self._title

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def exclude_id(self) -> str | None:
        return self._exclude_id

    def set_exclude_id(self, scape_id: str | None) -> None:
        """Exclude the scape being edited once it has a store id.

        A changed id re-checks the current title. Pending or settled answers
        were looked up without the exclusion and may name the scape itself.
        """
        if scape_id == self._exclude_id:
            return
        self._exclude_id = scape_id
        self._settled_title = None
        if self._title is not None and self._title.strip():
            self.schedule(self._title)

    def schedule(self, title: str) -> None:
        """Start (or restart) the debounced check for a title.

        Must be called from inside a running event loop.
        """
        self._generation += 1
        self._title = title
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

        if not title.strip():
            self._settled = NameStatus.UNKNOWN
            self._settled_title = None
            self._status = NameStatus.UNKNOWN
            return

        self._status = NameStatus.CHECKING
        self._timer = self._spawn(self._debounce_then_check(self._generation, title))

    async def check_now(self, title: str) -> NameStatus:
        """Check a title immediately, superseding anything pending."""
        self.schedule(title)
        if not title.strip():
            return self._status
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None
        await self._check(self._generation, title)
        return self._status

    async def wait(self) -> None:
        """Wait until every pending timer and lookup has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel all pending work."""
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
        self._timer = None

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _is_current(self, generation: int, title: str) -> bool:
        return generation == self._generation and title == self._title

    async def _debounce_then_check(self, generation: int, title: str) -> None:
        await asyncio.sleep(self._debounce)
        if not self._is_current(generation, title):
            return
        # Past the debounce the lookup is no longer cancellable by schedule().
        self._timer = None
        self._spawn(self._check(generation, title))

    async def _check(self, generation: int, title: str) -> None:
        try:
            conflict_id = await self._lookup(title, self._user_id, self._exclude_id)
        except Exception:
            logger.warning("Title uniqueness lookup failed for %r", title, exc_info=True)
            if self._is_current(generation, title):
                self._status = (
                    self._settled if self._settled_title == title else NameStatus.UNKNOWN
                )
            return

        if not self._is_current(generation, title):
            logger.debug("Discarding stale uniqueness result for %r", title)
            return

        self._settled = NameStatus.TAKEN if conflict_id else NameStatus.UNIQUE
        self._settled_title = title
        self._status = self._settled


__all__ = ["TitleLookup", "TitleUniquenessChecker"]
