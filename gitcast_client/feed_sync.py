"""Feed acquisition: fetch, cold-start indexing, polling and the final snapshot."""

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional

from .backend import FeedBackend
from .errors import FetchFailed, InitFailed
from .identity import IdentityResolver
from .models import FeedRequest, FeedSnapshot
from .poller import StatusPoller

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    INITIALIZING = "initializing"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class ViewState:
    """Everything the view needs, replaced as a whole on every change."""
    state: SyncState = SyncState.IDLE
    viewer_id: Optional[int] = None
    snapshot: Optional[FeedSnapshot] = None
    error: Optional[str] = None
    advisory: Optional[str] = None
    progress: Optional[str] = None


Listener = Callable[[ViewState], None]


class _Cycle:
    """One identity's run through the machine. Dead cycles commit nothing."""

    def __init__(self, token: int, viewer_id: int):
        self.token = token
        self.viewer_id = viewer_id
        self.live = True
        self.task: Optional[asyncio.Task] = None


class FeedSyncStateMachine:
    """
    Drives a viewer's feed from nothing to a committed snapshot.

    Idle -> Loading -> Ready | Error | Initializing, and Initializing -> Ready.
    A cycle makes one feed request. If the feed is empty it fires one
    indexing request, runs the status poller once, fetches the feed again
    and commits whatever comes back. Each cycle carries a sequence token;
    only the cycle holding the latest token may change the view state.
    """

    def __init__(
        self,
        backend: FeedBackend,
        resolver: IdentityResolver,
        poller: StatusPoller,
        feed_limit: int = 100,
    ):
        self.backend = backend
        self.resolver = resolver
        self.poller = poller
        self.feed_limit = feed_limit
        self._view = ViewState()
        self._listeners: List[Listener] = []
        self._sequence = 0
        self._cycle: Optional[_Cycle] = None
        self._abandoned: List[_Cycle] = []

    @property
    def view(self) -> ViewState:
        return self._view

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for committed changes. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def mount(self) -> None:
        """Resolve identity, then start the first cycle. Fetching waits on readiness."""
        identity = await self.resolver.resolve()
        await self.resolver.ready.wait()
        if identity.advisory:
            self._set(replace(self._view, advisory=identity.advisory))
        self.set_identity(identity.viewer_id)

    def set_identity(self, viewer_id: int) -> None:
        """Start a fresh cycle for ``viewer_id``; the running one, if any, is abandoned."""
        if not self.resolver.ready.is_set():
            raise RuntimeError("identity is not resolved yet")
        current = self._cycle
        if current is not None and current.live and current.viewer_id == viewer_id:
            return
        if current is not None:
            current.live = False
            if current.task is not None and not current.task.done():
                self._abandoned.append(current)
            logger.info(f"Viewer changed {current.viewer_id} -> {viewer_id}, abandoning cycle {current.token}")

        self._abandoned = [c for c in self._abandoned if not c.task.done()]
        self._sequence += 1
        cycle = _Cycle(self._sequence, viewer_id)
        self._cycle = cycle
        cycle.task = asyncio.ensure_future(self._run(cycle))

    def unmount(self) -> None:
        """Tear down: the live cycle and any abandoned ones still running are cancelled."""
        cycle = self._cycle
        if cycle is None:
            return
        for stale in self._abandoned + [cycle]:
            stale.live = False
            if stale.task is not None and not stale.task.done():
                stale.task.cancel()
        self._abandoned = []
        logger.debug(f"Unmounted, cycle {cycle.token} cancelled")

    async def wait(self) -> ViewState:
        """Wait for the current cycle to finish and return the view state."""
        while self._cycle is not None and self._cycle.task is not None:
            task = self._cycle.task
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
            if task is self._cycle.task:
                break
        return self._view

    def _is_current(self, cycle: _Cycle) -> bool:
        return cycle.live and cycle.token == self._sequence

    def _set(self, view: ViewState) -> None:
        self._view = view
        for listener in list(self._listeners):
            listener(view)

    def _commit(self, cycle: _Cycle, **changes) -> bool:
        if not self._is_current(cycle):
            logger.debug(f"Dropping update from stale cycle {cycle.token}: {sorted(changes)}")
            return False
        previous = self._view.state
        self._set(replace(self._view, **changes))
        if self._view.state != previous:
            logger.info(f"Feed state {previous.value} -> {self._view.state.value} (viewer {cycle.viewer_id})")
        return True

    async def _fetch(self, viewer_id: int) -> FeedSnapshot:
        return await self.backend.fetch_feed(FeedRequest(viewer_id=viewer_id, limit=self.feed_limit))

    async def _run(self, cycle: _Cycle) -> None:
        viewer_id = cycle.viewer_id
        self._commit(
            cycle,
            state=SyncState.LOADING,
            viewer_id=viewer_id,
            snapshot=None,
            error=None,
            progress=None,
        )

        try:
            snapshot = await self._fetch(viewer_id)
        except FetchFailed as e:
            self._commit(cycle, state=SyncState.ERROR, error=str(e))
            return

        if not snapshot.is_empty:
            self._commit(cycle, state=SyncState.READY, snapshot=snapshot)
            return

        if not self._commit(cycle, state=SyncState.INITIALIZING, snapshot=snapshot):
            return

        # Best effort: one attempt, never retried, never fatal.
        try:
            await self.backend.init_feed(viewer_id)
        except InitFailed as e:
            logger.warning(f"Indexing trigger failed, polling anyway: {e}")
        if not self._is_current(cycle):
            return

        result = await self.poller.run(
            viewer_id,
            is_live=lambda: self._is_current(cycle),
            on_progress=lambda message: self._commit(cycle, progress=message),
        )
        if result.cancelled or not self._is_current(cycle):
            return

        try:
            snapshot = await self._fetch(viewer_id)
        except FetchFailed as e:
            # Initializing only ever moves to Ready; keep the empty snapshot.
            logger.error(f"Refetch after indexing failed for {viewer_id}: {e}")
            advisory = f"{self._view.advisory} {e}" if self._view.advisory else str(e)
            self._commit(cycle, state=SyncState.READY, progress=None, advisory=advisory)
            return

        self._commit(cycle, state=SyncState.READY, snapshot=snapshot, progress=None)
