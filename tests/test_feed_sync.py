import asyncio

import pytest

from gitcast_client.errors import FetchFailed, InitFailed
from gitcast_client.feed_sync import FeedSyncStateMachine, SyncState
from gitcast_client.identity import IDENTITY_ADVISORY, IdentityResolver
from gitcast_client.poller import StatusPoller
from gitcast_client.progress import ProgressIndicator

from fakes import FakeBackend, FakeClock, FakeHost, FakeSleep, make_snapshot, run_async


def _machine(backend, host, config, sleep=None) -> FeedSyncStateMachine:
    resolver = IdentityResolver(host, default_viewer_id=6023)
    poller = StatusPoller(backend, config, sleep=sleep or FakeSleep(), progress=ProgressIndicator(clock=FakeClock()))
    return FeedSyncStateMachine(backend, resolver, poller, feed_limit=100)


def test_non_empty_feed_goes_straight_to_ready(poller_config) -> None:
    backend = FakeBackend(feeds=[make_snapshot("a", "b")])
    states = []

    async def scenario():
        machine = _machine(backend, FakeHost(fid=42), poller_config)
        machine.subscribe(lambda view: states.append(view.state))
        await machine.mount()
        return await machine.wait()

    view = run_async(scenario())

    assert view.state is SyncState.READY
    assert view.viewer_id == 42
    assert [e.id for e in view.snapshot.events] == ["a", "b"]
    assert backend.calls == [("feed", 42)]
    assert states == [SyncState.LOADING, SyncState.READY]


def test_fetch_failure_is_terminal_error(poller_config) -> None:
    backend = FakeBackend(feeds=[FetchFailed("Failed to fetch feed", 500)])

    async def scenario():
        machine = _machine(backend, FakeHost(fid=42), poller_config)
        await machine.mount()
        return await machine.wait()

    view = run_async(scenario())

    assert view.state is SyncState.ERROR
    assert view.error == "Failed to fetch feed"
    assert backend.kinds() == ["feed"]


def test_cold_start_inits_polls_and_refetches_once(poller_config) -> None:
    backend = FakeBackend(feeds=[make_snapshot(), make_snapshot("x")], statuses=[1, 3, 5, 8])
    sleep = FakeSleep()
    views = []

    async def scenario():
        machine = _machine(backend, FakeHost(fid=7), poller_config, sleep=sleep)
        machine.subscribe(views.append)
        await machine.mount()
        return await machine.wait()

    view = run_async(scenario())

    assert backend.kinds() == ["feed", "init", "status", "status", "status", "feed"]
    assert sleep.delays == [2.0, 2.0, 2.0]
    assert view.state is SyncState.READY
    assert [e.id for e in view.snapshot.events] == ["x"]
    assert view.progress is None

    states = [v.state for v in views]
    assert states[0] is SyncState.LOADING
    assert states[1] is SyncState.INITIALIZING
    assert states[-1] is SyncState.READY
    progress = [v.progress for v in views if v.state is SyncState.INITIALIZING and v.progress]
    assert len(progress) == 3
    assert "5/5" in progress[-1]


def test_exhausted_poll_still_ends_ready_even_if_empty(poller_config) -> None:
    backend = FakeBackend(feeds=[make_snapshot(), make_snapshot()], statuses=[0] * 10)

    async def scenario():
        machine = _machine(backend, FakeHost(fid=7), poller_config)
        await machine.mount()
        return await machine.wait()

    view = run_async(scenario())

    assert view.state is SyncState.READY
    assert view.snapshot.is_empty
    assert backend.kinds().count("init") == 1
    assert backend.kinds().count("status") == poller_config.max_attempts
    assert backend.kinds().count("feed") == 2


def test_init_failure_is_not_fatal(poller_config) -> None:
    backend = FakeBackend(
        feeds=[make_snapshot(), make_snapshot("x")],
        statuses=[9],
        init_error=InitFailed("Failed to start indexing"),
    )

    async def scenario():
        machine = _machine(backend, FakeHost(fid=7), poller_config)
        await machine.mount()
        return await machine.wait()

    view = run_async(scenario())

    assert view.state is SyncState.READY
    assert view.error is None
    assert backend.kinds() == ["feed", "init", "status", "feed"]


def test_refetch_failure_keeps_empty_snapshot(poller_config) -> None:
    backend = FakeBackend(feeds=[make_snapshot(), FetchFailed("Failed to fetch feed")], statuses=[9])

    async def scenario():
        machine = _machine(backend, FakeHost(fid=7), poller_config)
        await machine.mount()
        return await machine.wait()

    view = run_async(scenario())

    assert view.state is SyncState.READY
    assert view.snapshot.is_empty
    assert view.advisory == "Failed to fetch feed"


def test_refetch_failure_keeps_identity_advisory(poller_config) -> None:
    backend = FakeBackend(feeds=[make_snapshot(), FetchFailed("Failed to fetch feed")], statuses=[9])

    async def scenario():
        machine = _machine(backend, FakeHost(error=RuntimeError("no sdk")), poller_config)
        await machine.mount()
        return await machine.wait()

    view = run_async(scenario())

    assert view.state is SyncState.READY
    assert IDENTITY_ADVISORY in view.advisory
    assert "Failed to fetch feed" in view.advisory


def test_identity_failure_uses_default_and_finishes(poller_config) -> None:
    backend = FakeBackend(feeds=[make_snapshot("a")])

    async def scenario():
        machine = _machine(backend, FakeHost(error=RuntimeError("no sdk")), poller_config)
        await machine.mount()
        return await machine.wait()

    view = run_async(scenario())

    assert view.state is SyncState.READY
    assert view.viewer_id == 6023
    assert view.advisory == IDENTITY_ADVISORY
    assert backend.calls == [("feed", 6023)]


def test_no_fetch_before_identity_is_ready(poller_config) -> None:
    backend = FakeBackend(feeds=[make_snapshot("a")])

    async def scenario():
        release = asyncio.Event()

        class SlowHost(FakeHost):
            async def get_context(self):
                await release.wait()
                return await super().get_context()

        machine = _machine(backend, SlowHost(fid=3), poller_config)
        mounting = asyncio.ensure_future(machine.mount())
        for _ in range(5):
            await asyncio.sleep(0)
        calls_before = list(backend.calls)
        state_before = machine.view.state
        release.set()
        await mounting
        return calls_before, state_before, await machine.wait()

    calls_before, state_before, view = run_async(scenario())

    assert calls_before == []
    assert state_before is SyncState.IDLE
    assert view.state is SyncState.READY


def test_stale_response_is_not_committed(poller_config) -> None:
    backend = FakeBackend()
    backend.feeds_by_viewer = {1: [make_snapshot("old")], 2: [make_snapshot("new")]}

    async def scenario():
        gate = asyncio.Event()
        backend.feed_gates[1] = gate
        machine = _machine(backend, FakeHost(fid=1), poller_config)
        await machine.mount()
        await asyncio.sleep(0)
        machine.set_identity(2)
        settled = await machine.wait()
        gate.set()
        for _ in range(5):
            await asyncio.sleep(0)
        return settled, machine.view

    settled, final = run_async(scenario())

    assert settled.viewer_id == 2
    assert [e.id for e in settled.snapshot.events] == ["new"]
    assert final is settled
    assert backend.calls == [("feed", 1), ("feed", 2)]


def test_unmount_cancels_abandoned_cycle(poller_config) -> None:
    backend = FakeBackend()
    backend.feeds_by_viewer = {2: [make_snapshot("new")]}

    async def scenario():
        backend.feed_gates[1] = asyncio.Event()
        machine = _machine(backend, FakeHost(fid=1), poller_config)
        await machine.mount()
        await asyncio.sleep(0)
        abandoned = machine._cycle.task
        machine.set_identity(2)
        settled = await machine.wait()
        machine.unmount()
        for _ in range(5):
            await asyncio.sleep(0)
        return abandoned, settled

    abandoned, settled = run_async(scenario())

    assert abandoned.cancelled()
    assert settled.viewer_id == 2
    assert backend.calls == [("feed", 1), ("feed", 2)]


def test_same_identity_does_not_restart(poller_config) -> None:
    backend = FakeBackend(feeds=[make_snapshot("a"), make_snapshot("b")])

    async def scenario():
        machine = _machine(backend, FakeHost(fid=1), poller_config)
        await machine.mount()
        machine.set_identity(1)
        return await machine.wait()

    view = run_async(scenario())

    assert backend.kinds() == ["feed"]
    assert [e.id for e in view.snapshot.events] == ["a"]


def test_unmount_mid_poll_stops_all_mutations(poller_config) -> None:
    backend = FakeBackend(feeds=[make_snapshot(), make_snapshot("x")], statuses=[0] * 10)
    views = []
    marker = {}

    async def scenario():
        holder = {}

        def on_sleep(count):
            if count == 2:
                marker["views"] = len(views)
                marker["calls"] = len(backend.calls)
                holder["machine"].unmount()

        machine = _machine(backend, FakeHost(fid=7), poller_config, sleep=FakeSleep(on_sleep=on_sleep))
        holder["machine"] = machine
        machine.subscribe(views.append)
        await machine.mount()
        view = await machine.wait()
        for _ in range(5):
            await asyncio.sleep(0)
        return view

    view = run_async(scenario())

    assert len(views) == marker["views"]
    assert len(backend.calls) == marker["calls"]
    assert view.state is SyncState.INITIALIZING
    assert backend.kinds().count("feed") == 1


def test_identity_change_mid_poll_abandons_old_cycle(poller_config) -> None:
    backend = FakeBackend(statuses=[0] * 10)
    backend.feeds_by_viewer = {1: [make_snapshot(), make_snapshot("late")], 2: [make_snapshot("b1")]}
    views = []
    marker = {}

    async def scenario():
        holder = {}

        def on_sleep(count):
            if count == 2:
                marker["views"] = len(views)
                holder["machine"].set_identity(2)

        machine = _machine(backend, FakeHost(fid=1), poller_config, sleep=FakeSleep(on_sleep=on_sleep))
        holder["machine"] = machine
        machine.subscribe(views.append)
        await machine.mount()
        view = await machine.wait()
        for _ in range(5):
            await asyncio.sleep(0)
        return view, machine.view

    settled, final = run_async(scenario())

    assert final.state is SyncState.READY
    assert final.viewer_id == 2
    assert [e.id for e in final.snapshot.events] == ["b1"]
    assert all(v.viewer_id == 2 for v in views[marker["views"]:])
    assert ("feed", 1) in backend.calls
    assert backend.calls.count(("status", 1)) == 1
    assert backend.calls.count(("feed", 1)) == 1
    assert backend.calls.count(("init", 1)) == 1


def test_set_identity_before_mount_is_rejected(poller_config) -> None:
    async def scenario():
        machine = _machine(FakeBackend(), FakeHost(fid=1), poller_config)
        machine.set_identity(1)

    with pytest.raises(RuntimeError):
        run_async(scenario())


def test_unsubscribe_stops_notifications(poller_config) -> None:
    backend = FakeBackend(feeds=[make_snapshot("a")])
    views = []

    async def scenario():
        machine = _machine(backend, FakeHost(fid=1), poller_config)
        unsubscribe = machine.subscribe(views.append)
        unsubscribe()
        await machine.mount()
        return await machine.wait()

    assert run_async(scenario()).state is SyncState.READY
    assert views == []
