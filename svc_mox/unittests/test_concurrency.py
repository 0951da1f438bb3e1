"""Concurrent use of a single double from threads and tasks."""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from svc_mox import (
    Any,
    Expectations,
    InOrder,
    Times,
    UnconfiguredCallError,
    call_count,
    verify,
)
from svc_mox.double import domain_of
from svc_mox.unittests._services import Logger, UserService

THREADS = 8
CALLS_PER_THREAD = 250


def test_threaded_calls_get_gapless_sequences() -> None:
    """Every concurrent call is recorded exactly once, in a total order."""
    exp = Expectations(UserService)
    exp.fetch_user(Any()).returns("u").unbounded()
    double = exp.build()
    start = threading.Barrier(THREADS)

    def worker(index: int) -> None:
        start.wait()
        for call in range(CALLS_PER_THREAD):
            double.fetch_user(f"{index}-{call}")

    with ThreadPoolExecutor(max_workers=THREADS) as pool:
        list(pool.map(worker, range(THREADS)))

    records = domain_of(double).records()
    total = THREADS * CALLS_PER_THREAD
    assert [rec.sequence for rec in records] == list(range(total))
    assert len({rec.args for rec in records}) == total
    verify(double, Times(total)).fetch_user(Any())


def test_bounded_entries_are_never_over_consumed() -> None:
    """Racing callers cannot use an entry more often than its count allows."""
    exp = Expectations(UserService)
    exp.ping().returns("a").times(60)
    exp.ping().returns("b").times(40)
    double = exp.build()
    results: list[str] = []
    failures: list[UnconfiguredCallError] = []
    guard = threading.Lock()

    def worker(_: int) -> None:
        for _call in range(20):
            try:
                value = double.ping()
            except UnconfiguredCallError as err:
                with guard:
                    failures.append(err)
            else:
                with guard:
                    results.append(value)

    with ThreadPoolExecutor(max_workers=THREADS) as pool:
        list(pool.map(worker, range(THREADS)))

    assert results.count("a") == 60
    assert results.count("b") == 40
    assert len(failures) == THREADS * 20 - 100
    assert call_count(double, "ping") == THREADS * 20


def test_gathered_tasks_share_one_double() -> None:
    """Async callers are admitted one at a time without losing calls."""
    exp = Expectations(UserService)
    exp.load_profile(Any()).runs(lambda user_id: {"id": user_id}).unbounded()
    double = exp.build()

    async def scenario() -> list[dict[str, str]]:
        return await asyncio.gather(
            *(double.load_profile(str(i)) for i in range(50))
        )

    profiles = asyncio.run(scenario())

    assert profiles == [{"id": str(i)} for i in range(50)]
    assert call_count(double, "load_profile") == 50
    assert [rec.sequence for rec in domain_of(double).records()] == list(range(50))


def test_in_order_sees_a_consistent_cross_thread_order() -> None:
    """Calls made in a known order from different threads verify in order."""
    log_exp = Expectations(Logger)
    log_exp.log(Any()).succeeds().unbounded()
    log = log_exp.build(name="log")
    user_exp = Expectations(UserService)
    user_exp.ping().returns("pong")
    users = user_exp.build(name="users")

    first = threading.Thread(target=log.log, args=("before",))
    first.start()
    first.join()
    second = threading.Thread(target=users.ping)
    second.start()
    second.join()

    order = InOrder(log, users, strict=True)
    order.verify(log).log("before")
    order.verify(users).ping()
    order.verify_no_more_interactions()


@pytest.mark.parametrize("calls", [1, 10])
def test_callbacks_run_outside_the_lock(calls: int) -> None:
    """A blocking callback does not stop other threads from being served."""
    exp = Expectations(UserService)
    release = threading.Event()
    entered = threading.Event()

    def slow(user_id: str) -> str:
        entered.set()
        release.wait(timeout=5)
        return user_id

    exp.fetch_user("slow").runs(slow)
    exp.ping().returns("pong").unbounded()
    double = exp.build()

    with ThreadPoolExecutor(max_workers=2) as pool:
        pending = pool.submit(double.fetch_user, "slow")
        assert entered.wait(timeout=5)
        assert [double.ping() for _ in range(calls)] == ["pong"] * calls
        release.set()
        assert pending.result(timeout=5) == "slow"
