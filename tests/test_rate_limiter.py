"""
Tests for the per-subject sliding-window rate limiter.
"""

import asyncio

import pytest

from faculty_authz.core.auth import AuthorizationCheckFailed, RateLimiter, RateLimitPolicy, Role
from faculty_authz.implementations.rate_store.memory import MemoryRateStore


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryRateStore:
    return MemoryRateStore()


@pytest.fixture
def limiter(store, clock) -> RateLimiter:
    policy = RateLimitPolicy(
        window_seconds=900,
        limits={Role.STUDENT: 3, Role.LECTURER: 5, Role.PRL: 6, Role.PROGRAM_LEADER: 8},
        default_limit=2,
        sweep_interval_seconds=60,
    )
    return RateLimiter(store, policy, clock=clock)


@pytest.mark.asyncio
async def test_allows_up_to_limit_then_denies(limiter):
    decisions = [await limiter.try_acquire(1, "Student") for _ in range(4)]

    assert [d.allowed for d in decisions] == [True, True, True, False]
    assert [d.remaining for d in decisions[:3]] == [2, 1, 0]
    assert decisions[3].limit == 3
    assert decisions[3].retry_after == 900


@pytest.mark.asyncio
async def test_retry_after_tracks_oldest_request(limiter, clock):
    await limiter.try_acquire(1, "Student")
    clock.advance(100)
    await limiter.try_acquire(1, "Student")
    await limiter.try_acquire(1, "Student")
    clock.advance(50)

    decision = await limiter.try_acquire(1, "Student")

    assert not decision.allowed
    assert decision.retry_after == 750


@pytest.mark.asyncio
async def test_window_slides(limiter, clock):
    for _ in range(3):
        await limiter.try_acquire(1, "Student")
    assert not (await limiter.try_acquire(1, "Student")).allowed

    clock.advance(901)

    assert (await limiter.try_acquire(1, "Student")).allowed


@pytest.mark.asyncio
async def test_denied_requests_are_not_recorded(limiter, clock, store):
    for _ in range(10):
        await limiter.try_acquire(1, "Student")

    assert await store.count("user:1", clock(), 900) == 3


@pytest.mark.asyncio
async def test_subjects_are_independent(limiter):
    for _ in range(3):
        await limiter.try_acquire(1, "Student")

    assert not (await limiter.try_acquire(1, "Student")).allowed
    assert (await limiter.try_acquire(2, "Student")).allowed


@pytest.mark.asyncio
@pytest.mark.parametrize("role, limit", [
    ("st", 3),
    ("teacher", 5),
    ("Principal Lecturer", 6),
    ("PL", 8),
    ("Dean", 2),
    (None, 2),
])
async def test_limit_follows_canonical_role(limiter, role, limit):
    decision = await limiter.try_acquire(1, role)

    assert decision.limit == limit


@pytest.mark.asyncio
async def test_unauthenticated_requests_are_not_counted(limiter, store):
    decision = await limiter.try_acquire(None, None)

    assert decision.allowed
    assert decision.limit == 0
    assert len(store) == 0


@pytest.mark.asyncio
async def test_concurrent_requests_never_exceed_limit(limiter):
    decisions = await asyncio.gather(*(limiter.try_acquire(1, "Lecturer") for _ in range(20)))

    assert sum(d.allowed for d in decisions) == 5


@pytest.mark.asyncio
async def test_idle_windows_are_swept(limiter, clock, store):
    await limiter.try_acquire(1, "Student")
    await limiter.try_acquire(2, "Student")
    assert len(store) == 2

    clock.advance(1000)
    await limiter.try_acquire(3, "Student")

    assert len(store) == 1


@pytest.mark.asyncio
async def test_store_failure_fails_closed(clock):
    class BrokenStore(MemoryRateStore):
        async def hit(self, key, now, window_seconds, limit):
            raise ConnectionError("redis down")

    limiter = RateLimiter(BrokenStore(), clock=clock)

    with pytest.raises(AuthorizationCheckFailed):
        await limiter.try_acquire(1, "Student")


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [["Student"], {"name": "PRL"}])
async def test_unhashable_role_fails_closed(limiter, store, role):
    with pytest.raises(AuthorizationCheckFailed):
        await limiter.try_acquire(1, role)

    assert len(store) == 0


def test_policy_from_settings():
    from faculty_authz.core.config import RateLimitSettings

    policy = RateLimitPolicy.from_settings(RateLimitSettings(student=7, program_leader=70, window_seconds=60))

    assert policy.window_seconds == 60
    assert policy.limit_for("student") == 7
    assert policy.limit_for("pl") == 70
    assert policy.limit_for("Lecturer") == 200
