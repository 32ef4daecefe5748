from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Callable, List

import pytest
import requests

from admin.config import DetectionConfig
from admin.discovery import static_probe
from admin.models import DiscoveryCandidate
from admin.registry import NodeRegistry


class FakeClock:
    """Simulated wall clock; advance() moves time forward without waiting."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class _ManualTimer:
    def __init__(self, due: datetime, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Fires deferred callbacks only when run_due() is called."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.timers: List[_ManualTimer] = []

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(self.clock() + timedelta(seconds=delay_seconds), callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> List[_ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def run_due(self) -> int:
        due = [t for t in self.timers if not t.cancelled and t.due <= self.clock()]
        for timer in due:
            self.timers.remove(timer)
            timer.callback()
        return len(due)


def candidate(ip: str, hostname: str = None, reachable: bool = True) -> DiscoveryCandidate:
    return DiscoveryCandidate(
        ip=ip,
        hostname=hostname,
        services=["render-service", "gpu-monitor"],
        reachable=reachable,
    )


class MutableProbe:
    """Probe whose candidate list tests can change between scans."""

    def __init__(self, candidates: List[DiscoveryCandidate] = None):
        self.candidates = list(candidates or [])
        self.calls = 0

    def __call__(self) -> List[DiscoveryCandidate]:
        self.calls += 1
        return list(self.candidates)



class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json body")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; maps URLs to canned responses or errors."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def _answer(self, method, url):
        self.calls.append((method, url))
        outcome = self.routes.get((method, url))
        if outcome is None:
            raise requests.ConnectionError(f"connection refused: {url}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def get(self, url, timeout=None):
        return self._answer("GET", url)

    def post(self, url, json=None, timeout=None):
        return self._answer("POST", url)

    def close(self):
        pass

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return ManualScheduler(clock)


@pytest.fixture
def config():
    return DetectionConfig()


@pytest.fixture
def probe():
    return MutableProbe()


@pytest.fixture
def registry(config, probe, clock, scheduler):
    reg = NodeRegistry(config=config, probe=probe, clock=clock, scheduler=scheduler, rng=random.Random(42))
    yield reg
    reg.stop()


@pytest.fixture
def published(registry):
    snapshots = []
    registry.subscribe(snapshots.append)
    return snapshots


@pytest.fixture
def discover(registry, probe):
    """Run one discovery tick that sees the given addresses as reachable."""
    def _discover(*ips: str, hostnames=None):
        hostnames = hostnames or {}
        probe.candidates = [candidate(ip, hostnames.get(ip)) for ip in ips]
        registry.discovery.scan()
        return registry.list_nodes()
    return _discover


@pytest.fixture
def static_registry(clock, scheduler):
    """Registry over a fixed candidate set, for callers that never change it."""
    probe = static_probe([candidate("10.6.0.11", "render-node-01"), candidate("10.6.0.12", "render-node-02")])
    reg = NodeRegistry(probe=probe, clock=clock, scheduler=scheduler, rng=random.Random(7))
    yield reg
    reg.stop()
