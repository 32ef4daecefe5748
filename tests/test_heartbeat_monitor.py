import random
from datetime import datetime, timezone

import pytest

from admin.heartbeat_monitor import CPU_BOUNDS, GPU_BOUNDS, MEMORY_BOUNDS, refresh_node_metrics
from admin.models import NodeStatus


def test_silence_beyond_retention_marks_offline_in_one_tick(registry, discover, clock, published):
    discover("10.6.0.11")
    clock.advance(10.5)

    changed = registry.monitor.check_heartbeats()

    assert changed is True
    assert registry.get_node("node-11").node_status == NodeStatus.OFFLINE
    assert published[-1][0].node_status == NodeStatus.OFFLINE


def test_recent_heartbeat_keeps_node_online(registry, discover, clock, published):
    discover("10.6.0.11")
    clock.advance(8)
    registry.record_heartbeat("node-11")
    clock.advance(8)

    changed = registry.monitor.check_heartbeats()

    assert changed is False
    assert registry.get_node("node-11").node_status == NodeStatus.ONLINE
    assert len(published) == 1


def test_connect_time_is_used_without_heartbeat(registry, discover, clock):
    discover("10.6.0.11")
    registry.heartbeats.forget("node-11")
    clock.advance(11)

    registry.monitor.check_heartbeats()

    assert registry.get_node("node-11").node_status == NodeStatus.OFFLINE


def test_offline_transition_happens_once(registry, discover, clock, published):
    discover("10.6.0.11")
    clock.advance(11)
    registry.monitor.check_heartbeats()
    count = len(published)

    clock.advance(2)
    changed = registry.monitor.check_heartbeats()

    assert changed is False
    assert len(published) == count


def test_silence_beyond_eviction_removes_record(registry, discover, clock, published):
    discover("10.6.0.11", "10.6.0.12")
    clock.advance(200)
    registry.record_heartbeat("node-12")
    clock.advance(101)

    registry.monitor.check_heartbeats()

    assert [n.id for n in registry.list_nodes()] == ["node-12"]
    assert "node-11" not in registry.heartbeats
    assert [n.id for n in published[-1]] == ["node-12"]


def test_eviction_window_is_exclusive(registry, discover, clock):
    discover("10.6.0.11")
    clock.advance(300)

    registry.monitor.check_heartbeats()

    assert len(registry.list_nodes()) == 1


def test_online_nodes_get_metric_refresh(registry, discover, clock):
    discover("10.6.0.11")
    clock.advance(2)

    registry.monitor.check_heartbeats()

    node = registry.get_node("node-11")
    assert node.last_seen == clock()
    assert node.gpu_info.utilization == f"{node.metrics.gpu_percent:.0f}%"


def test_offline_nodes_keep_their_metrics(registry, discover, clock):
    discover("10.6.0.11")
    clock.advance(11)
    registry.monitor.check_heartbeats()
    before = registry.get_node("node-11")

    clock.advance(2)
    registry.monitor.check_heartbeats()

    after = registry.get_node("node-11")
    assert after.metrics == before.metrics
    assert after.last_seen == before.last_seen


def test_metric_walk_stays_within_bounds(registry, discover):
    discover("10.6.0.11")
    node = registry.store.snapshot("node-11")
    rng = random.Random(1234)
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    for _ in range(500):
        refresh_node_metrics(node, rng, now)
        assert CPU_BOUNDS[0] <= node.metrics.cpu_percent <= CPU_BOUNDS[1]
        assert GPU_BOUNDS[0] <= node.metrics.gpu_percent <= GPU_BOUNDS[1]
        assert MEMORY_BOUNDS[0] <= node.metrics.memory_percent <= MEMORY_BOUNDS[1]
        temperature = int(node.gpu_info.temperature.rstrip("°C"))
        low = 45 + node.metrics.gpu_percent / 100 * 30
        assert low - 1 <= temperature <= low + 6


def test_metric_walk_is_reproducible_with_seeded_random(registry, discover):
    discover("10.6.0.11")
    first = registry.store.snapshot("node-11")
    second = registry.store.snapshot("node-11")
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    rng_a, rng_b = random.Random(99), random.Random(99)
    for _ in range(20):
        refresh_node_metrics(first, rng_a, now)
        refresh_node_metrics(second, rng_b, now)

    assert first.metrics == second.metrics
    assert first.gpu_info == second.gpu_info


@pytest.mark.parametrize("retention", [5.0, 30.0])
def test_retention_window_is_configurable(registry, discover, clock, retention):
    registry.configure(retention_window_seconds=retention)
    discover("10.6.0.11")

    clock.advance(retention - 0.5)
    registry.monitor.check_heartbeats()
    assert registry.get_node("node-11").node_status == NodeStatus.ONLINE

    clock.advance(1)
    registry.monitor.check_heartbeats()
    assert registry.get_node("node-11").node_status == NodeStatus.OFFLINE
