from admin.models import BulkOperation, NodeOperation, NodeStatus, OperationError


def test_freeze_stamps_operation_and_clears_flag(registry, discover, clock, published):
    discover("10.6.0.11")

    result = registry.commands.freeze("node-11")

    assert result.success is True
    node = registry.get_node("node-11")
    assert node.operations.can_freeze is False
    assert node.operations.last_operation == NodeOperation.FREEZE
    assert node.operations.operation_time == clock()
    assert len(published) == 2


def test_freeze_unknown_node_is_not_found(registry, published):
    result = registry.commands.freeze("ghost")

    assert result.success is False
    assert result.error == OperationError.NOT_FOUND
    assert published == []


def test_second_freeze_is_not_permitted_and_changes_nothing(registry, discover, clock, published):
    discover("10.6.0.11")
    registry.commands.freeze("node-11")
    after_first = registry.get_node("node-11")
    publishes = len(published)

    clock.advance(3)
    result = registry.commands.freeze("node-11")

    assert result.success is False
    assert result.error == OperationError.NOT_PERMITTED
    assert registry.get_node("node-11") == after_first
    assert len(published) == publishes


def test_restart_goes_offline_then_back_online(registry, discover, clock, scheduler, published):
    discover("10.6.0.11")
    registry.commands.freeze("node-11")
    publishes = len(published)

    result = registry.commands.restart("node-11")

    assert result.success is True
    node = registry.get_node("node-11")
    assert node.node_status == NodeStatus.OFFLINE
    assert node.operations.last_operation == NodeOperation.RESTART
    assert registry.deferred.is_pending("node-11")

    clock.advance(4.9)
    assert scheduler.run_due() == 0
    assert registry.get_node("node-11").node_status == NodeStatus.OFFLINE

    clock.advance(0.1)
    assert scheduler.run_due() == 1

    node = registry.get_node("node-11")
    assert node.node_status == NodeStatus.ONLINE
    assert node.operations.can_freeze is True
    assert node.last_seen == clock()
    assert len(published) == publishes + 2


def test_restart_not_permitted_when_flag_cleared(registry, discover):
    discover("10.6.0.11")
    registry.store.get("node-11").operations.can_restart = False

    result = registry.commands.restart("node-11")

    assert result.error == OperationError.NOT_PERMITTED
    assert registry.get_node("node-11").node_status == NodeStatus.ONLINE


def test_restart_completion_does_not_resurrect_evicted_node(registry, discover, clock, scheduler):
    discover("10.6.0.11")
    registry.commands.restart("node-11")
    registry.store.remove("node-11")

    clock.advance(5)
    scheduler.run_due()

    assert registry.list_nodes() == []


def test_eviction_cancels_pending_restart(registry, discover, clock, scheduler):
    discover("10.6.0.11")
    clock.advance(299)
    registry.commands.restart("node-11")
    clock.advance(2)

    registry.monitor.check_heartbeats()

    assert registry.list_nodes() == []
    assert not registry.deferred.is_pending("node-11")
    assert scheduler.pending == []


def test_restart_completion_skips_superseded_operation(registry, discover, clock, scheduler):
    discover("10.6.0.11")
    registry.commands.restart("node-11")
    clock.advance(1)
    registry.commands.freeze("node-11")

    clock.advance(5)
    scheduler.run_due()

    node = registry.get_node("node-11")
    assert node.node_status == NodeStatus.OFFLINE
    assert node.operations.last_operation == NodeOperation.FREEZE
    assert node.operations.can_freeze is False


def test_second_restart_replaces_pending_timer(registry, discover, clock, scheduler):
    discover("10.6.0.11")
    registry.commands.restart("node-11")
    clock.advance(3)
    registry.commands.restart("node-11")

    clock.advance(2)
    assert scheduler.run_due() == 0
    assert registry.get_node("node-11").node_status == NodeStatus.OFFLINE

    clock.advance(3)
    assert scheduler.run_due() == 1
    assert registry.get_node("node-11").node_status == NodeStatus.ONLINE


def test_connect_remote_returns_descriptor_without_status_change(registry, discover, published):
    discover("10.6.0.11")

    result = registry.commands.connect_remote("node-11")

    assert result.success is True
    assert result.connection.url == "ssh://admin@10.6.0.11:22"
    assert result.connection.protocol == "ssh"
    node = registry.get_node("node-11")
    assert node.node_status == NodeStatus.ONLINE
    assert node.operations.last_operation == NodeOperation.REMOTE
    assert len(published) == 2


def test_connect_remote_requires_capability(registry, discover):
    discover("10.6.0.11")
    registry.store.get("node-11").operations.can_remote = False

    result = registry.commands.connect_remote("node-11")

    assert result.error == OperationError.NOT_PERMITTED
    assert result.connection is None


def test_get_details_returns_copy(registry, discover):
    discover("10.6.0.11")

    details = registry.commands.get_details("node-11")
    details.operations.can_freeze = False

    assert registry.store.get("node-11").operations.can_freeze is True
    assert registry.commands.get_details("ghost") is None


def test_bulk_freeze_reports_per_node_outcome(registry, discover):
    discover("10.6.0.11", "10.6.0.12", "10.6.0.13",
             hostnames={"10.6.0.11": "a", "10.6.0.12": "b", "10.6.0.13": "c"})
    registry.commands.freeze("b")

    outcome = registry.commands.bulk_operation(["a", "b", "c"], "freeze")

    assert outcome.operation == BulkOperation.FREEZE
    assert outcome.succeeded == {"a", "c"}
    assert outcome.failed == {"b"}
    assert [r.node_id for r in outcome.results] == ["a", "b", "c"]


def test_bulk_restart_continues_past_unknown_ids(registry, discover):
    discover("10.6.0.11")

    outcome = registry.commands.bulk_operation(["ghost", "node-11"], BulkOperation.RESTART)

    assert outcome.succeeded == {"node-11"}
    assert outcome.failed == {"ghost"}
    assert registry.get_node("node-11").node_status == NodeStatus.OFFLINE


def test_bulk_operation_survives_handler_exception(registry, discover, monkeypatch):
    discover("10.6.0.11", "10.6.0.12")
    original = registry.commands.freeze

    def exploding(node_id):
        if node_id == "node-11":
            raise RuntimeError("command channel closed")
        return original(node_id)

    monkeypatch.setattr(registry.commands, "freeze", exploding)

    outcome = registry.commands.bulk_operation(["node-11", "node-12"], "freeze")

    assert outcome.failed == {"node-11"}
    assert outcome.succeeded == {"node-12"}
