import pytest
import requests

from render.heartbeat_sender import HeartbeatSender
from shared import admin_client as admin_client_module
from shared.admin_client import AdminClient
from tests.conftest import FakeResponse


class _Response(FakeResponse):
    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


@pytest.fixture()
def posts(monkeypatch):
    calls = []
    answers = {}

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json))
        answer = answers.get(url)
        if isinstance(answer, Exception):
            raise answer
        return answer or _Response(200, {"status": "ok"})

    monkeypatch.setattr(admin_client_module.requests, "post", fake_post)
    return calls, answers


def test_register_posts_address(posts):
    calls, _ = posts

    result = AdminClient("http://10.6.0.10:3000/").register("10.6.0.11")

    assert result == {"status": "ok"}
    assert calls == [("http://10.6.0.10:3000/api/register", {"ip": "10.6.0.11"})]


def test_register_rejected_address_raises_value_error(posts):
    _, answers = posts
    answers["http://10.6.0.10:3000/api/register"] = _Response(400, {"detail": "bad"})

    with pytest.raises(ValueError):
        AdminClient("http://10.6.0.10:3000").register("8.8.8.8")


def test_send_once_success(posts):
    calls, _ = posts
    sender = HeartbeatSender(AdminClient("http://10.6.0.10:3000"), "10.6.0.11")

    assert sender.send_once() is True
    assert sender.last_sent_at is not None
    assert calls == [("http://10.6.0.10:3000/api/heartbeat", {"ip": "10.6.0.11"})]


def test_send_once_before_discovery_is_not_fatal(posts):
    _, answers = posts
    answers["http://10.6.0.10:3000/api/heartbeat"] = _Response(404, {"detail": "not yet"})
    sender = HeartbeatSender(AdminClient("http://10.6.0.10:3000"), "10.6.0.11")

    assert sender.send_once() is False
    assert sender.last_sent_at is None


def test_send_once_network_error(posts):
    _, answers = posts
    answers["http://10.6.0.10:3000/api/heartbeat"] = requests.ConnectionError("refused")
    sender = HeartbeatSender(AdminClient("http://10.6.0.10:3000"), "10.6.0.11")

    assert sender.send_once() is False


def test_start_and_stop(posts):
    calls, _ = posts
    sender = HeartbeatSender(AdminClient("http://10.6.0.10:3000"), "10.6.0.11", interval_seconds=60)

    sender.start()
    sender.stop()

    assert sender.running is False
    assert len(calls) <= 1
