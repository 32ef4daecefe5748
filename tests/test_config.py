import ast
from pathlib import Path

import pytest

from admin.config import DetectionConfig
from shared.config import float_env, int_env, str_env
from shared.startup_profile import StartupProfile, validate_admin_profile, validate_render_profile


def test_defaults_are_valid():
    config = DetectionConfig()
    config.validate()

    assert config.retention_window_seconds == 10
    assert config.eviction_window_seconds == 300
    assert config.restart_delay_seconds == 5


def test_from_env_reads_overrides(monkeypatch):
    monkeypatch.setenv("RENDERFARM_ADMIN_NODE_IP", "192.168.10.5")
    monkeypatch.setenv("RENDERFARM_RETENTION_WINDOW_SECONDS", "20")
    monkeypatch.setenv("RENDERFARM_DEFAULT_INSTANCE_MAX", "not-a-number")

    config = DetectionConfig.from_env()

    assert config.admin_node_ip == "192.168.10.5"
    assert config.retention_window_seconds == 20.0
    assert config.default_instance_max == 4


def test_updated_ignores_none_and_keeps_original():
    config = DetectionConfig()

    updated = config.updated(vpc_id="vpc-other", admin_node_ip=None)

    assert updated.vpc_id == "vpc-other"
    assert updated.admin_node_ip == config.admin_node_ip
    assert config.vpc_id == "vpc-render-cluster"


@pytest.mark.parametrize(
    "changes",
    [
        {"admin_node_ip": "8.8.8.8"},
        {"vpc_cidr": "10.6.0.0/99"},
        {"render_node_port": 0},
        {"discovery_interval_seconds": 0},
        {"retention_window_seconds": 400},
        {"restart_delay_seconds": -1},
        {"default_instance_max": -1},
        {"no_such_field": 1},
    ],
)
def test_updated_rejects_invalid_values(changes):
    with pytest.raises(ValueError):
        DetectionConfig().updated(**changes)


def test_admin_profile_rejects_port_clash():
    with pytest.raises(ValueError):
        validate_admin_profile(StartupProfile(role="ADMIN", host="0.0.0.0", port=4000), render_node_port=4000)


def test_admin_profile_accepts_defaults():
    validate_admin_profile(StartupProfile(role="ADMIN", host="0.0.0.0", port=3000), render_node_port=4000)


@pytest.mark.parametrize(
    "profile, admin_url",
    [
        (StartupProfile(role="RENDER", host="", port=4000), "http://10.6.0.10:3000"),
        (StartupProfile(role="RENDER", host="0.0.0.0", port=70000), "http://10.6.0.10:3000"),
        (StartupProfile(role="RENDER", host="0.0.0.0", port=4000), "10.6.0.10:3000"),
        (StartupProfile(role="RENDER", host="0.0.0.0", port=4000), "http://admin.local:3000"),
        (StartupProfile(role="RENDER", host="0.0.0.0", port=3000), "http://10.6.0.10:3000"),
        (StartupProfile(role="WORKER", host="0.0.0.0", port=4000), "http://10.6.0.10:3000"),
    ],
)
def test_render_profile_rejects_bad_values(profile, admin_url):
    with pytest.raises(ValueError):
        validate_render_profile(profile, admin_url)


def test_render_profile_accepts_defaults():
    validate_render_profile(StartupProfile(role="RENDER", host="0.0.0.0", port=4000), "http://10.6.0.10:3000")


def _imported_packages(path):
    tree = ast.parse(path.read_text())
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name.split(".")[0]
        elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            yield node.module.split(".")[0]


@pytest.mark.parametrize("package", ["render", "shared"])
def test_render_side_never_imports_admin(package):
    root = Path(__file__).resolve().parent.parent / package
    offenders = sorted(
        str(path.name) for path in root.glob("*.py") if "admin" in set(_imported_packages(path))
    )
    assert offenders == []


def test_shared_env_helpers_fall_back_on_bad_values(monkeypatch):
    monkeypatch.setenv("RENDERFARM_TEST_INT", "12")
    monkeypatch.setenv("RENDERFARM_TEST_FLOAT", "oops")
    monkeypatch.setenv("RENDERFARM_TEST_STR", "   ")

    assert int_env("RENDERFARM_TEST_INT", 1) == 12
    assert float_env("RENDERFARM_TEST_FLOAT", 2.5) == 2.5
    assert str_env("RENDERFARM_TEST_STR", "fallback") == "fallback"
