"""
Environment settings read by both the admin node and render nodes.

Every value comes from a RENDERFARM_* variable with a typed fallback, so a
malformed variable falls back to the default instead of failing the boot.
"""

import os


def int_env(name: str, default: int) -> int:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return int(raw)
    except ValueError:
        return default


def float_env(name: str, default: float) -> float:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return float(raw)
    except ValueError:
        return default


def str_env(name: str, default: str) -> str:
    return str(os.getenv(name, default)).strip() or default


# Ports both sides must agree on
ADMIN_API_PORT = int_env("RENDERFARM_ADMIN_API_PORT", 3000)
RENDER_NODE_PORT = int_env("RENDERFARM_RENDER_NODE_PORT", 4000)

LOG_LEVEL = str_env("RENDERFARM_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("RENDERFARM_LOG_FILE") or None
