"""
Render Node Launcher Script

Starts one render node agent: registers its private address with the admin
node, heartbeats every few seconds and serves GET /metrics and POST /start|/stop.

Usage:
    python scripts/run_render_node.py --admin-ip 10.6.0.10 --port 4000

Environment variables:
    RENDERFARM_ADMIN_IP: Admin node private IP (prompted for when unset)
    RENDERFARM_LOG_LEVEL: Log level (default: INFO)
"""

import os
import sys

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from render.service import main


if __name__ == "__main__":
    sys.exit(main())
