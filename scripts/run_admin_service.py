"""
Admin Service Launcher

Starts the render farm admin node service from the admin/ package.

This service provides:
- Render node registration sink and metrics/start/stop relay
- Node liveness registry (discovery feed + heartbeat monitor)
- Freeze / restart / remote-connect / bulk node operations
- VPC detection status and runtime configuration

Usage:
    python scripts/run_admin_service.py --host 0.0.0.0 --port 3000

Environment Variables:
    RENDERFARM_ADMIN_API_PORT: Admin API port (default: 3000)
    RENDERFARM_ADMIN_BIND_HOST: Bind address (default: 0.0.0.0)
    RENDERFARM_ADMIN_NODE_IP: Admin private IP reported to nodes (default: 10.6.0.10)
    RENDERFARM_VPC_CIDR: VPC range (default: 10.6.0.0/24)
    RENDERFARM_RENDER_NODE_PORT: Render node agent port (default: 4000)
    RENDERFARM_RETENTION_WINDOW_SECONDS / RENDERFARM_EVICTION_WINDOW_SECONDS
"""
import argparse
import os
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import uvicorn

from shared.logging_config import setup_logging


def main() -> None:
    parser = argparse.ArgumentParser(description="Run render farm admin node service")
    parser.add_argument("--host", default=os.getenv("RENDERFARM_ADMIN_BIND_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("RENDERFARM_ADMIN_API_PORT", "3000")))
    args = parser.parse_args()

    setup_logging("admin", level=os.getenv("RENDERFARM_LOG_LEVEL", "INFO"), log_file=os.getenv("RENDERFARM_LOG_FILE"))

    print("=" * 60)
    print("Render Farm Admin Node Service")
    print("=" * 60)
    print(f"API Address: {args.host}:{args.port}")
    print(f"Admin Node IP: {os.getenv('RENDERFARM_ADMIN_NODE_IP', '10.6.0.10')}")
    print(f"VPC CIDR: {os.getenv('RENDERFARM_VPC_CIDR', '10.6.0.0/24')}")
    print("Package: admin/")
    print("=" * 60)

    # Set environment variables for service startup
    os.environ["RENDERFARM_ADMIN_API_PORT"] = str(args.port)
    os.environ["RENDERFARM_ADMIN_BIND_HOST"] = args.host

    uvicorn.run("admin.service:app", host=args.host, port=args.port, reload=False)


if __name__ == "__main__":
    main()
