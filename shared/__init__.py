"""
Shared utilities for render farm components.

This package contains common functionality used by the admin node and render nodes:
- logging_config: consistent logging setup
- network: private IPv4 validation and local address detection
- admin_client: HTTP client for the admin node API
- config: RENDERFARM_* env helpers and the ports both roles agree on
- startup_profile: boot-time port and URL checks
"""
