"""
Render node agent

Runs on every render machine in the VPC.
Responsibilities:
- Report simulated render metrics on GET /metrics
- Accept start/stop commands relayed by the admin node
- Register with the admin node on boot and send periodic heartbeats
"""
