"""
Admin node: the render farm control point

The admin node owns the node liveness registry for every render node in the VPC.
Responsibilities:
- Node record store + heartbeat table
- Discovery of reachable render nodes
- Heartbeat monitoring (Online -> Offline, eviction)
- Freeze / restart / remote-connect / bulk operations
- Snapshot push to dashboards
- Relay of metrics and start/stop commands to render nodes
"""
