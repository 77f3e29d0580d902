"""Infrastructure layer - queue backend and service wiring.

The factory lives in ``media_uplink.infrastructure.factory`` and is not
re-exported here, since it imports the application layer.
"""
