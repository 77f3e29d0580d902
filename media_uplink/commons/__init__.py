"""Commons package - configuration, telemetry and storage providers."""
