"""Application layer - use cases and orchestration.

This layer contains:
- Services: upload handling, record reconciliation, job submission
- DTOs: job payloads and results crossing the queue boundary
"""
