"""Durable media upload pipeline: staged files to object storage."""

__version__ = "0.1.0"
