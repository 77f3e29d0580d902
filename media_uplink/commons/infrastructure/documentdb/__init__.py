"""Document database abstractions and implementations."""

from media_uplink.commons.infrastructure.documentdb.base import DocumentDBBase
from media_uplink.commons.infrastructure.documentdb.mongodb_provider import (
    MongoDBDocumentDB,
)

__all__ = [
    # Base classes
    "DocumentDBBase",
    # Implementations
    "MongoDBDocumentDB",
]
