"""Search gateway implementations."""

from .base import (
    BackendError,
    GatewayRequest,
    Hit,
    IndexingError,
    QueryError,
    SearchCancelled,
    SearchError,
    SearchGateway,
)

__all__ = [
    "BackendError",
    "GatewayRequest",
    "Hit",
    "IndexingError",
    "QueryError",
    "SearchCancelled",
    "SearchError",
    "SearchGateway",
]
