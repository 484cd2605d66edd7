"""Public interface for the external monitoring source adapter."""

from __future__ import annotations

from .client import (
    ConnectionStatus,
    ExternalPayloadError,
    ExternalSourceClient,
    ExternalSourceError,
    ExternalSourceNotConnectedError,
)
from .reader import ConfiguredFeedReader, ExternalFeedReader
from .tables import external_metadata

__all__ = [
    "ConfiguredFeedReader",
    "ConnectionStatus",
    "ExternalFeedReader",
    "ExternalPayloadError",
    "ExternalSourceClient",
    "ExternalSourceError",
    "ExternalSourceNotConnectedError",
    "external_metadata",
]
