"""
Exception hierarchy for AMM factory discovery.

Every failure the discovery pipeline can report derives from
FactoryDiscoveryError, so callers can catch one type while still being able to
tell which precondition failed.
"""

from typing import Any, Dict, Optional


class FactoryDiscoveryError(Exception):
    """Base exception for all factory discovery errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(FactoryDiscoveryError):
    """Raised when there are configuration-related issues."""

    pass


class ProviderError(FactoryDiscoveryError):
    """Raised when the RPC provider fails to answer a height or log query."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        method: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint
        self.method = method


class MissingBlockNumberError(FactoryDiscoveryError):
    """Raised when a log that would establish a new factory has no block number."""

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.address = address


class UnknownEventSignatureError(FactoryDiscoveryError):
    """Raised when a log's topic0 matches none of the known factory events."""

    def __init__(
        self,
        message: str,
        topic: Optional[str] = None,
        address: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.topic = topic
        self.address = address
