"""PLEX Connector Package.

Implements the ERPConnector interface for the PLEX manufacturing ERP.
"""

from connectors.plex.plex_connector import PlexConnector
from connectors.plex.plex_client import (
    PlexApiClient,
    PlexApiConfig,
    PlexApiError,
    PlexAuthenticationError,
    PlexNotFoundError,
    PlexRateLimitError,
    PlexValidationError,
    RetryConfig,
)

__all__ = [
    # Connector
    "PlexConnector",
    # Client
    "PlexApiClient",
    "PlexApiConfig",
    "RetryConfig",
    # Errors
    "PlexApiError",
    "PlexAuthenticationError",
    "PlexNotFoundError",
    "PlexRateLimitError",
    "PlexValidationError",
]
