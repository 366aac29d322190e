"""ERP Connectors - Pluggable ERP system integrations.

This package contains the abstract ERP interface and concrete implementations:
- mock/: in-memory PLEX stand-in for development and tests
- plex/: PLEX REST API client

Key Design Principle:
- The kanban engine, Temporal activities and API routes depend ONLY on the
  ERPConnector interface
- All methods return canonical models from core.models

To add a new ERP:
1. Create a new folder (e.g., sap/)
2. Implement ERPConnector interface
3. Register using @register_connector decorator
"""

from connectors.erp_base import (
    # Core interface
    ERPConnector,
    ERPConfig,
    ERPConnectionStatus,
    ERPEntityType,

    # Errors
    ERPError,
    ERPNotFoundError,
    ERPTransportError,

    # Factory functions
    create_connector,
    register_connector,
    list_available_connectors,
)

# Importing the implementations registers them with the factory
from connectors.mock import MockPlexConnector
from connectors.plex import PlexConnector

__all__ = [
    # Core interface
    "ERPConnector",
    "ERPConfig",
    "ERPConnectionStatus",
    "ERPEntityType",

    # Errors
    "ERPError",
    "ERPNotFoundError",
    "ERPTransportError",

    # Implementations
    "MockPlexConnector",
    "PlexConnector",

    # Factory
    "create_connector",
    "register_connector",
    "list_available_connectors",
]
