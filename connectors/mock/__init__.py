"""Mock PLEX connector package (in-memory ERP for development and tests)."""

from connectors.mock.mock_connector import MockPlexConnector

__all__ = ["MockPlexConnector"]
