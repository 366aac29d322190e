"""Temporal client factory.

Creates connections to a Temporal server using the application settings:
Temporal Cloud when an API key is configured, otherwise a plain connection
(local dev server).
"""

from typing import Optional

from temporalio.client import Client

from core.config import Settings, get_settings


async def get_temporal_client(settings: Optional[Settings] = None) -> Client:
    """Create and return a Temporal client.

    Reads from settings:
    - temporal_endpoint: host:port (TEMPORAL_ENDPOINT)
    - temporal_namespace: Namespace (TEMPORAL_NAMESPACE)
    - temporal_api_key: Temporal Cloud API key (TEMPORAL_API_KEY), enables TLS

    Returns:
        Connected Temporal client

    Raises:
        ValueError: If TEMPORAL_ENDPOINT is not set
    """
    settings = settings or get_settings()

    if not settings.temporal_endpoint:
        raise ValueError(
            "TEMPORAL_ENDPOINT environment variable not set. "
            "Set to your Temporal endpoint (e.g., 'localhost:7233')"
        )

    if settings.temporal_api_key:
        # Temporal Cloud: API key auth over TLS with system certificates
        return await Client.connect(
            target_host=settings.temporal_endpoint,
            namespace=settings.temporal_namespace,
            tls=True,
            api_key=settings.temporal_api_key,
        )

    return await Client.connect(
        target_host=settings.temporal_endpoint,
        namespace=settings.temporal_namespace,
    )
