"""Core module - ERP-neutral models, errors, configuration and observability.

This module contains the canonical data models, the error hierarchy, settings
and logging/metrics shared by the kanban engine, the container allocator, the
API and the Temporal worker. It is intentionally ERP-agnostic.

ERP-specific logic (PLEX request shaping) belongs in /connectors/.
"""

__version__ = "1.0.0"
