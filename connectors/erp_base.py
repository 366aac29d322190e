"""Abstract ERP Connector Interface.

This module defines the abstract interface that all ERP connectors must implement.
It is intentionally ERP-agnostic - no PLEX request shaping here.

The kanban engine treats the ERP as the source of truth for:
1. Inventory records and the containers they own
2. Production jobs and work centers
3. Customer orders

Key Design Principles:
- All methods return NORMALIZED canonical models (Inventory, Job, ...) as
  whole-entity snapshots
- The engine, Temporal activities and API routes depend ONLY on this interface
- A missing entity raises ERPNotFoundError; anything else on the wire raises
  ERPTransportError, so callers can tell the two apart
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from core.models import (
    Container,
    ContainerCreate,
    CustomerOrder,
    Inventory,
    InventoryPatch,
    Job,
    JobCreate,
    JobPatch,
    OrderStatus,
    WorkCenter,
)


# =============================================================================
# Enums
# =============================================================================

class ERPEntityType(str, Enum):
    """Types of entities the connector exposes."""
    INVENTORY = "INVENTORY"
    CONTAINER = "CONTAINER"
    JOB = "JOB"
    WORK_CENTER = "WORK_CENTER"
    CUSTOMER_ORDER = "CUSTOMER_ORDER"


class ERPConnectionStatus(str, Enum):
    """Connection status to ERP system."""
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"
    FAILED = "FAILED"
    RATE_LIMITED = "RATE_LIMITED"


# =============================================================================
# Errors
# =============================================================================

class ERPError(Exception):
    """Base exception for connector errors."""
    def __init__(self, message: str, status_code: int = 0, response_body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class ERPNotFoundError(ERPError):
    """The requested entity does not exist in the ERP."""
    def __init__(self, entity_type: ERPEntityType, entity_id: str, response_body: str = ""):
        super().__init__(f"{entity_type.value} {entity_id} not found", 404, response_body)
        self.entity_type = entity_type
        self.entity_id = entity_id


class ERPTransportError(ERPError):
    """The request could not be completed (network, auth, 5xx, bad payload)."""
    pass


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class ERPConfig:
    """Configuration for an ERP connector.

    Generic configuration that can be extended by specific connectors.
    """
    connector_type: str                     # "mock", "plex"
    environment: str = "production"         # "production", "test", "development"
    base_url: Optional[str] = None          # ERP API endpoint

    # Authentication (connector-specific)
    auth_config: Dict[str, Any] = field(default_factory=dict)

    # Behavior
    max_retries: int = 3

    # Connector-specific settings
    custom_settings: Dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Abstract Connector Interface
# =============================================================================

class ERPConnector(ABC):
    """Abstract base class for ERP connectors.

    Implementations:
    - connectors/mock/mock_connector.py (in-memory, development and tests)
    - connectors/plex/plex_connector.py (PLEX REST API)
    """

    def __init__(self, config: ERPConfig):
        self.config = config
        self._status = ERPConnectionStatus.DISCONNECTED

    # -------------------------------------------------------------------------
    # Connection Management
    # -------------------------------------------------------------------------

    @abstractmethod
    async def connect(self) -> bool:
        """Open the connection. Returns True on success."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection and release resources."""
        pass

    @property
    def connection_status(self) -> ERPConnectionStatus:
        return self._status

    # -------------------------------------------------------------------------
    # Inventory
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_inventory(self) -> List[Inventory]:
        """All inventory records."""
        pass

    @abstractmethod
    async def get_inventory_by_part(self, part_number: str) -> Inventory:
        """Inventory record for one part.

        Raises:
            ERPNotFoundError: No record for ``part_number``
        """
        pass

    @abstractmethod
    async def update_inventory(self, part_number: str, patch: InventoryPatch) -> Inventory:
        """Apply a partial update and return the new snapshot.

        Raises:
            ERPNotFoundError: No record for ``part_number``
        """
        pass

    @abstractmethod
    async def get_containers(self) -> List[Container]:
        """Every container across all inventory records."""
        pass

    @abstractmethod
    async def create_container(self, container: ContainerCreate) -> Container:
        """Register a new container; the ERP assigns the serial number."""
        pass

    # -------------------------------------------------------------------------
    # Jobs
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_jobs(self) -> List[Job]:
        pass

    @abstractmethod
    async def create_job(self, job: JobCreate) -> Job:
        pass

    @abstractmethod
    async def update_job(self, job_id: str, patch: JobPatch) -> Job:
        """Raises ERPNotFoundError if the job does not exist."""
        pass

    @abstractmethod
    async def reorder_jobs(self, job_ids: List[str]) -> None:
        """Set job sort order to the position in ``job_ids`` (1-based)."""
        pass

    @abstractmethod
    async def get_work_centers(self) -> List[WorkCenter]:
        pass

    # -------------------------------------------------------------------------
    # Customer Orders
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_customer_orders(self) -> List[CustomerOrder]:
        pass

    @abstractmethod
    async def update_order_status(self, order_id: str, status: OrderStatus) -> CustomerOrder:
        """Raises ERPNotFoundError if the order does not exist."""
        pass

    # -------------------------------------------------------------------------
    # Utility
    # -------------------------------------------------------------------------

    def get_connector_name(self) -> str:
        """Get the connector type name."""
        return self.config.connector_type

    def get_environment(self) -> str:
        """Get the environment (production/development)."""
        return self.config.environment


# =============================================================================
# Connector Factory
# =============================================================================

_connector_registry: Dict[str, type] = {}


def register_connector(connector_type: str):
    """Decorator to register a connector implementation."""
    def decorator(cls):
        _connector_registry[connector_type] = cls
        return cls
    return decorator


def create_connector(config: ERPConfig) -> ERPConnector:
    """Create a connector instance from configuration.

    Args:
        config: ERPConfig with connector_type specified

    Returns:
        Configured connector instance

    Raises:
        ValueError: If connector_type is not registered
    """
    connector_type = config.connector_type.lower()

    if connector_type not in _connector_registry:
        available = list(_connector_registry.keys())
        raise ValueError(
            f"Unknown connector type: {connector_type}. "
            f"Available: {available}"
        )

    connector_class = _connector_registry[connector_type]
    return connector_class(config)


def list_available_connectors() -> List[str]:
    """List all registered connector types."""
    return list(_connector_registry.keys())
