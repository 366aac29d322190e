"""PLEX ERP Connector.

Implements the ERPConnector interface on top of PlexApiClient. Payloads are
sent and received as camelCase JSON and validated into canonical models.
"""

import logging
from typing import Any, List, Optional
from urllib.parse import quote

from connectors.erp_base import (
    ERPConfig,
    ERPConnectionStatus,
    ERPConnector,
    ERPEntityType,
    ERPNotFoundError,
    register_connector,
)
from connectors.plex.plex_client import (
    PlexApiClient,
    PlexApiConfig,
    PlexApiError,
    PlexNotFoundError,
    RetryConfig,
)
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

logger = logging.getLogger(__name__)


def _patch_body(patch) -> dict:
    """Only the fields that were set, camelCased."""
    return patch.model_dump(mode="json", by_alias=True, exclude_unset=True)


@register_connector("plex")
class PlexConnector(ERPConnector):
    """PLEX implementation of the ERP connector.

    Configuration (ERPConfig):
        base_url: PLEX API root
        auth_config: {"api_key": ..., "client_id": ...}
        custom_settings: {"timeout_seconds": 30}
    """

    def __init__(self, config: ERPConfig, client: Optional[PlexApiClient] = None):
        super().__init__(config)
        if client is None:
            if not config.base_url:
                raise ValueError("PLEX connector requires base_url")
            client = PlexApiClient(
                PlexApiConfig(
                    base_url=config.base_url,
                    api_key=config.auth_config.get("api_key", ""),
                    client_id=config.auth_config.get("client_id", ""),
                    retry_config=RetryConfig(max_retries=config.max_retries),
                    timeout_seconds=config.custom_settings.get("timeout_seconds", 30),
                )
            )
        self.client = client

    async def _call(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        *,
        entity_type: ERPEntityType,
        entity_id: Optional[str] = None,
    ) -> Any:
        """Issue a request, mapping 404 onto ERPNotFoundError for the entity.

        Collection endpoints have no entity id; the endpoint path stands in.
        """
        try:
            return await self.client.request(method, endpoint, data)
        except PlexNotFoundError as e:
            raise ERPNotFoundError(entity_type, entity_id or endpoint, e.response_body) from e

    # -------------------------------------------------------------------------
    # Connection Management
    # -------------------------------------------------------------------------

    async def connect(self) -> bool:
        try:
            await self.client.connect()
        except PlexApiError as e:
            logger.error(f"Failed to connect to PLEX: {e}")
            self._status = ERPConnectionStatus.FAILED
            return False
        self._status = ERPConnectionStatus.CONNECTED
        return True

    async def disconnect(self) -> None:
        await self.client.disconnect()
        self._status = ERPConnectionStatus.DISCONNECTED

    # -------------------------------------------------------------------------
    # Inventory
    # -------------------------------------------------------------------------

    async def get_inventory(self) -> List[Inventory]:
        data = await self._call("GET", "/inventory", entity_type=ERPEntityType.INVENTORY)
        return [Inventory.model_validate(item) for item in data or []]

    async def get_inventory_by_part(self, part_number: str) -> Inventory:
        data = await self._call(
            "GET", f"/inventory/{quote(part_number)}",
            entity_type=ERPEntityType.INVENTORY, entity_id=part_number,
        )
        return Inventory.model_validate(data)

    async def update_inventory(self, part_number: str, patch: InventoryPatch) -> Inventory:
        data = await self._call(
            "PATCH", f"/inventory/{quote(part_number)}", _patch_body(patch),
            entity_type=ERPEntityType.INVENTORY, entity_id=part_number,
        )
        return Inventory.model_validate(data)

    async def get_containers(self) -> List[Container]:
        data = await self._call("GET", "/containers", entity_type=ERPEntityType.CONTAINER)
        return [Container.model_validate(item) for item in data or []]

    async def create_container(self, container: ContainerCreate) -> Container:
        data = await self._call("POST", "/containers", container.to_wire(), entity_type=ERPEntityType.CONTAINER)
        return Container.model_validate(data)

    # -------------------------------------------------------------------------
    # Jobs
    # -------------------------------------------------------------------------

    async def get_jobs(self) -> List[Job]:
        data = await self._call("GET", "/jobs", entity_type=ERPEntityType.JOB)
        return [Job.model_validate(item) for item in data or []]

    async def create_job(self, job: JobCreate) -> Job:
        data = await self._call("POST", "/jobs", job.to_wire(), entity_type=ERPEntityType.JOB)
        return Job.model_validate(data)

    async def update_job(self, job_id: str, patch: JobPatch) -> Job:
        data = await self._call(
            "PATCH", f"/jobs/{quote(job_id)}", _patch_body(patch),
            entity_type=ERPEntityType.JOB, entity_id=job_id,
        )
        return Job.model_validate(data)

    async def reorder_jobs(self, job_ids: List[str]) -> None:
        await self._call(
            "POST", "/jobs/reorder", {"jobIds": list(job_ids)}, entity_type=ERPEntityType.JOB,
        )

    async def get_work_centers(self) -> List[WorkCenter]:
        data = await self._call("GET", "/work-centers", entity_type=ERPEntityType.WORK_CENTER)
        return [WorkCenter.model_validate(item) for item in data or []]

    # -------------------------------------------------------------------------
    # Customer Orders
    # -------------------------------------------------------------------------

    async def get_customer_orders(self) -> List[CustomerOrder]:
        data = await self._call("GET", "/customer-orders", entity_type=ERPEntityType.CUSTOMER_ORDER)
        return [CustomerOrder.model_validate(item) for item in data or []]

    async def update_order_status(self, order_id: str, status: OrderStatus) -> CustomerOrder:
        data = await self._call(
            "PATCH", f"/customer-orders/{quote(order_id)}", {"status": OrderStatus(status).value},
            entity_type=ERPEntityType.CUSTOMER_ORDER, entity_id=order_id,
        )
        return CustomerOrder.model_validate(data)
