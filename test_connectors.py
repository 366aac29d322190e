"""
ERP Connector Tests

Validates the connector layer:
1. Factory creates registered connectors from configuration
2. Mock connector keeps an independent in-memory copy of the seed data
3. PLEX connector speaks camelCase JSON and maps 404s onto ERPNotFoundError
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from connectors import (
    ERPConfig,
    ERPConnectionStatus,
    ERPEntityType,
    ERPNotFoundError,
    ERPTransportError,
    MockPlexConnector,
    PlexConnector,
    create_connector,
    list_available_connectors,
)
from connectors.plex import PlexApiClient, PlexApiConfig, PlexApiError, PlexNotFoundError, RetryConfig
from core.config import Settings
from core.models import ContainerCreate, InventoryPatch, JobPatch, JobStatus, OrderStatus


def _plex(client=None):
    client = client or AsyncMock(spec=PlexApiClient)
    config = ERPConfig(connector_type="plex", base_url="https://plex.example.com/api")
    return PlexConnector(config, client=client), client


class TestConnectorFactory:

    def test_registered_connectors(self):
        assert {"mock", "plex"} <= set(list_available_connectors())

    def test_create_mock(self):
        connector = create_connector(ERPConfig(connector_type="MOCK"))
        assert isinstance(connector, MockPlexConnector)

    def test_create_plex(self):
        connector = create_connector(ERPConfig(
            connector_type="plex",
            base_url="https://plex.example.com/api",
            auth_config={"api_key": "key", "client_id": "client"},
        ))
        assert isinstance(connector, PlexConnector)
        assert connector.client.api_config.client_id == "client"

    def test_plex_requires_base_url(self):
        with pytest.raises(ValueError):
            create_connector(ERPConfig(connector_type="plex"))

    def test_unknown_connector(self):
        with pytest.raises(ValueError) as exc_info:
            create_connector(ERPConfig(connector_type="sap"))
        assert "Unknown connector type" in str(exc_info.value)

    def test_settings_choose_mock_until_plex_configured(self):
        assert Settings().to_erp_config().connector_type == "mock"

        configured = Settings(
            plex_api_url="https://plex.example.com/api",
            plex_api_key="key",
            plex_client_id="client",
            use_mock_data=False,
        )
        erp_config = configured.to_erp_config()
        assert erp_config.connector_type == "plex"
        assert erp_config.auth_config == {"api_key": "key", "client_id": "client"}


class TestMockConnector:

    def test_connect_and_disconnect(self):
        connector = MockPlexConnector()
        assert connector.connection_status == ERPConnectionStatus.DISCONNECTED

        asyncio.run(connector.connect())
        assert connector.connection_status == ERPConnectionStatus.CONNECTED

        asyncio.run(connector.disconnect())
        assert connector.connection_status == ERPConnectionStatus.DISCONNECTED

    def test_seed_data(self):
        connector = MockPlexConnector()

        async def run():
            return (
                await connector.get_inventory(),
                await connector.get_containers(),
                await connector.get_jobs(),
                await connector.get_work_centers(),
                await connector.get_customer_orders(),
            )

        inventory, containers, jobs, work_centers, orders = asyncio.run(run())
        assert [i.part_number for i in inventory] == ["PART-001", "PART-002", "PART-003"]
        assert len(containers) == 6
        assert [j.id for j in jobs] == ["job-001", "job-002", "job-003"]
        assert [wc.id for wc in work_centers] == ["WC-01", "WC-02", "WC-03"]
        assert [o.id for o in orders] == ["order-001", "order-002", "order-003"]

    def test_instances_do_not_share_state(self):
        first = MockPlexConnector()
        second = MockPlexConnector()

        async def run():
            await first.update_inventory("PART-001", InventoryPatch(containers=[]))
            return (
                await first.get_inventory_by_part("PART-001"),
                await second.get_inventory_by_part("PART-001"),
            )

        patched, untouched = asyncio.run(run())
        assert patched.containers == []
        assert len(untouched.containers) == 2

    def test_returned_models_are_copies(self):
        connector = MockPlexConnector()

        async def run():
            inventory = await connector.get_inventory_by_part("PART-001")
            inventory.containers.clear()
            return await connector.get_inventory_by_part("PART-001")

        assert len(asyncio.run(run()).containers) == 2

    def test_update_inventory_applies_only_set_fields(self):
        connector = MockPlexConnector()
        updated = asyncio.run(connector.update_inventory("PART-002", InventoryPatch(quantity_available=5)))
        assert updated.quantity_available == 5
        assert updated.part_description == "Aluminum Housing"
        assert len(updated.containers) == 2

    def test_create_container(self):
        connector = MockPlexConnector()

        async def run():
            created = await connector.create_container(ContainerCreate(part_number="PART-003", quantity=25))
            return created, await connector.get_inventory_by_part("PART-003")

        created, inventory = asyncio.run(run())
        assert created.serial_number.startswith("CONT-")
        assert created.location == "end_of_line"
        assert inventory.find_container(created.serial_number) is not None

    def test_update_job_and_reorder(self):
        connector = MockPlexConnector()

        async def run():
            await connector.update_job("job-001", JobPatch(status=JobStatus.IN_PROGRESS))
            await connector.reorder_jobs(["job-003", "job-001", "job-002"])
            return await connector.get_jobs()

        jobs = {j.id: j for j in asyncio.run(run())}
        assert jobs["job-001"].status == JobStatus.IN_PROGRESS
        assert jobs["job-001"].work_center == "WC-01"
        assert jobs["job-003"].sort_order == 1
        assert jobs["job-001"].sort_order == 2
        assert jobs["job-002"].sort_order == 3

    def test_update_order_status(self):
        connector = MockPlexConnector()
        order = asyncio.run(connector.update_order_status("order-003", OrderStatus.IN_PRODUCTION))
        assert order.status == OrderStatus.IN_PRODUCTION

    def test_missing_entities(self):
        connector = MockPlexConnector()

        with pytest.raises(ERPNotFoundError) as exc_info:
            asyncio.run(connector.get_inventory_by_part("PART-404"))
        assert exc_info.value.entity_type == ERPEntityType.INVENTORY
        assert exc_info.value.status_code == 404

        with pytest.raises(ERPNotFoundError):
            asyncio.run(connector.update_job("job-404", JobPatch(priority=2)))
        with pytest.raises(ERPNotFoundError):
            asyncio.run(connector.update_order_status("order-404", OrderStatus.SHIPPED))


class TestPlexConnector:

    def test_get_inventory_parses_camel_case(self):
        connector, client = _plex()
        client.request.return_value = {
            "partNumber": "PART-001",
            "partDescription": "Steel Bracket Assembly",
            "quantityAvailable": 250,
            "location": "end_of_line",
            "containers": [
                {"serialNumber": "CONT-001", "partNumber": "PART-001", "quantity": 100, "location": "end_of_line"},
            ],
        }

        inventory = asyncio.run(connector.get_inventory_by_part("PART-001"))

        client.request.assert_awaited_once_with("GET", "/inventory/PART-001", None)
        assert inventory.quantity_available == 250
        assert inventory.containers[0].serial_number == "CONT-001"

    def test_patch_sends_only_set_fields(self):
        connector, client = _plex()
        client.request.return_value = {
            "id": "job-001",
            "partNumber": "PART-001",
            "completionDate": "2024-02-15T00:00:00Z",
            "status": "in_progress",
            "priority": 3,
        }

        job = asyncio.run(connector.update_job("job-001", JobPatch(status=JobStatus.IN_PROGRESS, priority=3)))

        client.request.assert_awaited_once_with(
            "PATCH", "/jobs/job-001", {"status": "in_progress", "priority": 3}
        )
        assert job.status == JobStatus.IN_PROGRESS

    def test_not_found_maps_to_erp_not_found(self):
        connector, client = _plex()
        client.request.side_effect = PlexNotFoundError("Resource not found", 404, '{"error": "missing"}')

        with pytest.raises(ERPNotFoundError) as exc_info:
            asyncio.run(connector.update_order_status("order-404", OrderStatus.SHIPPED))

        assert exc_info.value.entity_type == ERPEntityType.CUSTOMER_ORDER
        assert exc_info.value.entity_id == "order-404"
        assert exc_info.value.response_body == '{"error": "missing"}'

    def test_collection_not_found_maps_to_erp_not_found(self):
        connector, client = _plex()
        client.request.side_effect = PlexNotFoundError("Resource not found", 404)

        with pytest.raises(ERPNotFoundError) as exc_info:
            asyncio.run(connector.get_jobs())

        assert exc_info.value.entity_type == ERPEntityType.JOB
        assert exc_info.value.entity_id == "/jobs"
        assert exc_info.value.status_code == 404

    def test_server_error_stays_transport_error(self):
        connector, client = _plex()
        client.request.side_effect = PlexApiError("Server error", 500)

        with pytest.raises(ERPTransportError):
            asyncio.run(connector.get_work_centers())

    def test_reorder_body(self):
        connector, client = _plex()
        client.request.return_value = None

        asyncio.run(connector.reorder_jobs(["job-002", "job-001"]))

        client.request.assert_awaited_once_with("POST", "/jobs/reorder", {"jobIds": ["job-002", "job-001"]})

    def test_connect_failure_marks_failed(self):
        connector, client = _plex()
        client.connect.side_effect = PlexApiError("boom")

        assert asyncio.run(connector.connect()) is False
        assert connector.connection_status == ERPConnectionStatus.FAILED


class TestPlexApiClient:

    def test_request_requires_connection(self):
        client = PlexApiClient(PlexApiConfig(base_url="https://plex.example.com/api", api_key="k", client_id="c"))
        with pytest.raises(PlexApiError):
            asyncio.run(client.request("GET", "/jobs"))

    def test_build_url(self):
        config = PlexApiConfig(base_url="https://plex.example.com/api/", api_key="k", client_id="c")
        assert config.build_url("/jobs") == "https://plex.example.com/api/jobs"

    def test_retry_delay_is_capped(self):
        retry = RetryConfig(base_delay=1.0, max_delay=5.0)
        assert [retry.get_delay(a) for a in range(4)] == [1.0, 2.0, 4.0, 5.0]
