"""
API Tests

Exercises the FastAPI app against a mock-backed kanban system:
1. Health and readiness reflect the ERP connection
2. Kanban, workflow, container and job endpoints
3. Engine errors map onto HTTP status codes with a JSON error body
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.server import create_app, status_code_for
from connectors.erp_base import ERPTransportError
from connectors.mock import MockPlexConnector
from core.errors import (
    ContainerNotFound,
    InsufficientInventory,
    InvalidSplitRequest,
    KanbanError,
    NoAvailableContainers,
    UnknownStepType,
)
from core.observability.metrics import MetricsCollector
from kanban_engine import LoggingNotifier, build_kanban_system

WITHDRAWAL = {
    "type": "withdrawal",
    "partNumber": "PART-001",
    "partDescription": "Steel Bracket Assembly",
    "quantity": 120,
    "withdrawalType": "end_to_tpa",
}


@pytest.fixture
def system():
    return build_kanban_system(
        connector=MockPlexConnector(),
        notifier=LoggingNotifier(),
        metrics=MetricsCollector(),
    )


@pytest.fixture
def client(system):
    with TestClient(create_app(system)) as test_client:
        yield test_client


class TestErrorMapping:

    def test_status_codes(self):
        assert status_code_for(ContainerNotFound("CONT-1")) == 404
        assert status_code_for(NoAvailableContainers("PART-001", "tpa")) == 409
        assert status_code_for(InsufficientInventory(10, 5)) == 409
        assert status_code_for(InvalidSplitRequest("bad")) == 422
        assert status_code_for(UnknownStepType("x")) == 400
        assert status_code_for(KanbanError("other")) == 500


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"]["erp"] == "mock:CONNECTED"
        assert data["services"]["kanbans"] == "0"

    def test_ready_and_live(self, client):
        assert client.get("/ready").json() == {"status": "ready"}
        assert client.get("/live").json() == {"status": "alive"}

    def test_not_ready_without_connection(self):
        system = build_kanban_system(connector=MockPlexConnector(), metrics=MetricsCollector())
        # Without the context manager the lifespan never connects the ERP
        client = TestClient(create_app(system))
        response = client.get("/ready")
        assert response.status_code == 503
        assert response.json() == {"status": "not_ready"}


class TestKanbanEndpoints:

    def test_create_withdrawal(self, client):
        response = client.post("/kanbans", json=WITHDRAWAL)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "active"
        assert data["containerIds"] == ["CONT-002"]
        assert data["toLocation"] == "tpa"
        assert "completedAt" not in data

    def test_list_get_complete(self, client):
        created = client.post("/kanbans", json=WITHDRAWAL).json()
        client.post("/kanbans", json={
            "type": "production",
            "partNumber": "PART-002",
            "partDescription": "Aluminum Housing",
            "quantity": 40,
        })

        assert len(client.get("/kanbans").json()) == 2
        assert [k["id"] for k in client.get("/kanbans", params={"type": "withdrawal"}).json()] == [created["id"]]
        assert len(client.get("/kanbans", params={"status": "pending"}).json()) == 1
        assert client.get(f"/kanbans/{created['id']}").json()["id"] == created["id"]

        completed = client.post(f"/kanbans/{created['id']}/complete").json()
        assert completed["status"] == "completed"
        assert completed["completedAt"]

    def test_unknown_kanban_is_404(self, client):
        response = client.get("/kanbans/kanban_0_missing")
        assert response.status_code == 404
        assert response.json()["error"] == "KanbanNotFound"

    def test_insufficient_inventory_is_409(self, client):
        response = client.post("/kanbans", json={**WITHDRAWAL, "quantity": 1000})

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "InsufficientInventory"
        assert body["details"]["needed"] == 1000
        assert body["details"]["available"] == 250
        assert client.get("/kanbans").json() == []

    def test_invalid_transition_is_422(self, client):
        created = client.post("/kanbans", json=WITHDRAWAL).json()
        client.post(f"/kanbans/{created['id']}/complete")

        response = client.post(f"/kanbans/{created['id']}/cancel")
        assert response.status_code == 422
        assert response.json()["error"] == "InvalidKanbanTransition"

    def test_withdrawal_without_type_is_422(self, client):
        body = {k: v for k, v in WITHDRAWAL.items() if k != "withdrawalType"}
        response = client.post("/kanbans", json=body)
        assert response.status_code == 422
        assert response.json()["error"] == "InvalidKanbanRequest"


class TestWorkflowEndpoints:

    def test_list_and_get(self, client):
        workflows = client.get("/workflows").json()
        assert [w["id"] for w in workflows] == ["customer-order-fulfillment", "production-scheduling"]

        workflow = client.get("/workflows/production-scheduling").json()
        assert [s["type"] for s in workflow["steps"]] == ["create_kanban", "update_job", "notify_team"]

    def test_execute_and_look_up_run(self, client):
        response = client.post(
            "/workflows/production-scheduling/execute",
            json={"partNumber": "PART-003", "partDescription": "Plastic Cover", "quantity": 200},
        )

        assert response.status_code == 200
        run = response.json()
        assert run["status"] == "COMPLETED"
        assert len(run["executed_steps"]) == 3
        assert len(run["created_kanban_ids"]) == 1

        assert client.get(f"/workflows/runs/{run['run_id']}").json()["run_id"] == run["run_id"]
        runs = client.get("/workflows/runs", params={"workflow_id": "production-scheduling"}).json()
        assert [r["run_id"] for r in runs] == [run["run_id"]]

    def test_missing_fields_is_422(self, client):
        response = client.post("/workflows/production-scheduling/execute", json={"quantity": 5})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "MissingKanbanFields"
        assert body["details"]["step_id"] == "create-production-kanban"

    def test_unknown_workflow_and_run(self, client):
        assert client.get("/workflows/nope").status_code == 404
        assert client.post("/workflows/nope/execute", json={}).status_code == 404
        assert client.get("/workflows/runs/run_missing").status_code == 404


class TestContainerEndpoints:

    def test_list_with_filters(self, client):
        assert len(client.get("/containers").json()) == 6
        part_001 = client.get("/containers", params={"part_number": "PART-001"}).json()
        assert [c["serialNumber"] for c in part_001] == ["CONT-001", "CONT-002"]

    def test_split(self, client):
        response = client.post("/containers/split", json={"serialNumber": "CONT-001", "quantities": [60, 40]})

        assert response.status_code == 200
        children = response.json()
        assert [c["serialNumber"] for c in children] == ["CONT-001-SPLIT-1", "CONT-001-SPLIT-2"]
        assert all(c["parentContainer"] == "CONT-001" for c in children)

    def test_split_mismatch_is_422(self, client):
        response = client.post("/containers/split", json={"serialNumber": "CONT-001", "quantities": [60, 60]})
        assert response.status_code == 422
        assert response.json()["error"] == "InvalidSplitRequest"

    def test_merge(self, client):
        response = client.post(
            "/containers/merge",
            json={"serialNumbers": ["CONT-003", "CONT-004"], "strategy": "keep_first"},
        )
        assert response.status_code == 200
        merged = response.json()
        assert merged["serialNumber"] == "CONT-003"
        assert merged["quantity"] == 120
        assert merged["status"] == "merged"

    def test_unknown_merge_strategy_is_400(self, client):
        response = client.post(
            "/containers/merge",
            json={"serialNumbers": ["CONT-003", "CONT-004"], "strategy": "largest"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "UnknownMergeStrategy"


class TestJobEndpoints:

    def test_reorder(self, client):
        response = client.post("/jobs/reorder", json={"jobIds": ["job-003", "job-001", "job-002"]})
        assert response.status_code == 200
        assert [j["id"] for j in response.json()] == ["job-003", "job-001", "job-002"]
        assert [j["id"] for j in client.get("/jobs").json()] == ["job-003", "job-001", "job-002"]

    def test_reorder_unknown_job_is_404(self, client):
        response = client.post("/jobs/reorder", json={"jobIds": ["job-001", "job-404"]})
        assert response.status_code == 404

    def test_reorder_duplicates_is_422(self, client):
        response = client.post("/jobs/reorder", json={"jobIds": ["job-001", "job-001"]})
        assert response.status_code == 422

    def test_work_centers(self, client):
        assert [wc["id"] for wc in client.get("/jobs/work-centers").json()] == ["WC-01", "WC-02", "WC-03"]

    def test_erp_failure_is_502(self, client, system):
        system.connector.get_work_centers = AsyncMock(side_effect=ERPTransportError("PLEX unavailable", 503))

        response = client.get("/jobs/work-centers")

        assert response.status_code == 502
        assert response.json() == {
            "error": "ERPTransportError",
            "message": "PLEX unavailable",
            "details": {"status_code": 503},
        }


class TestMetricsEndpoint:

    def test_metrics_summary(self, client):
        client.post("/kanbans", json=WITHDRAWAL)
        data = client.get("/metrics").json()

        assert data["kanbans"]["created"] == 1
        assert data["kanbans"]["containers_moved"] == 1
        assert data["kanbans_by_status"]["active"] == 1
