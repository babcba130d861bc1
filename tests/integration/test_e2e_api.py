import time
import pytest
from fastapi.testclient import TestClient
from dexapi.main import app
from dexapi.dependencies import build_import_service, get_import_service, get_job_manager
from dexapi.importer import POKEMON_SOURCE
from dexapi.services import ImportJobManager

START_URL = "/admin/import/start"


@pytest.fixture(scope="function")
def test_client(fake_api, stores, settings):
    """
    Provides a TestClient whose import service talks to the fake PokeAPI
    and an in-memory store. No real network or Redis is touched.
    """
    service = build_import_service(fake_api.client, stores, settings)
    jobs = ImportJobManager(service)

    # Override the dependencies to return our fake-backed service and job manager
    app.dependency_overrides[get_import_service] = lambda: service
    app.dependency_overrides[get_job_manager] = lambda: jobs

    with TestClient(app) as client:
        yield client

    # Cleanup: Clear dependency overrides after test
    app.dependency_overrides.clear()


def wait_for_completion(client, import_id, timeout=5.0):
    """Polls the status endpoint until the background import reports completion."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        body = client.get(f"/admin/import/status/{import_id}").json()
        if body["status"] == "completed":
            return body
        time.sleep(0.02)
    pytest.fail(f"Import {import_id} did not complete within {timeout}s")


def seed_api(fake_api, pokemon_count):
    fake_api.add_generation(1, names=[("en", "Generation I")])
    fake_api.add_type(12, "grass", names=[("en", "Grass")])
    for dex in range(1, pokemon_count + 1):
        fake_api.add_pokemon(dex, f"mon-{dex}", names=[("en", f"Mon {dex}")])


def test_e2e_batch_import_runs_in_background(test_client, fake_api, stores):
    """
    E2E test for the start endpoint: accepted immediately, result available via status.
    """
    # Arrange
    seed_api(fake_api, 5)

    # Act (Hit the public API endpoint)
    response = test_client.post(START_URL, params={"source": POKEMON_SOURCE, "limit": 5, "batchSize": 2})

    # Assert
    assert response.status_code == 200
    started = response.json()
    assert started["success"] is True
    assert started["importId"].startswith("import_")
    assert started["message"] == "Import started successfully"

    body = wait_for_completion(test_client, started["importId"])
    result = body["result"]
    assert result["success"] is True
    assert result["source"] == POKEMON_SOURCE
    assert result["totalRecords"] == 5
    assert result["successfulImports"] == 5
    assert result["failedImports"] == 0
    assert result["errors"] == []
    assert result["durationMs"] >= 0
    assert "progress" not in body
    assert fake_api.calls("pokemon") == [1, 2, 3, 4, 5]


def test_e2e_full_import(test_client, fake_api):
    seed_api(fake_api, 3)

    response = test_client.post("/admin/import/full", params={"pokemonLimit": 3})

    assert response.status_code == 200
    body = wait_for_completion(test_client, response.json()["importId"])
    assert body["result"]["source"] == "Full Import"
    assert body["result"]["totalRecords"] == 5


@pytest.mark.parametrize("limit", [0, 1001])
def test_e2e_limit_out_of_range_is_rejected(test_client, fake_api, limit):
    response = test_client.post(START_URL, params={"source": POKEMON_SOURCE, "limit": limit})

    assert response.status_code == 400
    assert response.json()["detail"] == "Limit must be between 1 and 1000"
    assert fake_api.calls("pokemon") == []


def test_e2e_unknown_source_is_rejected(test_client):
    response = test_client.post(START_URL, params={"source": "Smogon", "limit": 5})

    assert response.status_code == 400
    assert response.json()["detail"] == "Unknown import source: Smogon"


def test_e2e_unhealthy_source_is_rejected(test_client, fake_api):
    fake_api.client.is_healthy.return_value = False

    response = test_client.post(START_URL, params={"source": POKEMON_SOURCE, "limit": 5})

    assert response.status_code == 400
    assert "not healthy" in response.json()["detail"]


def test_e2e_batch_size_must_be_positive(test_client):
    response = test_client.post(START_URL, params={"source": POKEMON_SOURCE, "limit": 5, "batchSize": 0})

    assert response.status_code == 422


def test_e2e_full_import_limit_is_validated(test_client):
    response = test_client.post("/admin/import/full", params={"pokemonLimit": 5000})

    assert response.status_code == 400


def test_e2e_status_of_unknown_import_is_404(test_client):
    response = test_client.get("/admin/import/status/import_0_0")

    assert response.status_code == 404


def test_e2e_cancel_of_unknown_import_is_404(test_client):
    response = test_client.post("/admin/import/cancel/import_0_0")

    assert response.status_code == 404


def test_e2e_importer_health(test_client):
    response = test_client.get("/admin/import/health")

    assert response.status_code == 200
    body = response.json()
    assert body["importers"] == {POKEMON_SOURCE: True}
    assert POKEMON_SOURCE in body["healthy"]
    assert len(body["healthy"]) == 3
