"""
Tests for the /v1/cases endpoints.
"""
import pytest
from io import BytesIO


@pytest.fixture
def created_case(client, sample_diagnose_request, sample_image_bytes):
    """Create a case and return it."""
    response = client.post(
        "/v1/diagnose",
        data=sample_diagnose_request,
        files={"image": ("leaf.png", BytesIO(sample_image_bytes), "image/png")}
    )
    assert response.status_code == 200
    return response.json()["case"]


def test_get_case_success(client, created_case):
    """Test GET /v1/cases/{case_id} for existing case."""
    response = client.get(f"/v1/cases/{created_case['id']}")

    assert response.status_code == 200
    assert response.json() == created_case


def test_get_case_not_found(client):
    """Test GET /v1/cases/{case_id} for non-existent case."""
    fake_id = "00000000-0000-0000-0000-000000000000"

    response = client.get(f"/v1/cases/{fake_id}")

    assert response.status_code == 404
    assert "not found" in response.json()["detail"].lower()


def test_list_cases_empty(client):
    response = client.get("/v1/cases")

    assert response.status_code == 200
    assert response.json() == {"cases": [], "total": 0}


def test_list_cases_newest_first(client, created_case, sample_image_bytes):
    second = client.post(
        "/v1/diagnose",
        data={"crop": "Potato", "region": "Bihar"},
        files={"image": ("leaf.png", BytesIO(sample_image_bytes), "image/png")}
    ).json()["case"]

    data = client.get("/v1/cases").json()

    assert data["total"] == 2
    assert [c["id"] for c in data["cases"]] == [second["id"], created_case["id"]]


def test_list_cases_filters(client, created_case):
    assert client.get("/v1/cases", params={"status": "ONGOING"}).json()["total"] == 1
    assert client.get("/v1/cases", params={"status": "RECOVERED"}).json()["total"] == 0
    assert client.get("/v1/cases", params={"search": "blight"}).json()["total"] == 1
    assert client.get("/v1/cases", params={"search": "wheat"}).json()["total"] == 0


def test_list_cases_invalid_status(client):
    response = client.get("/v1/cases", params={"status": "HEALTHY"})
    assert response.status_code == 422


def test_add_note(client, created_case):
    response = client.patch(
        f"/v1/cases/{created_case['id']}",
        json={"note": "Removed lower leaves today"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["notes"] == ["Removed lower leaves today"]
    assert data["status"] == "ONGOING"
    assert data["last_updated"] is not None


def test_manual_status_change(client, created_case):
    response = client.patch(f"/v1/cases/{created_case['id']}", json={"status": "RECOVERED"})

    assert response.status_code == 200
    assert response.json()["status"] == "RECOVERED"

    stats = client.get("/v1/cases/stats").json()
    assert stats == {"total": 1, "ongoing": 0, "recovered": 1, "severe": 0}


def test_empty_note_is_noop(client, created_case):
    response = client.patch(f"/v1/cases/{created_case['id']}", json={"note": "  "})

    assert response.status_code == 200
    assert response.json() == created_case


def test_update_unknown_case(client):
    response = client.patch("/v1/cases/missing", json={"note": "hello"})
    assert response.status_code == 404


def test_stats(client, created_case):
    response = client.get("/v1/cases/stats")

    assert response.status_code == 200
    assert response.json() == {"total": 1, "ongoing": 1, "recovered": 0, "severe": 0}


def test_delete_all_requires_confirm(client, created_case):
    response = client.delete("/v1/cases")

    assert response.status_code == 400
    assert client.get("/v1/cases").json()["total"] == 1


def test_delete_all(client, created_case):
    response = client.delete("/v1/cases", params={"confirm": "true"})

    assert response.status_code == 200
    assert response.json() == {"deleted": 1}
    assert client.get("/v1/cases").json()["total"] == 0
