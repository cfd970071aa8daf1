"""
End-to-end integration tests.
"""
import pytest
from pathlib import Path
import json
from io import BytesIO


@pytest.mark.integration
def test_full_case_workflow(client, sample_diagnose_request, sample_image_bytes, temp_data_root):
    """Test complete workflow: diagnose -> note -> follow-up -> retrieve -> verify persistence."""
    # Step 1: Submit diagnosis
    response = client.post(
        "/v1/diagnose",
        data=sample_diagnose_request,
        files={"image": ("leaf.png", BytesIO(sample_image_bytes), "image/png")}
    )
    assert response.status_code == 200
    case_id = response.json()["case"]["id"]

    # Step 2: Verify case was persisted to disk
    cases_file = Path(temp_data_root) / "cases.json"
    assert cases_file.exists()
    stored = json.loads(cases_file.read_text(encoding="utf-8"))
    assert [c["id"] for c in stored] == [case_id]
    assert stored[0]["status"] == "ONGOING"

    # Step 3: Farmer note
    response = client.patch(f"/v1/cases/{case_id}", json={"note": "Sprayed Mancozeb"})
    assert response.status_code == 200

    # Step 4: Follow-up photo
    response = client.post(
        f"/v1/cases/{case_id}/follow-up",
        files={"image": ("later.png", BytesIO(sample_image_bytes), "image/png")}
    )
    assert response.status_code == 200

    # Step 5: Verify retrieved data reflects every step
    retrieved = client.get(f"/v1/cases/{case_id}").json()
    assert retrieved["notes"] == ["Sprayed Mancozeb"]
    assert retrieved["status"] == "MONITORING"

    stored = json.loads(cases_file.read_text(encoding="utf-8"))
    assert stored[0]["status"] == "MONITORING"
    assert stored[0]["notes"] == ["Sprayed Mancozeb"]


@pytest.mark.integration
def test_pipeline_with_all_supported_crops(client, sample_image_bytes):
    """Test pipeline works for all supported crops."""
    from app.api.schemas import SUPPORTED_CROPS

    for crop in SUPPORTED_CROPS:
        response = client.post(
            "/v1/diagnose",
            data={"crop": crop, "region": "Uttar Pradesh"},
            files={"image": ("leaf.png", BytesIO(sample_image_bytes), "image/png")}
        )

        assert response.status_code == 200, f"Failed for crop: {crop}"
        assert response.json()["diagnosis"]["crop_name"] == crop

    assert client.get("/v1/cases").json()["total"] == len(SUPPORTED_CROPS)


@pytest.mark.integration
def test_rejected_request_writes_nothing(client, sample_diagnose_request, sample_image_bytes, temp_data_root):
    """Test that failed requests don't create partial case data."""
    invalid_request = sample_diagnose_request.copy()
    invalid_request["crop"] = "invalid_crop"

    response = client.post(
        "/v1/diagnose",
        data=invalid_request,
        files={"image": ("leaf.png", BytesIO(sample_image_bytes), "image/png")}
    )
    assert response.status_code == 400

    assert not (Path(temp_data_root) / "cases.json").exists()


def test_cases_survive_store_reload(client, orchestrator, sample_diagnose_request, sample_image_bytes):
    """Cases written by one store instance are read back by a fresh one."""
    from app.services.storage.case_store import JsonFileCaseStore
    import asyncio

    case_ids = []
    for _ in range(3):
        response = client.post(
            "/v1/diagnose",
            data=sample_diagnose_request,
            files={"image": ("leaf.png", BytesIO(sample_image_bytes), "image/png")}
        )
        assert response.status_code == 200
        case_ids.append(response.json()["case"]["id"])

    fresh = JsonFileCaseStore(orchestrator.lifecycle.store.path)
    reloaded = asyncio.run(fresh.load_all())

    assert [r.id for r in reloaded] == list(reversed(case_ids))
