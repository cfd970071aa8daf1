"""
Pytest fixtures for FasalDoc tests.
"""
import os
import tempfile
import shutil
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
import pytest
from fastapi.testclient import TestClient

# Set test environment variables BEFORE importing app
os.environ['FASAL_DATA_ROOT'] = tempfile.mkdtemp()
os.environ['FASAL_MAX_IMAGE_MB'] = '2'
os.environ['FASAL_LLM_MODE'] = 'stub'
os.environ['FASAL_USE_DATABASE'] = 'false'
os.environ['FASAL_DEFAULT_LANGUAGE'] = 'Hindi'

from app.main import app
from app.api.deps import get_orchestrator
from app.api.schemas import ChemicalTreatment, Diagnosis, PlanStep, Severity
from app.services.case_lifecycle import CaseLifecycle
from app.services.llm_client import GatewayError, ModelGateway
from app.services.orchestrator import DiagnosisOrchestrator
from app.services.regions import RegionCatalog
from app.services.storage.case_store import InMemoryCaseStore, JsonFileCaseStore


class FakeGateway:
    """Gateway double that replays canned replies and records prompts."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def send(self, prompt, image_b64=None):
        self.calls.append((prompt, image_b64))
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        return reply


class FixedClock:
    """Clock returning a fixed moment, advanced by hand."""

    def __init__(self, moment=None):
        self.now = moment or datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


@pytest.fixture
def regions():
    """Bundled region catalog."""
    return RegionCatalog.load()


@pytest.fixture
def memory_store():
    return InMemoryCaseStore()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def lifecycle(memory_store, clock):
    return CaseLifecycle(memory_store, clock=clock)


@pytest.fixture
def temp_data_root():
    """
    Create temporary data directory for testing.
    Automatically cleaned up after test.
    """
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def orchestrator(temp_data_root, regions):
    """Orchestrator over a JSON file store in a temp dir and the stub model."""
    store = JsonFileCaseStore(Path(temp_data_root) / "cases.json")
    return DiagnosisOrchestrator(
        CaseLifecycle(store),
        regions,
        gateway=ModelGateway(mode="stub"),
        month_provider=lambda: 10,
    )


@pytest.fixture(scope="function")
def client(orchestrator):
    """FastAPI test client wired to the per-test orchestrator."""
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_diagnose_request():
    """Sample diagnosis form fields."""
    return {
        "crop": "Tomato",
        "region": "Maharashtra",
    }


@pytest.fixture
def sample_diagnosis():
    """A normalized diagnosis as produced from a model reply."""
    return Diagnosis(
        crop_name="Tomato",
        disease_name="Late Blight",
        confidence=88,
        severity=Severity.SEVERE,
        description="Dark water-soaked lesions on leaves.",
        symptoms=["Dark lesions", "White mould underneath"],
        causes="Cool wet weather.",
        chemical_treatment=ChemicalTreatment(
            pesticide="Metalaxyl + Mancozeb",
            dosage="2.5 g per litre",
            method="Foliar spray",
            frequency="Every 7 days",
        ),
        organic_treatment="Copper-based spray.",
        soil_care="Improve drainage.",
        local_recommendation="Spray in the early morning.",
        government_scheme="PMFBY",
        recovery_plan=[PlanStep(day=1, action="Remove infected plants")],
        warning="Monsoon humidity favours spread.",
        voice_script="Your tomato has late blight.",
    )


@pytest.fixture
def sample_image_bytes():
    """Generate a minimal valid PNG image for testing."""
    from PIL import Image

    # Create 100x100 green square
    img = Image.new('RGB', (100, 100), color='green')
    buf = BytesIO()
    img.save(buf, format='PNG')
    buf.seek(0)
    return buf.read()


@pytest.fixture
def invalid_image_bytes():
    """Invalid image data for error testing."""
    return b"not a valid image"


@pytest.fixture
def oversized_image_bytes():
    """Generate image larger than MAX_IMAGE_MB for testing."""
    from PIL import Image

    # Create large image (should exceed 2MB test limit)
    img = Image.new('RGB', (3000, 3000), color='blue')
    buf = BytesIO()
    img.save(buf, format='PNG', compress_level=0)
    buf.seek(0)
    return buf.read()


@pytest.fixture
def gateway_error():
    return GatewayError("Rate limit reached for model")


@pytest.fixture
def make_orchestrator(regions):
    """Build an orchestrator over an in-memory store with canned model replies."""
    def _make(*replies, store=None):
        return DiagnosisOrchestrator(
            CaseLifecycle(store or InMemoryCaseStore()),
            regions,
            gateway=FakeGateway(*replies),
            month_provider=lambda: 7,
        )
    return _make
