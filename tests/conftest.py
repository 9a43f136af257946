"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from app.cache import config_cache
from app.db import get_session
from app.deps import get_clock, get_crm_client
from app.exceptions import CRMError
from app.main import app
from app.models import FormSubmission  # noqa: F401
from app.services.pipeline import SubmissionPipeline
from app.services.repository import SubmissionRepository

FIXED_NOW = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


class FakeCRMClient:
    """In-memory stand-in for the HubSpot client."""

    def __init__(self, existing: Optional[Dict[str, str]] = None, fail: bool = False):
        self.contacts: Dict[str, str] = dict(existing or {})
        self.fail = fail
        self.calls: List[Tuple[str, object]] = []

    def find_contact_by_email(self, email: str) -> Optional[str]:
        self.calls.append(("find", email))
        if self.fail:
            raise CRMError("HubSpot error 503: unavailable", status_code=503)
        return self.contacts.get(email)

    def create_contact(self, properties: Dict[str, Optional[str]]) -> str:
        self.calls.append(("create", properties))
        contact_id = f"contact-{len(self.contacts) + 1}"
        self.contacts[properties["email"]] = contact_id
        return contact_id

    def update_contact(self, contact_id: str, properties: Dict[str, Optional[str]]) -> str:
        self.calls.append(("update", (contact_id, properties)))
        return contact_id


def make_payload(**overrides) -> Dict[str, object]:
    """Valid web form payload; the applicant turns 65 in 30 days on FIXED_NOW."""
    payload = {
        "email": "  Maria.Lopez@Example.com ",
        "phone": "0052 (55) 1234-5678",
        "paraQuien": "single",
        "dobTitular": "1961-11-18",
        "paymentPlan": "yearly",
        "hasInsurance": "Sí",
        "coverageStart": "En este mes",
        "discoverySource": "google",
        "wantsCall": True,
        "utmSource": "google",
        "utmCampaign": "otono-2026",
        "pageUrl": "https://example.com/cotizar",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """SQLite file engine; each session gets its own connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'quote_leads.db'}",
        connect_args={"check_same_thread": False},
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def fake_crm() -> FakeCRMClient:
    return FakeCRMClient()


@pytest.fixture
def make_pipeline(engine, fake_crm):
    """Factory for pipelines with their own session, like separate requests."""
    sessions = []

    def _make(repository_cls=SubmissionRepository, crm_client=fake_crm, bind=None) -> SubmissionPipeline:
        session = Session(bind or engine)
        sessions.append(session)
        return SubmissionPipeline(
            repository=repository_cls(session),
            crm_client=crm_client,
            enum_schema=config_cache.get_enum_schema(),
            aliases=config_cache.get_aliases(),
            clock=fixed_clock,
        )

    yield _make
    for session in sessions:
        session.close()


@pytest.fixture
def client(engine, fake_crm) -> TestClient:
    """FastAPI test client backed by the in-memory database and fake CRM."""

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_crm_client] = lambda: fake_crm
    app.dependency_overrides[get_clock] = lambda: fixed_clock
    yield TestClient(app)
    app.dependency_overrides = {}


@pytest.fixture
def payload_factory():
    """Build web form payloads with field overrides."""
    return make_payload
