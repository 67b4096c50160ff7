"""
Pytest configuration and fixtures for testing.

This file provides reusable test fixtures for:
- Database setup/teardown
- FastAPI test client
- Users, roles and signed bearer tokens
- A sample standard tree and a configured evaluation
- Mock Celery tasks
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.database import Base, get_db
from app.models.evaluation import Evaluation, EvaluationCriterion, EvaluationMetric, ImportanceLevel
from app.models.parameterization import Standard, Criterion, SubCriterion, Metric, FormulaVariable
from app.models.project import Project
from app.models.user import User, Role, RoleName
from main import app


# Use in-memory SQLite for testing (fast, isolated)
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_JWT_SECRET = "test-supabase-jwt-secret"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Known JWT secret; AI analysis disabled unless a test enables it"""
    monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    return settings


@pytest.fixture
def db_session():
    """
    Create a fresh database session for each test.
    Automatically drops all tables after test completes.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    """
    FastAPI test client with overridden database dependency.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def mock_celery(monkeypatch):
    """
    Mock Celery task execution for testing without Redis.
    Executes tasks synchronously in tests, against the test database.
    """
    from app.tasks import analysis_tasks, evaluation_tasks

    monkeypatch.setattr(evaluation_tasks, "SessionLocal", TestingSessionLocal)
    monkeypatch.setattr(analysis_tasks, "SessionLocal", TestingSessionLocal)

    def mock_delay(self, *args, **kwargs):
        """Execute task synchronously instead of queuing"""
        result = self(*args, **kwargs)
        return SimpleNamespace(id="test-task-id", result=result)

    monkeypatch.setattr("celery.Task.delay", mock_delay)
    return mock_delay


# =========================================================================
# Users and authentication
# =========================================================================

def make_token(email: str, secret: str = TEST_JWT_SECRET, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Sign a token shaped like a Supabase access token"""
    payload = {
        "sub": f"supabase-{email}",
        "email": email,
        "aud": "authenticated",
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def bearer(email: str) -> dict:
    return {"Authorization": f"Bearer {make_token(email)}"}


@pytest.fixture
def token_factory():
    return make_token


@pytest.fixture
def auth_headers():
    return bearer


@pytest.fixture
def roles(db_session):
    admin = Role(name=RoleName.ADMIN.value)
    evaluator = Role(name=RoleName.EVALUATOR.value)
    db_session.add_all([admin, evaluator])
    db_session.commit()
    return {"admin": admin, "evaluator": evaluator}


@pytest.fixture
def admin_user(db_session, roles):
    user = User(name="Ana Admin", email="admin@qualitylab.io", role=roles["admin"])
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def evaluator_user(db_session, roles):
    user = User(name="Eva Evaluator", email="evaluator@qualitylab.io", role=roles["evaluator"])
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def admin_headers(admin_user):
    return bearer(admin_user.email)


@pytest.fixture
def evaluator_headers(evaluator_user):
    return bearer(evaluator_user.email)


# =========================================================================
# Sample data
# =========================================================================

@pytest.fixture
def sample_standard(db_session):
    """
    ISO/IEC 25010 with two criteria, one metric each:

    - Adecuación Funcional / Completitud / "A/B", desired "1" (SIMPLE_BINARY)
    - Fiabilidad / Madurez / "A", desired "4", worst "0" (NUMERIC_WITH_MIN)
    """
    standard = Standard(name="ISO/IEC 25010", version="2011", description="Product quality model")

    functional = Criterion(name="Adecuación Funcional", description="Functional suitability")
    completeness = SubCriterion(name="Completitud", description="Functional completeness")
    coverage = Metric(
        code="FUN-1",
        name="Cobertura funcional",
        description="Implemented functions over specified functions",
        formula="A/B",
        desired_threshold="1",
        worst_case=None,
    )
    implemented = FormulaVariable(symbol="A", description="Implemented functions")
    specified = FormulaVariable(symbol="B", description="Specified functions")
    coverage.variables = [implemented, specified]
    completeness.metrics = [coverage]
    functional.sub_criteria = [completeness]

    reliability = Criterion(name="Fiabilidad", description="Reliability")
    maturity = SubCriterion(name="Madurez", description="Maturity")
    uptime = Metric(
        code="REL-1",
        name="Disponibilidad mensual",
        description="Months without critical failures",
        formula="A",
        desired_threshold="4",
        worst_case="0",
    )
    months = FormulaVariable(symbol="A", description="Months without failures")
    uptime.variables = [months]
    maturity.metrics = [uptime]
    reliability.sub_criteria = [maturity]

    standard.criteria = [functional, reliability]
    db_session.add(standard)
    db_session.commit()

    return SimpleNamespace(
        standard=standard,
        functional=functional,
        reliability=reliability,
        coverage=coverage,
        uptime=uptime,
        implemented=implemented,
        specified=specified,
        months=months,
    )


@pytest.fixture
def sample_project(db_session, evaluator_user):
    project = Project(
        name="Portal de Pagos",
        description="Customer payments portal",
        creator_user_id=evaluator_user.id,
        minimum_threshold=80,
    )
    db_session.add(project)
    db_session.commit()
    db_session.refresh(project)
    return project


@pytest.fixture
def configured_evaluation(db_session, sample_project, sample_standard):
    """
    Evaluation of the sample project against the sample standard:
    functional suitability weighted 60% (Alta), reliability 40% (Media).
    """
    evaluation = Evaluation(project_id=sample_project.id, standard_id=sample_standard.standard.id)
    db_session.add(evaluation)
    db_session.flush()

    functional = EvaluationCriterion(
        evaluation_id=evaluation.id,
        criterion_id=sample_standard.functional.id,
        importance_level=ImportanceLevel.HIGH,
        importance_percentage=60,
    )
    reliability = EvaluationCriterion(
        evaluation_id=evaluation.id,
        criterion_id=sample_standard.reliability.id,
        importance_level=ImportanceLevel.MEDIUM,
        importance_percentage=40,
    )
    db_session.add_all([functional, reliability])
    db_session.flush()

    coverage = EvaluationMetric(eval_criterion_id=functional.id, metric_id=sample_standard.coverage.id)
    uptime = EvaluationMetric(eval_criterion_id=reliability.id, metric_id=sample_standard.uptime.id)
    db_session.add_all([coverage, uptime])
    db_session.commit()

    return SimpleNamespace(
        evaluation=evaluation,
        project=sample_project,
        standard=sample_standard,
        functional=functional,
        reliability=reliability,
        coverage=coverage,
        uptime=uptime,
    )


@pytest.fixture
def entered_values(configured_evaluation):
    """
    Values that score FUN-1 at 8.0 (8 of 10 functions) and REL-1 at 5.0
    (2 of 4 months), giving 8.0 * 0.6 + 5.0 * 0.4 = 6.8.
    """
    ids = configured_evaluation
    return [
        {"eval_metric_id": ids.coverage.id, "variable_id": ids.standard.implemented.id, "value": 8},
        {"eval_metric_id": ids.coverage.id, "variable_id": ids.standard.specified.id, "value": 10},
        {"eval_metric_id": ids.uptime.id, "variable_id": ids.standard.months.id, "value": 2},
    ]


@pytest.fixture
def finalized_evaluation(client, evaluator_headers, configured_evaluation, entered_values):
    """Configured evaluation with values submitted and results calculated"""
    evaluation_id = configured_evaluation.evaluation.id

    response = client.post(
        f"/api/v1/entry-data/evaluations/{evaluation_id}/submit-data",
        json={"evaluation_variables": entered_values},
        headers=evaluator_headers,
    )
    assert response.status_code == 200

    response = client.post(f"/api/v1/entry-data/evaluations/{evaluation_id}/finalize", headers=evaluator_headers)
    assert response.status_code == 200

    return configured_evaluation
