import pytest
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("REVALIDATE_URL", None)

from faculty_appraisal.database import Base, get_db
from faculty_appraisal.main import app
from faculty_appraisal.core.init_system import init_system_data
from faculty_appraisal.models import (
    AppraisalCycle, College, Department, User, UserRole,
    Appraisal, AppraisalStatus, Evaluation, EvaluatorRole,
)
from fastapi.testclient import TestClient


@pytest.fixture(scope="function")
def db_session():
    """A fresh in-memory database per test so service-level commits and rollbacks behave for real."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    
    yield session
    
    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def org(db_session):
    """Two colleges; Science has Math and Physics, Arts has History."""
    science = College(name="College of Science")
    arts = College(name="College of Arts")
    db_session.add_all([science, arts])
    db_session.flush()
    math = Department(name="Mathematics", college_id=science.id)
    physics = Department(name="Physics", college_id=science.id)
    history = Department(name="History", college_id=arts.id)
    db_session.add_all([math, physics, history])
    db_session.commit()
    return {"science": science, "arts": arts, "math": math, "physics": physics, "history": history}


def _user(db_session, email, role, department=None, managed_college=None):
    user = User(
        email=email,
        full_name=email.split("@")[0].title(),
        role=role,
        department_id=department.id if department else None,
        managed_college_id=managed_college.id if managed_college else None,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope="function")
def people(db_session, org):
    return {
        "admin": _user(db_session, "admin@uni.edu", UserRole.ADMIN),
        "dean": _user(db_session, "dean.science@uni.edu", UserRole.DEAN, managed_college=org["science"]),
        "dean_arts": _user(db_session, "dean.arts@uni.edu", UserRole.DEAN, managed_college=org["arts"]),
        "hod": _user(db_session, "hod.math@uni.edu", UserRole.HOD, department=org["math"]),
        "hod_physics": _user(db_session, "hod.physics@uni.edu", UserRole.HOD, department=org["physics"]),
        "instructor": _user(db_session, "ines@uni.edu", UserRole.INSTRUCTOR, department=org["math"]),
        "instructor_physics": _user(db_session, "paul@uni.edu", UserRole.INSTRUCTOR, department=org["physics"]),
    }


@pytest.fixture(scope="function")
def grading_config(db_session):
    """Default GLOBAL config, created the same way the app bootstraps it."""
    init_system_data(db_session)
    from faculty_appraisal.models import GradingConfig
    return db_session.query(GradingConfig).one()


@pytest.fixture(scope="function")
def active_cycle(db_session, grading_config):
    cycle = AppraisalCycle(academic_year="2024-2025", semester="Fall", is_active=True)
    db_session.add(cycle)
    db_session.commit()
    return cycle


@pytest.fixture(scope="function")
def make_appraisal(db_session, active_cycle):
    """Factory for an appraisal in the active cycle, optionally with a complete evaluation."""
    def _make(faculty, status=AppraisalStatus.NEW, evaluator_role=None, complete=True):
        appraisal = Appraisal(faculty_id=faculty.id, cycle_id=active_cycle.id, status=status)
        db_session.add(appraisal)
        db_session.flush()
        if evaluator_role is not None:
            db_session.add(Evaluation(
                appraisal_id=appraisal.id,
                role=evaluator_role,
                performance_pts=62 if complete else None,
                research_pts=18,
                university_service_pts=12,
                community_service_pts=8,
                teaching_quality_pts=24,
                capabilities_pts=48 if complete else None,
                rubric={"capabilities": {"total": 48}} if complete else None,
            ))
        db_session.commit()
        return appraisal
    return _make


@pytest.fixture(scope="function")
def auth_headers():
    """Identity header the upstream auth layer would forward."""
    def _headers(user):
        return {"X-User-Id": str(user.id)}
    return _headers


@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass
            
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
