import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.db.base import Base
from app.main import app
from app.schemas.catalog import Catalog


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def course(code, *, blocks=("1A",), max_size=30, sections=1, lecturers=(), rooms=(), title=None, **extra):
    payload = {
        "courseCode": code,
        "title": title or f"Course {code}",
        "availableBlocks": list(blocks),
        "sectionSizes": {"min": 0, "target": max_size, "max": max_size},
        "numberOfSections": sections,
        "lecturerIds": list(lecturers),
        "assignedRooms": list(rooms),
    }
    payload.update(extra)
    return payload


def student(student_id, *requests, college_year=1):
    return {
        "studentId": student_id,
        "collegeYear": college_year,
        "requests": [
            {"courseCode": code, "courseTitle": f"Course {code}", "type": request_type}
            for code, request_type in requests
        ],
    }


def catalog_payload(courses, students, *, lecturers=None, rooms=None, blocks=None):
    if lecturers is None:
        lecturer_ids = []
        for item in courses:
            for lecturer_id in item.get("lecturerIds", []):
                if lecturer_id not in lecturer_ids:
                    lecturer_ids.append(lecturer_id)
        lecturers = [
            {
                "lecturerId": lecturer_id,
                "courseCodes": [c["courseCode"] for c in courses if lecturer_id in c.get("lecturerIds", [])],
            }
            for lecturer_id in lecturer_ids
        ]
    payload = {
        "courses": courses,
        "lecturers": lecturers,
        "rooms": rooms if rooms is not None else [],
        "students": students,
    }
    if blocks is not None:
        payload["blocks"] = list(blocks)
    return payload


@pytest.fixture()
def make_catalog():
    def _make(courses, students, **kwargs) -> Catalog:
        return Catalog.model_validate(catalog_payload(courses, students, **kwargs))

    return _make
