import pytest

import config
from app import create_app


class MemoryStore:
    """In-memory stand-in for JsonAttendanceStore."""

    def __init__(self, students):
        self._students = students

    def students(self):
        return list(self._students)


def make_students():
    return [
        {
            "id": 1,
            "name": "Budi Santoso",
            "class": "10A",
            "attendance": {"2025": {"05": [{"day": 15, "status": "Hadir"}]}},
        },
        {
            "id": 2,
            "name": "Budi Hartono",
            "class": "11B",
            "attendance": {"2025": {"05": [{"day": 15, "status": "absen"}, {"day": 20, "status": "izin"}]}},
        },
        {
            "id": 3,
            "name": "Ani Lestari",
            "class": "10A",
            "attendance": {},
        },
    ]


@pytest.fixture(autouse=True)
def no_openai(monkeypatch):
    """Force the offline paths (rule-based parameters, plain-text answers)."""
    monkeypatch.setattr(config, "get_openai_api_key", lambda: "")


@pytest.fixture
def students():
    return make_students()


@pytest.fixture
def app(students):
    return create_app(store=MemoryStore(students), TESTING=True, RATE_LIMIT_ENABLED=False)


@pytest.fixture
def client(app):
    return app.test_client()
