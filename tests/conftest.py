from datetime import date

import pytest
from fastapi.testclient import TestClient

from eduschedule.main import app, get_service
from eduschedule.services.schedule_service import ScheduleService
from eduschedule.services.storage import JsonFileStorage


TODAY = date(2024, 5, 8)  # a Wednesday


@pytest.fixture
def service():
    return ScheduleService(JsonFileStorage(None), clock=lambda: TODAY)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
