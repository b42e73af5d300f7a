from datetime import date
from uuid import uuid4

import pytest

from app.main import app
from app.schemas.identity import Principal
from app.services.admission import AdmissionController
from app.services.availability_service import AvailabilityService
from tests.fakes import InMemoryDatastore

# A Monday; the Tuesday after it is 2025-06-03
TODAY = date(2025, 6, 2)
HORIZON_DAYS = 180


def fixed_today() -> date:
    return TODAY


@pytest.fixture
def datastore():
    return InMemoryDatastore()


@pytest.fixture
def city(datastore):
    return datastore.add_city()


@pytest.fixture
def post(datastore, city):
    return datastore.add_health_post(city.id)


@pytest.fixture
def service(datastore, city):
    return datastore.add_service(city.id, requirements="Bring your vaccination card")


@pytest.fixture
def patient(city):
    return Principal(user_id=uuid4(), role="user", city_id=city.id)


@pytest.fixture
def staff(city):
    return Principal(user_id=uuid4(), role="staff", city_id=city.id)


@pytest.fixture
def controller(datastore):
    return AdmissionController(
        unit_factory=datastore.unit,
        horizon_days=HORIZON_DAYS,
        today=fixed_today,
        max_retries=1,
    )


@pytest.fixture
def availability(datastore):
    return AvailabilityService(datastore.store(), horizon_days=HORIZON_DAYS, today=fixed_today)


@pytest.fixture
def overrides():
    yield app.dependency_overrides
    app.dependency_overrides.clear()
