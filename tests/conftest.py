"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest
from datetime import date, datetime
from typing import Generator

from config import JsonFileStorage
from models.app_state import AppData, initial_app_data
from services.farm_store import FarmStore, set_farm_store
from services.forecast_service import StaticForecastProvider, set_forecast_provider


# ===================
# DATES
# ===================

@pytest.fixture
def today() -> date:
    """Fixed planning date used across tests."""
    return date(2024, 1, 15)


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 1, 15, 9, 30)


# ===================
# STATE AND STORE
# ===================

@pytest.fixture
def initial_state() -> AppData:
    return initial_app_data()


@pytest.fixture
def data_file(tmp_path) -> Path:
    return tmp_path / "microgreens.json"


@pytest.fixture
def storage(data_file) -> JsonFileStorage:
    return JsonFileStorage(data_file)


@pytest.fixture
def store(storage) -> Generator[FarmStore, None, None]:
    """FarmStore on a temporary file, installed as the app-wide store."""
    farm_store = FarmStore(storage)
    set_farm_store(farm_store)
    yield farm_store
    set_farm_store(None)


@pytest.fixture
def static_forecast() -> Generator[StaticForecastProvider, None, None]:
    """Forecast provider that returns nothing unless weeks are set."""
    provider = StaticForecastProvider()
    set_forecast_provider(provider)
    yield provider
    set_forecast_provider(None)


# ===================
# API CLIENT
# ===================

@pytest.fixture
def client(store, static_forecast):
    """TestClient against the temporary store, no Claude calls."""
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as test_client:
        yield test_client
