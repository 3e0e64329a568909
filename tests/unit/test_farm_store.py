"""
Tests for FarmStore: state ownership and persistence.
"""

from datetime import date
from unittest.mock import MagicMock

import pytest

from config import JsonFileStorage
from exceptions import StorageError, OrderNotFoundError
from models.app_state import initial_app_data
from models.order import OrderCreate, OrderItem
from services.farm_store import FarmStore, get_farm_store, set_farm_store


def _order() -> OrderCreate:
    return OrderCreate(client_name="Green Cafe", items=[OrderItem(variety="Sunflower", quantity=4)])


class TestFarmStore:

    def test_starts_from_initial_data_without_file(self, storage):
        store = FarmStore(storage)

        assert store.state.variety_names() == initial_app_data().variety_names()
        assert store.last_error is None

    def test_changes_are_saved(self, storage):
        store = FarmStore(storage)
        order = store.add_order(_order())

        reloaded = FarmStore(JsonFileStorage(storage.path))

        assert reloaded.state.find_order(order.id) is not None
        assert store.last_saved_at is not None

    def test_failed_transition_changes_nothing(self, storage):
        store = FarmStore(storage)
        before = store.state

        with pytest.raises(OrderNotFoundError):
            store.delete_order("NOPE")

        assert store.state is before
        assert not storage.exists()

    def test_save_failure_is_not_fatal(self):
        storage = MagicMock()
        storage.load.return_value = initial_app_data()
        storage.save.side_effect = StorageError("save", "disk full")
        store = FarmStore(storage)

        order = store.add_order(_order())

        assert store.state.find_order(order.id) is not None
        assert store.last_error == "Storage save failed: disk full"

    def test_load_failure_starts_fresh(self, data_file):
        data_file.write_text("{not json", encoding="utf-8")

        store = FarmStore(JsonFileStorage(data_file))

        assert store.last_error == "Could not load saved data. Starting fresh."
        assert store.state.orders == []

    def test_sowing_log_round_trip(self, storage):
        store = FarmStore(storage)
        store.save_sowing_log(date(2024, 1, 1), {"Sunflower": 10})

        reloaded = FarmStore(JsonFileStorage(storage.path))

        assert reloaded.state.harvesting_log["2024-01-01"].trays == {"Sunflower": 10}
        assert reloaded.state.seed_inventory["Sunflower"].stock_on_hand == 3800

    def test_reset_removes_file(self, storage):
        store = FarmStore(storage)
        store.add_order(_order())
        assert storage.exists()

        store.reset()

        assert not storage.exists()
        assert store.state.orders == []

    def test_status(self, storage):
        store = FarmStore(storage)

        status = store.status()

        assert status["data_file"] == str(storage.path)
        assert status["file_exists"] is False
        assert status["varieties"] == 5


class TestSingleton:

    def test_set_and_get(self, storage):
        store = FarmStore(storage)
        set_farm_store(store)
        try:
            assert get_farm_store() is store
        finally:
            set_farm_store(None)
