"""
API tests through FastAPI's TestClient.

Each test runs against a fresh store on a temporary JSON file.
"""

import json

from exceptions import ForecastServiceError
from models.forecast import WeeklyForecast, WeeklyForecastPrediction
from services.forecast_service import set_forecast_provider


def _create_order(client, client_name="Green Cafe", items=None, delivery_date=None):
    body = {
        "clientName": client_name,
        "items": items or [{"variety": "Sunflower", "quantity": 4}],
    }
    if delivery_date:
        body["deliveryDate"] = delivery_date
    response = client.post("/api/orders", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class FailingProvider:
    def forecast(self, history):
        raise ForecastServiceError(details={"reason": "timeout"})


# ===================
# APP
# ===================

class TestApp:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["storage"]["varieties"] == 5

    def test_root_lists_endpoints(self, client):
        assert client.get("/").json()["endpoints"]["orders"] == "/api/orders"


# ===================
# ORDERS
# ===================

class TestOrdersApi:

    def test_create_and_get(self, client):
        order = _create_order(client, delivery_date="2024-01-20")

        assert order["id"].startswith("ORD-")
        assert order["status"] == "Pending"
        assert order["deliveryDate"] == "2024-01-20"

        response = client.get(f"/api/orders/{order['id']}")
        assert response.status_code == 200
        assert response.json()["clientName"] == "Green Cafe"

    def test_unknown_variety_rejected(self, client):
        response = client.post("/api/orders", json={
            "clientName": "Cafe",
            "items": [{"variety": "Basil", "quantity": 1}],
        })

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "UNKNOWN_VARIETY"

    def test_missing_order(self, client):
        response = client.get("/api/orders/ORD-NOPE")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ORDER_NOT_FOUND"

    def test_list_filters(self, client):
        _create_order(client, client_name="Green Cafe")
        _create_order(client, client_name="Deli")

        response = client.get("/api/orders", params={"client": "green"})

        assert [o["clientName"] for o in response.json()] == ["Green Cafe"]

    def test_harvest_dispatch_complete(self, client):
        order = _create_order(client)

        pick_list = client.get("/api/harvest/pick-list").json()
        assert {"variety": "Sunflower", "boxes": 4} in pick_list

        harvest = client.post("/api/harvest", json={"harvestedQuantities": {"Sunflower": 3}})
        assert harvest.status_code == 200
        result = harvest.json()
        assert result["processedOrders"] == 1
        assert result["shortfallReport"][0]["shortfall"] == 1

        dispatched = client.post(f"/api/orders/{order['id']}/dispatch", json={"deliveryMode": "Porter"})
        assert dispatched.status_code == 200
        assert dispatched.json()["status"] == "Dispatched"

        manifest = client.get("/api/reports/manifest").json()
        assert manifest[0]["deliveryMode"] == "Porter"
        assert manifest[0]["totalBoxes"] == 3

        completed = client.post(f"/api/orders/{order['id']}/complete", json={"cashReceived": 300})
        assert completed.json()["status"] == "Completed"
        assert completed.json()["cashReceived"] == 300

        deleted = client.delete(f"/api/orders/{order['id']}")
        assert deleted.status_code == 409
        assert deleted.json()["error"]["code"] == "ORDER_COMPLETED"

    def test_dispatch_pending_order_rejected(self, client):
        order = _create_order(client)

        response = client.post(f"/api/orders/{order['id']}/dispatch", json={"deliveryMode": "Porter"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_STATUS_TRANSITION"

    def test_update_and_delete(self, client):
        order = _create_order(client)

        updated = client.put(f"/api/orders/{order['id']}", json={
            "clientName": "Renamed",
            "items": [{"variety": "Radish", "quantity": 2}],
        })
        assert updated.status_code == 200
        assert updated.json()["clientName"] == "Renamed"

        assert client.delete(f"/api/orders/{order['id']}").status_code == 204
        assert client.get("/api/orders").json() == []

    def test_import_csv(self, client):
        text = (
            "clientName,deliveryDate,variety,quantity,location\n"
            "Green Cafe,2024-01-20,Sunflower,4,Indiranagar\n"
            "Green Cafe,2024-01-20,Radish,2,\n"
        )

        response = client.post("/api/orders/import", files={"file": ("orders.csv", text, "text/csv")})

        assert response.status_code == 201
        data = response.json()
        assert data["imported"] == 1
        assert data["rows"] == 2
        assert data["orders"][0]["id"].startswith("IMP-")

    def test_import_csv_rejects_bad_row(self, client):
        text = "clientName,deliveryDate,variety,quantity\nCafe,2024-01-20,Basil,1\n"

        response = client.post("/api/orders/import", files={"file": ("orders.csv", text, "text/csv")})

        assert response.status_code == 422
        assert response.json()["error"]["details"]["row"] == 2
        assert client.get("/api/orders").json() == []

    def test_export_csv(self, client):
        _create_order(client)

        response = client.get("/api/orders/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.text.startswith("id,clientName,status")

    def test_export_without_orders(self, client):
        response = client.get("/api/orders/export")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "NO_DATA_TO_EXPORT"


# ===================
# VARIETIES, MODES, SEEDS
# ===================

class TestVarietiesApi:

    def test_add_and_delete(self, client):
        response = client.post("/api/varieties", json={"name": "Basil", "growthCycleDays": 12})
        assert response.status_code == 201

        assert client.get("/api/seed-inventory/Basil").json()["stockOnHand"] == 0
        assert client.delete("/api/varieties/Basil").status_code == 204

    def test_duplicate_rejected(self, client):
        response = client.post("/api/varieties", json={"name": "sunflower", "growthCycleDays": 8})

        assert response.status_code == 409

    def test_in_use_cannot_be_deleted(self, client):
        _create_order(client)

        response = client.delete("/api/varieties/Sunflower")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "VARIETY_IN_USE"

    def test_import_csv(self, client):
        text = "name,growthCycleDays\nBasil,12\n"

        response = client.post("/api/varieties/import", files={"file": ("varieties.csv", text, "text/csv")})

        assert response.status_code == 201
        names = [v["name"] for v in client.get("/api/varieties").json()]
        assert names == sorted(names)
        assert "Basil" in names

    def test_delivery_modes(self, client):
        response = client.post("/api/delivery-modes", json={"name": "Bike"})

        assert response.status_code == 201
        assert response.json()[-1] == "Bike"
        assert client.post("/api/delivery-modes", json={"name": "Bike"}).json().count("Bike") == 1

    def test_update_seed_inventory(self, client):
        response = client.patch("/api/seed-inventory/Sunflower", json={"reorderLevel": 1500})

        assert response.status_code == 200
        assert response.json()["reorderLevel"] == 1500
        assert response.json()["stockOnHand"] == 5000


# ===================
# SOWING
# ===================

class TestSowingApi:

    def test_save_log_deducts_seed(self, client):
        response = client.post("/api/sowing/log", json={"date": "2024-01-01", "trays": {"Sunflower": 10}})

        assert response.status_code == 200
        assert response.json() == {"date": "2024-01-01", "trays": {"Sunflower": 10}}
        assert client.get("/api/seed-inventory/Sunflower").json()["stockOnHand"] == 3800
        assert client.get("/api/sowing/log").json()[0]["date"] == "2024-01-01"

    def test_order_driven_plan(self, client):
        _create_order(client, items=[{"variety": "Sunflower", "quantity": 12}], delivery_date="2030-06-09")

        response = client.get("/api/sowing/plan", params={"date": "2030-06-01"})

        assert response.status_code == 200
        assert response.json() == [
            {"variety": "Sunflower", "trays": 3, "reason": "For 12 boxes due 2030-06-09"}
        ]

    def test_intelligent_plan(self, client):
        response = client.get("/api/sowing/intelligent-plan")

        assert response.status_code == 200
        data = response.json()
        assert data["forecastUsed"] is False
        assert {"plan", "purchaseList"} <= set(data)

    def test_upcoming(self, client):
        response = client.get("/api/sowing/upcoming", params={"days": 5})

        assert response.status_code == 200
        assert len(response.json()) == 5


# ===================
# PURCHASE ORDERS AND LOGS
# ===================

class TestPurchaseOrdersApi:

    def test_lifecycle(self, client):
        created = client.post("/api/purchase-orders", json={
            "supplierName": "Seed Co",
            "items": [{"variety": "Radish", "quantity": 500}],
        })
        assert created.status_code == 201
        po_id = created.json()["id"]

        assert client.post(f"/api/purchase-orders/{po_id}/received").status_code == 422
        assert client.post(f"/api/purchase-orders/{po_id}/ordered").json()["status"] == "Ordered"

        received = client.post(f"/api/purchase-orders/{po_id}/received")
        assert received.json()["status"] == "Received"
        assert client.get("/api/seed-inventory/Radish").json()["stockOnHand"] == 3000

        assert client.delete(f"/api/purchase-orders/{po_id}").status_code == 409


class TestLogsApi:

    def test_waste_and_expenses(self, client):
        waste = client.post("/api/logs/waste", json={
            "date": "2024-01-15", "variety": "Peas", "traysWasted": 2, "reason": "Mould",
        })
        assert waste.status_code == 201

        expense = client.post("/api/logs/expenses", json={
            "date": "2024-01-15", "deliveryPerson": "Porter", "amount": 80,
        })
        assert expense.status_code == 201

        assert len(client.get("/api/logs/waste").json()) == 1
        assert client.get("/api/logs/expenses", params={"delivery_person": "Tiffin"}).json() == []
        assert client.delete(f"/api/logs/waste/{waste.json()['id']}").status_code == 204


# ===================
# REPORTS AND FORECAST
# ===================

class TestReportsApi:

    def test_period_report(self, client):
        _create_order(client)

        response = client.get("/api/reports/period", params={"period": "daily"})

        assert response.status_code == 200
        assert response.json()["totalOrders"] == 1

    def test_yield_csv(self, client):
        client.post("/api/sowing/log", json={"date": "2030-01-01", "trays": {"Sunflower": 2}})

        response = client.get("/api/reports/yield", params={
            "start_date": "2030-01-01", "end_date": "2030-01-31", "format": "csv",
        })

        assert response.status_code == 200
        assert response.text.split("\n")[0] == "variety,traysSown,boxesHarvested,yieldRatio"

    def test_invalid_range(self, client):
        response = client.get("/api/reports/seed-to-sale", params={
            "start_date": "2024-02-01", "end_date": "2024-01-01",
        })

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_DATE_RANGE"


class TestForecastApi:

    def test_unavailable_without_history(self, client):
        response = client.get("/api/forecast")

        assert response.json() == {"available": False, "weeks": [], "historyPoints": 0}

    def test_static_forecast(self, client, static_forecast):
        static_forecast.weeks = [
            WeeklyForecast(week="Week 1", predictions=[WeeklyForecastPrediction(variety="Peas", quantity=3)])
        ]

        data = client.get("/api/forecast").json()

        assert data["available"] is True
        assert data["weeks"][0]["predictions"][0] == {"variety": "Peas", "quantity": 3}

    def test_failure_is_503(self, client):
        set_forecast_provider(FailingProvider())

        response = client.get("/api/forecast")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "FORECAST_ERROR"


# ===================
# DATA
# ===================

class TestDataApi:

    def test_export_import_round_trip(self, client):
        _create_order(client)
        exported = client.get("/api/data/export")
        assert exported.status_code == 200
        assert "attachment" in exported.headers["content-disposition"]

        client.post("/api/data/reset")
        assert client.get("/api/orders").json() == []

        response = client.post(
            "/api/data/import", files={"file": ("backup.json", exported.text, "application/json")}
        )
        assert response.status_code == 200
        assert response.json()["orders"] == 1
        assert len(client.get("/api/orders").json()) == 1

    def test_import_rejects_bad_file(self, client):
        response = client.post(
            "/api/data/import",
            files={"file": ("backup.json", json.dumps({"orders": []}), "application/json")},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "SNAPSHOT_IMPORT_ERROR"

    def test_status(self, client):
        _create_order(client)

        data = client.get("/api/data/status").json()

        assert data["file_exists"] is True
        assert data["orders"] == 1
