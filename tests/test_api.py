from __future__ import annotations

import pytest

from src.retail_ops.retail_ops.core.exceptions import PersistenceError
from src.retail_ops.retail_ops.main import create_app


@pytest.fixture
def client(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    app.config["TESTING"] = True
    return app.test_client()


def _create_product(client, code="P-1"):
    res = client.post(
        "/api/catalog",
        json={
            "code": code,
            "name": "Green Tea",
            "units": [
                {"name": "box", "multiplierToBase": 12},
                {"name": "piece", "isBase": True, "multiplierToBase": 1},
            ],
        },
    )
    assert res.status_code == 200
    return res.get_json()["product"]


def test_catalog_round_trip(client):
    product = _create_product(client)
    assert [u["name"] for u in product["units"]] == ["piece", "box"]

    listed = client.get("/api/catalog").get_json()["products"]
    assert [p["code"] for p in listed] == ["P-1"]

    assert client.get(f"/api/catalog/{product['id']}").status_code == 200
    assert client.delete(f"/api/catalog/{product['id']}").get_json() == {"ok": True}
    assert client.get(f"/api/catalog/{product['id']}").status_code == 404


def test_catalog_validation_error_is_400(client):
    res = client.post(
        "/api/catalog",
        json={"code": "P-1", "name": "x", "units": [{"name": "piece", "multiplierToBase": 1}]},
    )
    assert res.status_code == 400
    assert res.get_json() == {"ok": False, "message": "single base unit required"}


def test_non_json_body_is_400(client):
    res = client.post("/api/catalog", data="not json", content_type="text/plain")
    assert res.status_code == 400


def test_assignment_endpoints(client):
    product = _create_product(client)
    piece, box = (u["id"] for u in product["units"])

    res = client.post(
        "/api/assignments",
        json={
            "productId": product["id"],
            "employeeId": "E-1",
            "storeId": None,
            "units": [
                {"unitId": piece, "pricePc": 5, "enabled": True},
                {"unitId": box, "pricePc": "50", "enabled": True},
            ],
        },
    )
    body = res.get_json()
    assert res.status_code == 200
    assert body["created"] is True
    assignment_id = body["assignmentId"]

    res = client.put(
        f"/api/assignments/{assignment_id}",
        json={"units": [{"unitId": piece, "pricePc": 5, "enabled": True}, {"unitId": box, "pricePc": 50, "enabled": False}]},
    )
    assert res.get_json()["updatedUnits"] == 1

    listed = client.get("/api/assignments?employeeId=E-1").get_json()["assignments"]
    assert [u["isActive"] for u in listed[0]["units"]] == [True, False]
    active = client.get("/api/assignments?employeeId=E-1&onlyActive=true").get_json()["assignments"]
    assert [u["unitName"] for u in active[0]["units"]] == ["piece"]

    detail = client.get(f"/api/assignments/{assignment_id}").get_json()["assignment"]
    assert detail["units"][1]["pricePc"] == 50.0
    assert len(detail["productUnits"]) == 2

    assert client.delete(f"/api/assignments/{assignment_id}").status_code == 200
    assert client.get(f"/api/assignments/{assignment_id}").status_code == 404


def test_reconcile_without_enabled_units_is_400(client):
    product = _create_product(client)
    res = client.post(
        "/api/assignments",
        json={"productId": product["id"], "employeeId": "E-1", "units": []},
    )
    assert res.status_code == 400
    assert res.get_json()["message"] == "no units supplied"


def test_store_failure_is_500(client, container, monkeypatch):
    def boom():
        raise PersistenceError("Lost connection to MySQL server")

    monkeypatch.setattr(container.catalog_service, "list_catalog", boom)
    res = client.get("/api/catalog")
    assert res.status_code == 500
    assert res.get_json()["message"] == "Lost connection to MySQL server"


def test_non_string_scalars_are_read_as_text(client):
    res = client.post(
        "/api/catalog",
        json={
            "code": "P-9",
            "name": "Numbered",
            "description": 5,
            "units": [{"name": "piece", "sku": 123, "isBase": True, "multiplierToBase": 1}],
        },
    )
    assert res.status_code == 200
    product = res.get_json()["product"]
    assert product["description"] == "5"
    assert product["units"][0]["sku"] == "123"

    res = client.post(
        "/api/catalog",
        json={"code": "P-10", "name": "x", "units": [{"id": 7, "name": "piece", "isBase": True, "multiplierToBase": 1}]},
    )
    assert res.status_code == 400
    assert res.get_json()["message"] == "unit does not belong to product"


def test_overlong_sku_is_400(client):
    res = client.post(
        "/api/catalog",
        json={"code": "P-1", "name": "x", "units": [{"name": "piece", "sku": "S" * 65, "isBase": True, "multiplierToBase": 1}]},
    )
    assert res.status_code == 400
    assert res.get_json()["ok"] is False
