from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body, json_errors, json_list, optional_str
from ..container import Container
from .model import CatalogItem, UnitSpec, UpsertProductInput


def catalog_item_json(item: CatalogItem) -> dict:
    p = item.product
    return {
        "id": p.product_id,
        "code": p.code,
        "name": p.name,
        "description": p.description,
        "isActive": p.is_active,
        "createdAt": p.created_at.isoformat(),
        "updatedAt": p.updated_at.isoformat(),
        "units": [
            {
                "id": u.unit_id,
                "name": u.name,
                "sku": u.sku,
                "isBase": u.is_base,
                "multiplierToBase": float(u.multiplier_to_base),
                "createdAt": u.created_at.isoformat(),
            }
            for u in item.units
        ],
    }


def parse_upsert(payload: dict) -> UpsertProductInput:
    return UpsertProductInput(
        product_id=optional_str(payload.get("id")),
        code=str(payload.get("code") or ""),
        name=str(payload.get("name") or ""),
        description=optional_str(payload.get("description")),
        is_active=bool(payload.get("isActive", True)),
        units=tuple(
            UnitSpec(
                unit_id=optional_str(u.get("id")),
                name=str(u.get("name") or ""),
                sku=optional_str(u.get("sku")),
                is_base=bool(u.get("isBase")),
                multiplier_to_base=u.get("multiplierToBase", ""),
            )
            for u in json_list(payload, "units")
        ),
    )


def register(app: Flask, container: Container) -> None:
    service = container.catalog_service

    @app.route("/api/catalog", methods=["GET"], endpoint="catalog_list")
    @json_errors
    def catalog_list():
        return jsonify({"products": [catalog_item_json(i) for i in service.list_catalog()]})

    @app.route("/api/catalog/<product_id>", methods=["GET"], endpoint="catalog_get")
    @json_errors
    def catalog_get(product_id: str):
        return jsonify({"product": catalog_item_json(service.get_item(product_id))})

    @app.route("/api/catalog", methods=["POST"], endpoint="catalog_upsert")
    @json_errors
    def catalog_upsert():
        item = service.upsert_product(parse_upsert(json_body()))
        return jsonify({"ok": True, "product": catalog_item_json(item)})

    @app.route("/api/catalog/<product_id>", methods=["DELETE"], endpoint="catalog_delete")
    @json_errors
    def catalog_delete(product_id: str):
        service.delete_product(product_id)
        return jsonify({"ok": True})
