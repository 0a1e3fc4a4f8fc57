from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, json_errors, json_list, optional_str
from ..container import Container
from .model import AssignmentDetail, AssignmentFilter, AssignmentUnitView, AssignmentView, DesiredUnit, ReconcileInput


def unit_view_json(u: AssignmentUnitView) -> dict:
    return {
        "assignmentUnitId": u.assignment_unit_id,
        "unitId": u.unit_id,
        "unitName": u.unit_name,
        "unitSku": u.unit_sku,
        "isBase": u.is_base,
        "multiplierToBase": float(u.multiplier_to_base),
        "pricePc": float(u.price_pc),
        "isActive": u.is_active,
    }


def assignment_json(a: AssignmentView) -> dict:
    return {
        "assignmentId": a.assignment_id,
        "productId": a.product_id,
        "productCode": a.product_code,
        "productName": a.product_name,
        "employeeId": a.employee_id,
        "storeId": a.store_id,
        "units": [unit_view_json(u) for u in a.units],
    }


def assignment_detail_json(d: AssignmentDetail) -> dict:
    return {
        "assignmentId": d.assignment_id,
        "productId": d.product_id,
        "productCode": d.product_code,
        "productName": d.product_name,
        "productDescription": d.product_description,
        "employeeId": d.employee_id,
        "storeId": d.store_id,
        "createdAt": d.created_at.isoformat(),
        "units": [unit_view_json(u) for u in d.units],
        "productUnits": [
            {
                "unitId": u.unit_id,
                "unitName": u.name,
                "unitSku": u.sku,
                "multiplierToBase": float(u.multiplier_to_base),
                "isBase": u.is_base,
            }
            for u in d.product_units
        ],
    }


def parse_desired_units(payload: dict) -> tuple:
    return tuple(
        DesiredUnit(
            unit_id=str(u.get("unitId") or ""),
            price_pc=u.get("pricePc") if u.get("pricePc") is not None else 0,
            enabled=bool(u.get("enabled")),
        )
        for u in json_list(payload, "units")
    )


def register(app: Flask, container: Container) -> None:
    reconciler = container.assignment_reconciler

    @app.route("/api/assignments", methods=["GET"], endpoint="assignments_list")
    @json_errors
    def assignments_list():
        query = AssignmentFilter(
            employee_id=request.args.get("employeeId") or None,
            store_id=request.args.get("storeId") or None,
            only_active_units=request.args.get("onlyActive") == "true",
        )
        return jsonify({"assignments": [assignment_json(a) for a in reconciler.list_assignments(query)]})

    @app.route("/api/assignments/<assignment_id>", methods=["GET"], endpoint="assignments_get")
    @json_errors
    def assignments_get(assignment_id: str):
        return jsonify({"assignment": assignment_detail_json(reconciler.get_assignment(assignment_id))})

    @app.route("/api/assignments", methods=["POST"], endpoint="assignments_reconcile")
    @json_errors
    def assignments_reconcile():
        payload = json_body()
        result = reconciler.reconcile(
            ReconcileInput(
                product_id=str(payload.get("productId") or ""),
                employee_id=str(payload.get("employeeId") or ""),
                store_id=optional_str(payload.get("storeId")),
                units=parse_desired_units(payload),
            )
        )
        return jsonify({"ok": True, "assignmentId": result.assignment_id, "created": result.created})

    @app.route("/api/assignments/<assignment_id>", methods=["PUT"], endpoint="assignments_update")
    @json_errors
    def assignments_update(assignment_id: str):
        result = reconciler.update_assignment_units(assignment_id, parse_desired_units(json_body()))
        return jsonify({"ok": True, "assignmentId": assignment_id, "updatedUnits": result.changed})

    @app.route("/api/assignments/<assignment_id>", methods=["DELETE"], endpoint="assignments_delete")
    @json_errors
    def assignments_delete(assignment_id: str):
        reconciler.delete_assignment(assignment_id)
        return jsonify({"ok": True})
