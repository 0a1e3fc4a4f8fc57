from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .assignments.mysql_assignment_repository import MySQLAssignmentRepository, MySQLAssignmentUnitRepository
from .assignments.repository import AssignmentRepository, AssignmentUnitRepository
from .assignments.service import AssignmentReconciler
from .catalog.mysql_catalog_repository import MySQLProductRepository, MySQLProductUnitRepository
from .catalog.repository import ProductRepository, ProductUnitRepository
from .catalog.service import CatalogService
from .database.connection import DBConfig, DatabaseConnection


@dataclass(frozen=True)
class Container:
    products_repo: ProductRepository
    units_repo: ProductUnitRepository
    assignments_repo: AssignmentRepository
    assignment_units_repo: AssignmentUnitRepository

    catalog_service: CatalogService
    assignment_reconciler: AssignmentReconciler

    conn: Optional[DatabaseConnection] = None


def build_container(*, db_config: dict) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        isolation_level=str(db_config.get("isolation_level", "SERIALIZABLE")),
    )
    conn = DatabaseConnection.get_instance(config)

    products_repo = MySQLProductRepository(conn)
    units_repo = MySQLProductUnitRepository(conn)
    assignments_repo = MySQLAssignmentRepository(conn)
    assignment_units_repo = MySQLAssignmentUnitRepository(conn)

    catalog_service = CatalogService(
        products_repo,
        units_repo,
        assignments_repo,
        assignment_units_repo,
        transaction=conn.transaction,
    )
    assignment_reconciler = AssignmentReconciler(
        assignments_repo,
        assignment_units_repo,
        products_repo,
        units_repo,
        transaction=conn.transaction,
    )

    return Container(
        products_repo=products_repo,
        units_repo=units_repo,
        assignments_repo=assignments_repo,
        assignment_units_repo=assignment_units_repo,
        catalog_service=catalog_service,
        assignment_reconciler=assignment_reconciler,
        conn=conn,
    )
