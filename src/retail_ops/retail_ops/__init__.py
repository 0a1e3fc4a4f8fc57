"""Retail field-operations back office.

This package is organized by feature modules (catalog, assignments)
with a thin Flask controller layer and service/repository layers.
"""
