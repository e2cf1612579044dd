"""Catalog admin backend: products, users and an audit trail behind token auth."""

__version__ = "1.0.0"
