"""Consecutivo - fiscal document numbering and catalog resolution service.

Consecutivo administers the tenants ("channels") of an electronic invoicing
platform: their economic activities, branches and cash registers, the
per-register consecutive numbers of every fiscal document type, and a private
override layer over the shared product/service classification catalog.

Architecture Overview:
- **API Layer**: FastAPI routers, middleware and error rendering
- **Core Layer**: Configuration, logging, tracing and the exception taxonomy
- **Domain Layer**: Hierarchy authority, register ledger, catalog resolver
  and access guard
- **Infrastructure Layer**: Async SQLAlchemy persistence on PostgreSQL
"""
