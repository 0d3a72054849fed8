"""HTTP API for Consecutivo.

- **main**: application factory, lifespan, health and info endpoints
- **routes**: channel-scoped routes under ``/api/v1``
- **dependencies**: caller identity, channel access and per-request services
- **middleware**: request context, request logging and error rendering
- **schemas**: the shared error body
"""
