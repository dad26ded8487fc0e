# Middleware package init
"""
simple-crud — Middleware Package
=================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → Dispatcher

    Request ID runs first so the access log line and any error log carry it.
"""
