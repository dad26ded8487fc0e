"""
simple-crud — Package Initializer
==================================

What: A minimal HTTP front-end over a document store. Each request path is the
      unique key of one JSON document; GET/POST/PUT/DELETE read, merge, replace
      and delete it.

Architecture:

    ┌─────────────────────────────────────┐
    │      Dispatcher (catch-all route)   │  ← method routing, JSON in/out
    ├─────────────────────────────────────┤
    │         PathRepository              │  ← path-keyed CRUD semantics
    ├─────────────────────────────────────┤
    │         DocumentStore               │  ← find/insert/replace/update/delete
    ├─────────────────────────────────────┤
    │   Async SQLAlchemy engine (pool)    │  ← PostgreSQL (JSONB) or SQLite
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
