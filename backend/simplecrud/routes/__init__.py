# Routes package init
"""
simple-crud — Routes Package
=============================

Route Inventory:
    - dispatcher.py:  every method on /{any path}  (document CRUD keyed by path)

Every path is a document key, so no other endpoint (health, docs, OpenAPI)
may claim a path.
"""
