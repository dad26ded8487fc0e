# Services package init
"""
simple-crud — Services Layer
=============================

What:  Persistence mapping between the dispatcher (HTTP) and the database.

Service Inventory:
    - DocumentStore:     find/insert/replace/update/delete primitives on one collection
    - update_operators:  operator-style update documents ($set, $inc, ...)
    - PathRepository:    path-keyed CRUD built on the DocumentStore
"""
