# Services package init
"""
PostDesk Backend — Services Layer
=================================

What:  Business logic between routes (HTTP) and the database (persistence).

Service Inventory:
    - PostService: field validation, ID validation, CRUD on posts, and
      translation of storage failures into the error taxonomy

Services take the session as an argument, so they are unit-tested with a
mocked AsyncSession and no HTTP layer.
"""
