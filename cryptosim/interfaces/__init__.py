"""
Interfaces layer package.

FastAPI routers and Pydantic schemas. Routes delegate to use cases;
no business logic lives here.
"""
