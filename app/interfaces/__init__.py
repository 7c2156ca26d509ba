"""
Interfaces layer package.

FastAPI routers for users and admins, the health probe, and the
Pydantic schemas that define the HTTP contract. Routes build a
command, call one use case and shape the response.
"""
