"""
Pydantic schema definitions for API payloads.

Each domain defines its own request, response and filter models.
Schemas are kept apart from the ORM models so that the API
representation never exposes stored secrets such as password hashes.
"""
