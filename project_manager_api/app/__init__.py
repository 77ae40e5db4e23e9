"""
Application package initializer.

The project is organised by layer: ``core`` holds configuration,
security, logging and database plumbing; ``models`` the ORM entities;
``repositories`` the entity store; ``services`` the authorization
resolver, domain validators and use-case services; ``api/v1`` the
HTTP routes.  Each domain (users, projects, sprints, tasks) exposes a
router defined in ``api/v1/endpoints``.
"""

from .main import app  # noqa: F401
