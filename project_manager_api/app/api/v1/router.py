"""
Top-level router for version 1 of the API.

Each endpoint module defines its full paths (``/users``, ``/projects``
...) so they are included here without a prefix.
"""

from fastapi import APIRouter

from .endpoints import projects, sprints, tasks, users


router = APIRouter()

router.include_router(users.router, tags=["users"])
router.include_router(projects.router, tags=["projects"])
router.include_router(sprints.router, tags=["sprints"])
router.include_router(tasks.router, tags=["tasks"])
