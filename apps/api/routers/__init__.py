"""Routers package."""

from . import (
    health,
    auth,
    research,
    generation,
    downloads,
    content,
    session,
    admin,
)
