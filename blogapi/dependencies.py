"""Application dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from blogapi.db.connection import ConnectionManager
from blogapi.errors.database import DatabaseConnectionError
from blogapi.monitoring.health import HealthChecker
from blogapi.repositories.blog import BlogRepository


def get_connection_manager(request: Request) -> ConnectionManager:
    """Return the connection manager built by the lifespan."""
    connection: ConnectionManager | None = getattr(request.app.state, "connection", None)
    if connection is None:
        raise DatabaseConnectionError(detail="Database is not initialized")
    return connection


def get_blog_repository(
    request: Request,
    connection: Annotated[ConnectionManager, Depends(get_connection_manager)],
) -> BlogRepository:
    """Return the shared repository, creating it on first use."""
    repository: BlogRepository | None = getattr(request.app.state, "blog_repository", None)
    if repository is None:
        repository = BlogRepository(connection)
        request.app.state.blog_repository = repository
    return repository


def get_health_checker(
    request: Request,
    connection: Annotated[ConnectionManager, Depends(get_connection_manager)],
) -> HealthChecker:
    checker: HealthChecker | None = getattr(request.app.state, "health_checker", None)
    return checker or HealthChecker(connection, version=request.app.version)


ConnectionDep = Annotated[ConnectionManager, Depends(get_connection_manager)]
RepoDep = Annotated[BlogRepository, Depends(get_blog_repository)]
HealthDep = Annotated[HealthChecker, Depends(get_health_checker)]
