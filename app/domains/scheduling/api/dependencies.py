"""
Scheduling API Dependencies

FastAPI dependencies for the scheduling domain.
"""

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request

from app.core.container import DependencyContainer, get_container
from app.domains.scheduling.application.services import AvailabilityService


def get_request_container(request: Request) -> DependencyContainer:
    """Container placed on app.state by the lifespan, or the global one."""
    container = getattr(request.app.state, "container", None)
    return container if container is not None else get_container()


ContainerDep = Annotated[DependencyContainer, Depends(get_request_container)]


async def get_availability_service(container: ContainerDep) -> AsyncIterator[AvailabilityService]:
    """Get AvailabilityService bound to the configured storage for this request."""
    async with container.availability_service() as service:
        yield service


__all__ = [
    "ContainerDep",
    "get_availability_service",
    "get_request_container",
]
