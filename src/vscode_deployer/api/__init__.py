"""Deployer API endpoints."""

from vscode_deployer.api.health import router as health_router
from vscode_deployer.api.instances import router as instances_router

__all__ = [
    "health_router",
    "instances_router",
]
