"""Endpoint services."""

from .applications import ApplicationService, AsyncApplicationService
from .policies import AsyncPolicyService, PolicyService
from .systems import AsyncSystemService, SystemService

__all__ = [
    "ApplicationService",
    "AsyncApplicationService",
    "AsyncPolicyService",
    "AsyncSystemService",
    "PolicyService",
    "SystemService",
]
