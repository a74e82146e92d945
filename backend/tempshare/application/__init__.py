"""
Application Layer

Orchestrates domain services for the API and background sweeps.
"""

from .dependency_container import DependencyContainer, DependencyNotFoundError
from .event_publisher import EventPublisher
from .file_service import FileService

__all__ = [
    "DependencyContainer",
    "DependencyNotFoundError",
    "EventPublisher",
    "FileService",
]
