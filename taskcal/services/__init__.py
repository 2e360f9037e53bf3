"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .task_service import TaskService, build_task_service

__all__ = ["TaskService", "build_task_service"]
