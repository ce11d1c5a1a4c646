"""Utilities for worker tasks."""
from jobs.utils.collaborators import build_collaborators
from jobs.utils.database import create_task_engine, create_task_session_maker

__all__ = [
    "build_collaborators",
    "create_task_engine",
    "create_task_session_maker",
]
