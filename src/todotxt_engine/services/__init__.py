"""Summary services built on parsed task records."""

from .task_counts import (
    TaskCounts,
    count_tasks,
    merge_known_projects,
    project_counts,
    available_projects,
    available_contexts,
)

__all__ = [
    "TaskCounts",
    "count_tasks",
    "merge_known_projects",
    "project_counts",
    "available_projects",
    "available_contexts",
]
