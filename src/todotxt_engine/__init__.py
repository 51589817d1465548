"""todo.txt task engine - parse, edit, recur, filter and sort todo.txt tasks."""

__version__ = "0.1.0"

from .todo import TaskRecord, INBOX_PROJECT, ARCHIVED_PROJECT
from .parser import TaskFields, TaskBuilder, parse_line, parse_todo_txt, build_line
from .recurring import RecurrenceResult, compute_next_due, next_due_date
from .task_service import TaskService, CompletionResult
from .query_engine import QueryEngine, FilterCriteria, TaskBucket, TimeFilter, SortOption
from .buffer import TodoBuffer

__all__ = [
    "TaskRecord",
    "INBOX_PROJECT",
    "ARCHIVED_PROJECT",
    "TaskFields",
    "TaskBuilder",
    "parse_line",
    "parse_todo_txt",
    "build_line",
    "RecurrenceResult",
    "compute_next_due",
    "next_due_date",
    "TaskService",
    "CompletionResult",
    "QueryEngine",
    "FilterCriteria",
    "TaskBucket",
    "TimeFilter",
    "SortOption",
    "TodoBuffer",
    "__version__",
]
