"""
Filter and sort engine for task lists

Filters are applied in a fixed order, each narrowing the previous result:
lifecycle bucket, time window, free-text search, context, project. The
result is then sorted stably with open tasks ahead of completed ones.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .config import ConfigModel
from .todo import TaskRecord, INBOX_PROJECT, ARCHIVED_PROJECT
from .utils.datetime import format_iso, resolve_today


logger = logging.getLogger(__name__)

# Context filter value selecting tasks without any context
NO_CONTEXT = "NONE"

MISSING_PRIORITY = "Z"
MISSING_DATE = "0000-00-00"
MISSING_TAG = "zzz"
MISSING_DUE_DATE = "9999-99-99"


class TaskBucket(Enum):
    """Lifecycle buckets; exactly one is shown at a time"""
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TimeFilter(Enum):
    """Due-date windows for active tasks"""
    TODAY = "today"        # due today or overdue
    UPCOMING = "upcoming"  # due after today


class SortOption(Enum):
    """Sort keys"""
    PRIORITY = "priority"
    CREATION = "creation"
    COMPLETION = "completion"
    ALPHABETICAL = "alphabetical"
    PROJECTS = "projects"
    CONTEXTS = "contexts"
    DUE_DATE = "duedate"


# Sort key and whether it sorts descending
SORT_KEYS: Dict[SortOption, Tuple[Callable[[TaskRecord], str], bool]] = {
    SortOption.PRIORITY: (lambda r: r.priority or MISSING_PRIORITY, False),
    SortOption.CREATION: (lambda r: r.creation_date or MISSING_DATE, True),
    SortOption.COMPLETION: (lambda r: r.completion_date or MISSING_DATE, True),
    SortOption.ALPHABETICAL: (lambda r: r.description.casefold(), False),
    SortOption.PROJECTS: (lambda r: r.projects[0] if r.projects else MISSING_TAG, False),
    SortOption.CONTEXTS: (lambda r: r.contexts[0] if r.contexts else MISSING_TAG, False),
    SortOption.DUE_DATE: (lambda r: r.due_date or MISSING_DUE_DATE, False),
}


@dataclass(frozen=True)
class FilterCriteria:
    """A combination of filters and a sort key.

    ``sort`` of None means the bucket's natural order: completion date for
    completed tasks, the configured default otherwise.
    """
    bucket: TaskBucket = TaskBucket.ACTIVE
    time_filter: Optional[TimeFilter] = None
    search: str = ""
    context: str = ""
    project: str = ""
    sort: Optional[SortOption] = None

    @classmethod
    def from_quick_filter(cls, name: str) -> "FilterCriteria":
        """Build criteria for a sidebar filter name.

        Known names are All, Inbox, Today, Upcoming, Archived and Completed
        (case-insensitive); anything else selects the project of that name.
        """
        key = (name or "").strip().lower()
        if key in ("", "all"):
            return cls()
        if key == "inbox":
            return cls(project=INBOX_PROJECT)
        if key == "today":
            return cls(time_filter=TimeFilter.TODAY)
        if key == "upcoming":
            return cls(time_filter=TimeFilter.UPCOMING)
        if key == "archived":
            return cls(bucket=TaskBucket.ARCHIVED)
        if key == "completed":
            return cls(bucket=TaskBucket.COMPLETED)
        return cls(project=name.strip())

    def default_project(self) -> Optional[str]:
        """Project preselected for a task created under these criteria."""
        if self.bucket == TaskBucket.ARCHIVED:
            return ARCHIVED_PROJECT
        return self.project or None

    def default_due_date(self, today: Optional[date] = None) -> Optional[str]:
        """Due date preselected for a task created under these criteria."""
        if self.time_filter == TimeFilter.TODAY:
            return format_iso(resolve_today(today))
        return None


class QueryEngine:
    """Main filter and sort engine"""

    def __init__(self, config: Optional[ConfigModel] = None):
        self.config = config or ConfigModel()

    def startup_criteria(self) -> FilterCriteria:
        """Criteria for the configured startup filter."""
        return FilterCriteria.from_quick_filter(self.config.startup_filter)

    def apply(self, records: Iterable[TaskRecord], criteria: FilterCriteria,
              today: Optional[date] = None) -> List[TaskRecord]:
        """Filter and sort records.

        Args:
            records: Parsed task records
            criteria: Filters and sort key
            today: Reference date for time windows (defaults to local date)

        Returns:
            A new list; the input is left untouched
        """
        filtered = self._filter(records, criteria, today, use_context=True)
        return self.sort(filtered, self._effective_sort(criteria))

    def contexts_for(self, records: Iterable[TaskRecord], criteria: FilterCriteria,
                     today: Optional[date] = None) -> List[str]:
        """Contexts present under all current filters except the context one."""
        filtered = self._filter(records, criteria, today, use_context=False)
        return sorted({context for record in filtered for context in record.contexts})

    @staticmethod
    def sort(records: Iterable[TaskRecord], option: SortOption) -> List[TaskRecord]:
        """Stable sort by ``option`` with completed tasks last."""
        key, descending = SORT_KEYS[option]
        ordered = sorted(records, key=key, reverse=descending)
        ordered.sort(key=lambda record: record.completed)
        return ordered

    def _effective_sort(self, criteria: FilterCriteria) -> SortOption:
        if criteria.sort is not None:
            return criteria.sort
        if criteria.bucket == TaskBucket.COMPLETED:
            return SortOption.COMPLETION
        try:
            return SortOption(self.config.default_sort)
        except ValueError:
            logger.warning(f"Unknown default sort {self.config.default_sort!r}, using priority")
            return SortOption.PRIORITY

    def _filter(self, records: Iterable[TaskRecord], criteria: FilterCriteria,
                today: Optional[date], use_context: bool) -> List[TaskRecord]:
        items = list(records)

        if criteria.bucket == TaskBucket.COMPLETED:
            items = [r for r in items if r.completed]
        elif criteria.bucket == TaskBucket.ARCHIVED:
            items = [r for r in items if r.is_archived]
        else:
            items = [r for r in items if r.is_active]

        if criteria.time_filter is not None and criteria.bucket == TaskBucket.ACTIVE:
            today_iso = format_iso(resolve_today(today))
            items = [r for r in items if self._in_time_window(r, criteria.time_filter, today_iso)]

        query = criteria.search.strip().lower()
        if query:
            items = [r for r in items if self._matches_search(r, query)]

        context = criteria.context.strip()
        if use_context and context:
            if context == NO_CONTEXT:
                items = [r for r in items if not r.contexts]
            else:
                items = [r for r in items if context in r.contexts]

        project = criteria.project.strip()
        if project and criteria.bucket != TaskBucket.ARCHIVED:
            if project == INBOX_PROJECT:
                items = [r for r in items if r.is_inbox]
            else:
                items = [r for r in items if project in r.projects]

        logger.debug(f"Filter {criteria} kept {len(items)} tasks")
        return items

    @staticmethod
    def _in_time_window(record: TaskRecord, time_filter: TimeFilter, today_iso: str) -> bool:
        due = record.due_date
        if due is None:
            return False
        if time_filter == TimeFilter.TODAY:
            return due <= today_iso
        return due > today_iso

    @staticmethod
    def _matches_search(record: TaskRecord, query: str) -> bool:
        return (
            query in record.description.lower()
            or any(query in project.lower() for project in record.projects)
            or any(query in context.lower() for context in record.contexts)
        )
