"""Task counts and project registry for sidebar-style summaries."""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from ..todo import TaskRecord, INBOX_PROJECT, ARCHIVED_PROJECT
from ..utils.datetime import format_iso, resolve_today


# Projects that always exist and are never listed as user projects
BUILTIN_PROJECTS = (INBOX_PROJECT, ARCHIVED_PROJECT)


@dataclass(frozen=True)
class TaskCounts:
    """Number of tasks behind each quick filter"""
    all: int = 0
    today: int = 0
    upcoming: int = 0
    inbox: int = 0
    archived: int = 0
    completed: int = 0


def count_tasks(records: Iterable[TaskRecord], today: Optional[date] = None) -> TaskCounts:
    """Count tasks per quick filter.

    Args:
        records: Parsed task records
        today: Reference date for due-date windows (defaults to local date)
    """
    today_iso = format_iso(resolve_today(today))
    records = list(records)
    active = [r for r in records if r.is_active]

    return TaskCounts(
        all=len(active),
        today=sum(1 for r in active if r.due_date and r.due_date <= today_iso),
        upcoming=sum(1 for r in active if r.due_date and r.due_date > today_iso),
        inbox=sum(1 for r in records if not r.completed and r.is_inbox),
        archived=sum(1 for r in records if r.is_archived),
        completed=sum(1 for r in records if r.completed),
    )


def merge_known_projects(known: Sequence[str], records: Iterable[TaskRecord]) -> List[str]:
    """Append projects seen in ``records`` to the known list, keeping its order."""
    merged = list(known)
    for record in records:
        for project in record.projects:
            if project not in BUILTIN_PROJECTS and project not in merged:
                merged.append(project)
    return merged


def project_counts(records: Iterable[TaskRecord], known: Sequence[str] = ()) -> List[Tuple[str, int]]:
    """Count active tasks per user project.

    Projects are ordered as in ``known``; projects missing from it follow in
    alphabetical order. Known projects without tasks are listed with 0.
    """
    counts = {project: 0 for project in known if project not in BUILTIN_PROJECTS}
    for record in records:
        if not record.is_active:
            continue
        for project in record.projects:
            if project not in BUILTIN_PROJECTS:
                counts[project] = counts.get(project, 0) + 1

    order = {project: index for index, project in enumerate(known)}
    ranked = sorted(counts, key=lambda p: (p not in order, order.get(p, 0), p))
    return [(project, counts[project]) for project in ranked]


def available_projects(records: Iterable[TaskRecord], known: Sequence[str] = ()) -> List[str]:
    """Projects offered when editing a task, sorted, without the Inbox."""
    projects = set(merge_known_projects(known, records))
    projects.add(ARCHIVED_PROJECT)
    return sorted(projects)


def available_contexts(records: Iterable[TaskRecord]) -> List[str]:
    """Contexts used by open tasks, sorted."""
    return sorted({context for r in records if not r.completed for context in r.contexts})
