"""Task lifecycle transitions.

Every transition takes a parsed record and returns replacement line text.
Records are never modified; the caller substitutes the returned text for
``record.raw_line`` in its buffer and re-parses.
"""

import logging
import re
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional, Tuple

from .parser import (
    NOTES_SEPARATOR,
    REJECTED_LINE,
    KEY_VALUE,
    PROJECT,
    TaskBuilder,
    TaskFields,
    classify_token,
    escape_notes,
    fields_from_record,
    parse_line,
    strip_project_tags,
)
from .recurring import RecurrenceResult, compute_next_due
from .todo import (
    TaskRecord,
    INBOX_PROJECT,
    ARCHIVED_PROJECT,
    PRIORITY_KEY,
    ORIGINAL_PROJECTS_KEY,
    DUE_KEY,
)
from .utils.datetime import format_iso, is_iso_date, parse_iso_date, resolve_today


logger = logging.getLogger(__name__)

NOTES_SUFFIX_PATTERN = re.compile(r'(\s+\|\|.*)$')
PRIORITY_TAG_PATTERN = re.compile(r'\s*pri:([A-Z])\b')
DUE_VALUE_PATTERN = re.compile(r'(?<!\S)due:\d{4}-\d{2}-\d{2}(?!\S)')


@dataclass(frozen=True)
class CompletionResult:
    """Lines produced by completing a task.

    ``recurring_line`` is the next open occurrence of a recurring task and
    must be inserted alongside ``completed_line``. ``recurrence`` is set
    whenever a rollover was attempted.
    """
    completed_line: str
    recurring_line: Optional[str] = None
    recurrence: Optional[RecurrenceResult] = None


def split_notes(line: str) -> Tuple[str, str]:
    """Split a line into its body and its `` ||notes`` suffix."""
    match = NOTES_SUFFIX_PATTERN.search(line)
    if not match:
        return line, ""
    return line[:match.start()], match.group(1)


def insert_before_notes(line: str, fragment: str) -> str:
    """Append a tag to the task body, keeping the notes suffix last."""
    body, notes = split_notes(line)
    return f"{body} {fragment}{notes}"


class TaskService:
    """Pure task transitions (complete, uncomplete, edit, archive, restore)."""

    def __init__(self, today: Optional[date] = None):
        self.today = today

    def _today(self) -> str:
        return format_iso(resolve_today(self.today))

    def add_task(self, fields: TaskFields) -> str:
        """Build the line for a new task, or ``REJECTED_LINE``."""
        return TaskBuilder(self.today).build_line(fields.with_inline_priority())

    def complete_task(self, record: TaskRecord) -> CompletionResult:
        """Complete a task.

        The priority moves into a ``pri:`` tag and the creation date is
        dropped. A task with both ``rec:`` and a due date also yields the
        next open occurrence with the due date rolled forward.
        """
        if record.completed:
            logger.debug(f"Task already completed: {record.raw_line!r}")
            return CompletionResult(completed_line=record.raw_line)

        line = f"x {self._today()} {record.description}".rstrip()
        if record.priority:
            line += f" {PRIORITY_KEY}:{record.priority}"
        if record.description_notes:
            line += f" {NOTES_SEPARATOR}{escape_notes(record.description_notes)}"

        recurring_line = None
        recurrence = None
        current_due = parse_iso_date(record.due_date)
        if record.recurrence and current_due is not None:
            recurrence = compute_next_due(current_due, record.recurrence)
            if recurrence.recognized:
                recurring_line = DUE_VALUE_PATTERN.sub(
                    f"due:{format_iso(recurrence.due_date)}", record.raw_line.strip(), count=1
                )
                logger.debug(f"Recurring task rolled over to {recurrence.due_date}")
            else:
                logger.warning(
                    f"Unrecognized recurrence pattern {record.recurrence!r}; "
                    f"no next occurrence created for {record.raw_line!r}"
                )

        return CompletionResult(
            completed_line=line,
            recurring_line=recurring_line,
            recurrence=recurrence,
        )

    def uncomplete_task(self, record: TaskRecord) -> str:
        """Reopen a completed task.

        Drops the ``x`` marker and completion date, turns ``pri:X`` back into
        a ``(X)`` prefix and files project-less tasks under the Inbox.
        """
        parts = record.raw_line.split()
        if parts and parts[0] == 'x':
            parts.pop(0)
            if parts and is_iso_date(parts[0]):
                parts.pop(0)
        line = ' '.join(parts)

        body, notes = split_notes(line)
        priority_match = PRIORITY_TAG_PATTERN.search(body)
        if priority_match:
            body = PRIORITY_TAG_PATTERN.sub('', body, count=1).strip()
            body = f"({priority_match.group(1)}) {body}"
        line = body + notes

        if not record.projects:
            line = insert_before_notes(line, f"+{INBOX_PROJECT}")

        return line

    def update_task(self, original: TaskRecord, new_line: str) -> str:
        """Apply archive bookkeeping to an edited line.

        The first move into the Archived project records the prior projects
        as ``origProj:``; later edits of an archived task keep the value it
        already has.
        """
        if not new_line:
            return REJECTED_LINE

        is_being_archived = ARCHIVED_PROJECT in parse_line(new_line).projects
        if not is_being_archived or f"{ORIGINAL_PROJECTS_KEY}:" in new_line:
            return new_line

        if original.is_archived:
            original_projects = original.key_value_pairs.get(ORIGINAL_PROJECTS_KEY)
        else:
            original_projects = ','.join(p for p in original.projects if p != ARCHIVED_PROJECT)

        if original_projects:
            new_line = insert_before_notes(new_line, f"{ORIGINAL_PROJECTS_KEY}:{original_projects}")
        return new_line

    def edit_task(self, record: TaskRecord, fields: TaskFields) -> str:
        """Rebuild a task from edited form fields."""
        line = TaskBuilder(self.today).build_line(fields.with_inline_priority(), editing=record)
        return self.update_task(record, line)

    def archive_task(self, record: TaskRecord) -> str:
        """Move a task into the Archived project."""
        fields = fields_from_record(record)
        fields = replace(
            fields,
            description=strip_project_tags(fields.description),
            project=ARCHIVED_PROJECT,
        )
        return self.edit_task(record, fields)

    def delete_task(self, record: TaskRecord) -> None:
        """Deleting produces no text; the caller removes ``record.raw_line``."""
        logger.debug(f"Deleting task {record.raw_line!r}")
        return None

    def restore_from_archive(self, record: TaskRecord) -> str:
        """Rebuild an archived task under its original projects.

        The line is reconstructed from the record's fields rather than
        edited, since archived lines may carry their tags in any order.
        """
        target_projects = record.original_projects or (INBOX_PROJECT,)

        description = ' '.join(
            token for token in record.description.split()
            if classify_token(token) not in (PROJECT, KEY_VALUE)
        )

        priority = record.priority
        if priority is None and record.completed:
            priority = record.key_value_pairs.get(PRIORITY_KEY)

        parts = []
        if priority:
            parts.append(f"({priority})")
        if record.creation_date:
            parts.append(record.creation_date)
        if description:
            parts.append(description)
        line = ' '.join(parts)

        for project in target_projects:
            line += f" +{project}"

        for context in record.contexts:
            if f"@{context}" not in line.split():
                line += f" @{context}"

        due_date = record.due_date
        for key, value in record.key_value_pairs.items():
            if key == ORIGINAL_PROJECTS_KEY:
                continue
            if key == PRIORITY_KEY and record.completed:
                continue
            if key == DUE_KEY and due_date:
                value = due_date
            line += f" {key}:{value}"

        if record.description_notes:
            line += f" {NOTES_SEPARATOR}{escape_notes(record.description_notes)}"

        return line.strip()
