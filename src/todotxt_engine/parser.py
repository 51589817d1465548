"""todo.txt line parser and line builder."""

import logging
import re
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from typing import Dict, List, Optional, Tuple

import parsedatetime
from fuzzywuzzy import fuzz, process

from .config import ConfigModel
from .todo import (
    TaskRecord,
    INBOX_PROJECT,
    ARCHIVED_PROJECT,
    DUE_TAG_PATTERN,
    ORIGINAL_PROJECTS_KEY,
)
from .utils.datetime import (
    is_iso_date,
    parse_iso_date,
    format_iso,
    resolve_today,
    calculate_due_date,
)


logger = logging.getLogger(__name__)

NOTES_SEPARATOR = "||"
ESCAPED_NEWLINE = "\\n"

# Empty line returned by the builder when the input must not be written
REJECTED_LINE = ""

PRIORITY_TOKEN_PATTERN = re.compile(r'^\(([A-Z])\)$')
INLINE_PRIORITY_PATTERN = re.compile(r'^\(([A-Z])\)')
RECURRENCE_TAG_PATTERN = re.compile(r'(?:^|\s)rec:\S+')
INCOMPLETE_KEY_PATTERN = re.compile(r'^\w+:$')
TOKEN_PATTERN = re.compile(r'\S+')

# Token kinds, in classification order
PROJECT = "project"
CONTEXT = "context"
KEY_VALUE = "key_value"
TEXT = "text"


def classify_token(token: str) -> str:
    """Classify a description token as project, context, key:value or text."""
    if token.startswith('+') and len(token) > 1:
        return PROJECT
    if token.startswith('@') and len(token) > 1:
        return CONTEXT
    if ':' in token and not token.startswith('http'):
        key, _, value = token.partition(':')
        if key and value:
            return KEY_VALUE
    return TEXT


def escape_notes(notes: str) -> str:
    """Encode embedded newlines as a literal ``\\n``."""
    return notes.replace('\n', ESCAPED_NEWLINE)


def unescape_notes(notes: str) -> str:
    """Decode literal ``\\n`` sequences into newlines."""
    return notes.replace(ESCAPED_NEWLINE, '\n')


def _extract_tags(description: str) -> Tuple[List[str], List[str], Dict[str, str]]:
    projects: List[str] = []
    contexts: List[str] = []
    key_value_pairs: Dict[str, str] = {}

    for token in description.split():
        kind = classify_token(token)
        if kind == PROJECT:
            projects.append(token[1:])
        elif kind == CONTEXT:
            contexts.append(token[1:])
        elif kind == KEY_VALUE:
            key, _, value = token.partition(':')
            key_value_pairs[key] = value

    return projects, contexts, key_value_pairs


def parse_line(line: str, line_number: Optional[int] = None) -> TaskRecord:
    """Parse a single todo.txt line.

    Prefix fields are consumed strictly left to right, each only if it
    matches: ``x``, completion date (only after ``x``), ``(X)`` priority,
    creation date. Anything that does not match stays in the description,
    so parsing never fails.

    Args:
        line: Source line, kept verbatim as ``raw_line``
        line_number: Position of the line in its buffer, if known

    Returns:
        The parsed TaskRecord
    """
    tokens = list(TOKEN_PATTERN.finditer(line))
    index = 0
    completed = False
    completion_date = None
    priority = None
    creation_date = None

    if index < len(tokens) and tokens[index].group() == 'x':
        completed = True
        index += 1

    if completed and index < len(tokens) and is_iso_date(tokens[index].group()):
        completion_date = tokens[index].group()
        index += 1

    if index < len(tokens):
        priority_match = PRIORITY_TOKEN_PATTERN.match(tokens[index].group())
        if priority_match:
            priority = priority_match.group(1)
            index += 1

    if index < len(tokens) and is_iso_date(tokens[index].group()):
        creation_date = tokens[index].group()
        index += 1

    remaining = line[tokens[index].start():] if index < len(tokens) else ""

    notes = None
    if NOTES_SEPARATOR in remaining:
        remaining, _, notes_text = remaining.partition(NOTES_SEPARATOR)
        notes = unescape_notes(notes_text.strip()) or None

    description = ' '.join(remaining.split())
    projects, contexts, key_value_pairs = _extract_tags(description)

    return TaskRecord(
        completed=completed,
        priority=priority,
        creation_date=creation_date,
        completion_date=completion_date,
        description=description,
        description_notes=notes,
        projects=tuple(projects),
        contexts=tuple(contexts),
        key_value_pairs=key_value_pairs,
        raw_line=line,
        line_number=line_number,
    )


def parse_todo_txt(content: str) -> List[TaskRecord]:
    """Parse every non-blank line of a todo.txt buffer."""
    return [
        parse_line(line, line_number)
        for line_number, line in enumerate(content.split('\n'))
        if line.strip()
    ]


def has_project_tag(description: str) -> bool:
    return any(classify_token(token) == PROJECT for token in description.split())


def has_visible_content(description: str) -> bool:
    """Check whether anything but tag syntax remains in a description."""
    for token in description.split():
        if classify_token(token) != TEXT:
            continue
        if INCOMPLETE_KEY_PATTERN.match(token):
            continue
        if not token.strip('+@!/*'):
            continue
        return True
    return False


def strip_project_tags(description: str) -> str:
    return ' '.join(
        token for token in description.split()
        if classify_token(token) != PROJECT
    )


def _is_due_tag(token: str) -> bool:
    return token.startswith('due:') and is_iso_date(token[4:])


@dataclass
class TaskFields:
    """Form values used to create or edit a task."""
    description: str = ""
    priority: Optional[str] = None
    project: Optional[str] = INBOX_PROJECT
    due_date: Optional[str] = None
    notes: Optional[str] = None

    def with_inline_priority(self) -> "TaskFields":
        """Move a leading ``(X)`` typed into the description to ``priority``."""
        trimmed = self.description.strip()
        match = INLINE_PRIORITY_PATTERN.match(trimmed)
        if not match:
            return self
        return replace(self, priority=match.group(1), description=trimmed[3:].strip())


def fields_from_record(record: TaskRecord) -> TaskFields:
    """Populate form fields from an existing record.

    Project, ``due:`` and ``origProj:`` tags move out of the description
    into their own fields. A task with several projects keeps them inline,
    since the form holds a single project.
    """
    keep_projects = len(record.projects) > 1
    kept = []
    for token in record.description.split():
        if classify_token(token) == PROJECT and not keep_projects:
            continue
        if _is_due_tag(token) or token.startswith(f"{ORIGINAL_PROJECTS_KEY}:"):
            continue
        kept.append(token)

    return TaskFields(
        description=' '.join(kept),
        priority=record.priority,
        project=record.projects[0] if record.projects else INBOX_PROJECT,
        due_date=record.due_date,
        notes=record.description_notes,
    )


class TaskBuilder:
    """Builds todo.txt lines from task form fields."""

    def __init__(self, today: Optional[date] = None):
        self.today = today

    def build_line(self, fields: TaskFields, editing: Optional[TaskRecord] = None) -> str:
        """Assemble a task line from form fields.

        Args:
            fields: Form values
            editing: The record being edited, or None for a new task

        Returns:
            The new line, or ``REJECTED_LINE`` when no visible content remains
            once tag syntax is removed
        """
        description = fields.description.strip()
        if not description or not has_visible_content(description):
            logger.debug(f"Rejecting task without visible content: {fields.description!r}")
            return REJECTED_LINE

        today = format_iso(resolve_today(self.today))
        parts = []

        if editing is not None and editing.completed:
            parts.append(f"x {editing.completion_date or today}")

        priority = self._normalize_priority(fields.priority)
        if priority:
            parts.append(f"({priority})")

        if editing is None:
            parts.append(today)
        elif not editing.completed and editing.creation_date:
            parts.append(editing.creation_date)

        parts.append(description)
        line = ' '.join(parts)

        if fields.project and not has_project_tag(description):
            line += f" +{fields.project}"

        has_recurrence = RECURRENCE_TAG_PATTERN.search(description) is not None
        has_due = DUE_TAG_PATTERN.search(description) is not None

        if fields.due_date and f"due:{fields.due_date}" not in description:
            line += f" due:{fields.due_date}"
        elif has_recurrence and not fields.due_date and not has_due:
            line += f" due:{today}"

        if fields.notes:
            line += f" {NOTES_SEPARATOR}{escape_notes(fields.notes)}"

        return line

    @staticmethod
    def _normalize_priority(priority: Optional[str]) -> Optional[str]:
        if not priority:
            return None
        priority = priority.strip().upper()
        if re.fullmatch(r'[A-Z]', priority):
            return priority
        logger.warning(f"Ignoring invalid priority {priority!r}")
        return None


def build_line(fields: TaskFields, editing: Optional[TaskRecord] = None,
               today: Optional[date] = None) -> str:
    """Build a task line; see ``TaskBuilder.build_line``."""
    return TaskBuilder(today).build_line(fields, editing)


class SmartDateParser:
    """Due-date parser for typed input such as 'tomorrow' or '3 days'."""

    PRESETS = {
        'today': 'Today',
        'tomorrow': 'Tomorrow',
        'next week': 'Next Week',
        'next month': 'Next Month',
    }

    def __init__(self):
        self.cal = parsedatetime.Calendar()

    def parse(self, date_str: str, today: Optional[date] = None) -> Optional[str]:
        """Parse a due date into an ISO string, or None if unrecognized."""
        if not date_str:
            return None

        text = date_str.lower().strip()
        today = resolve_today(today)

        if text in self.PRESETS:
            return calculate_due_date(self.PRESETS[text], today)

        if is_iso_date(text):
            parsed = parse_iso_date(text)
            return format_iso(parsed) if parsed else None

        source = datetime.combine(today, time(hour=12))
        time_struct, parse_status = self.cal.parse(text, source)
        if parse_status > 0:
            return format_iso(date(*time_struct[:3]))

        return None


def suggest_corrections(line: str,
                        available_projects: Optional[List[str]] = None,
                        available_contexts: Optional[List[str]] = None,
                        config: Optional[ConfigModel] = None) -> List[str]:
    """Suggest known projects and contexts for likely typos in a line."""
    config = config or ConfigModel()
    record = parse_line(line)
    suggestions = []

    if available_projects:
        for project in record.projects:
            if project in available_projects or project in (INBOX_PROJECT, ARCHIVED_PROJECT):
                continue
            close_matches = process.extractBests(project, available_projects,
                                                 scorer=fuzz.ratio,
                                                 score_cutoff=config.suggestion_score_cutoff,
                                                 limit=config.suggestion_limit)
            if close_matches:
                suggestions.append(f"Did you mean +{close_matches[0][0]} instead of +{project}?")

    if available_contexts:
        for context in record.contexts:
            if context in available_contexts:
                continue
            close_matches = process.extractBests(context, available_contexts,
                                                 scorer=fuzz.ratio,
                                                 score_cutoff=config.suggestion_score_cutoff,
                                                 limit=config.suggestion_limit)
            if close_matches:
                suggestions.append(f"Did you mean @{close_matches[0][0]} instead of @{context}?")

    return suggestions
