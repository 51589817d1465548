"""Task record model for todo.txt lines."""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Any


INBOX_PROJECT = "Inbox"
ARCHIVED_PROJECT = "Archived"

# Keys with engine-defined meaning inside key:value tags
DUE_KEY = "due"
RECURRENCE_KEY = "rec"
PRIORITY_KEY = "pri"
ORIGINAL_PROJECTS_KEY = "origProj"
RESERVED_KEYS = (DUE_KEY, RECURRENCE_KEY, PRIORITY_KEY, ORIGINAL_PROJECTS_KEY)

DUE_TAG_PATTERN = re.compile(r'(?:^|\s)due:(\d{4}-\d{2}-\d{2})(?=\s|$)')


@dataclass(frozen=True)
class TaskRecord:
    """A parsed todo.txt line.

    Records are disposable views over the source text: they are never
    modified, and every transition produces a new line that replaces
    ``raw_line`` in the buffer.
    """

    completed: bool = False
    priority: Optional[str] = None
    creation_date: Optional[str] = None
    completion_date: Optional[str] = None
    description: str = ""
    description_notes: Optional[str] = None
    projects: Tuple[str, ...] = ()
    contexts: Tuple[str, ...] = ()
    key_value_pairs: Dict[str, str] = field(default_factory=dict, hash=False)
    raw_line: str = ""
    line_number: Optional[int] = field(default=None, compare=False)

    @property
    def due_date(self) -> Optional[str]:
        """First ``due:YYYY-MM-DD`` tag in the description."""
        match = DUE_TAG_PATTERN.search(self.description)
        return match.group(1) if match else None

    @property
    def recurrence(self) -> Optional[str]:
        return self.key_value_pairs.get(RECURRENCE_KEY)

    @property
    def original_projects(self) -> Tuple[str, ...]:
        """Projects recorded by ``origProj`` when the task was archived."""
        value = self.key_value_pairs.get(ORIGINAL_PROJECTS_KEY)
        if not value:
            return ()
        return tuple(p for p in value.split(",") if p)

    @property
    def is_archived(self) -> bool:
        return ARCHIVED_PROJECT in self.projects

    @property
    def is_inbox(self) -> bool:
        """Tasks without projects belong to the Inbox implicitly."""
        return not self.projects or INBOX_PROJECT in self.projects

    @property
    def is_active(self) -> bool:
        return not self.completed and not self.is_archived

    def to_dict(self) -> Dict[str, Any]:
        """Convert the record to a plain dictionary."""
        return {
            "completed": self.completed,
            "priority": self.priority,
            "creation_date": self.creation_date,
            "completion_date": self.completion_date,
            "description": self.description,
            "description_notes": self.description_notes,
            "projects": list(self.projects),
            "contexts": list(self.contexts),
            "key_value_pairs": dict(self.key_value_pairs),
            "raw_line": self.raw_line,
            "line_number": self.line_number,
        }
