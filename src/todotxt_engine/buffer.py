"""In-memory todo.txt buffer.

The buffer holds the full text of a todo.txt file and applies line-level
edits to it, returning a new buffer each time. Reading and writing the file
belongs to the caller.
"""

import logging
import re
from typing import List, Optional

from .config import ConfigModel
from .parser import parse_line, parse_todo_txt
from .task_service import CompletionResult
from .todo import TaskRecord


logger = logging.getLogger(__name__)


def _project_token_pattern(project: str) -> "re.Pattern":
    return re.compile(rf'(?<!\S)\+{re.escape(project)}(?!\S)')


class TodoBuffer:
    """Immutable line buffer over todo.txt text."""

    def __init__(self, text: str = "", config: Optional[ConfigModel] = None):
        self.config = config or ConfigModel()
        self._lines: List[str] = text.split('\n') if text else []

    @property
    def text(self) -> str:
        return '\n'.join(self._lines)

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    def _with_lines(self, lines: List[str]) -> "TodoBuffer":
        return TodoBuffer('\n'.join(lines), self.config)

    def records(self) -> List[TaskRecord]:
        """Parse all task lines, each stamped with its line number."""
        return parse_todo_txt(self.text)

    def locate(self, record: TaskRecord) -> Optional[int]:
        """Find the line a record was parsed from.

        The record's line number is used when the line there is still the
        record's raw text, so byte-identical tasks are told apart. Otherwise
        the first line with the same trimmed text is used.
        """
        index = record.line_number
        if index is not None and 0 <= index < len(self._lines) and self._lines[index] == record.raw_line:
            return index

        target = record.raw_line.strip()
        for index, line in enumerate(self._lines):
            if line.strip() == target:
                return index
        return None

    def replace(self, record: TaskRecord, *new_lines: str) -> "TodoBuffer":
        """Replace a record's line with one or more lines.

        Empty lines (the builder's reject value) are not written; if nothing
        remains the buffer is returned unchanged.
        """
        new_lines = [line for line in new_lines if line]
        if not new_lines:
            logger.warning(f"Rejected edit of {record.raw_line!r}, buffer unchanged")
            return self

        index = self.locate(record)
        if index is None:
            logger.warning(f"Task not found in buffer: {record.raw_line!r}")
            return self

        lines = self.lines
        lines[index:index + 1] = new_lines
        return self._with_lines(lines)

    def delete(self, record: TaskRecord) -> "TodoBuffer":
        """Remove a record's line."""
        index = self.locate(record)
        if index is None:
            logger.warning(f"Task not found in buffer: {record.raw_line!r}")
            return self

        lines = self.lines
        del lines[index]
        return self._with_lines(lines)

    def prepend(self, line: str) -> "TodoBuffer":
        """Insert a new task line at the top.

        Tasks created on a different day than the current first task are
        separated from it by a blank line when ``separate_date_groups`` is set.
        """
        if not line:
            logger.warning("Refusing to add an empty task line")
            return self

        if not self.text.strip():
            return self._with_lines([line])

        first_date = self._creation_date(self._lines[0])
        new_date = self._creation_date(line)
        lines = [line]
        if self.config.separate_date_groups and first_date and new_date and first_date != new_date:
            lines.append("")
        return self._with_lines(lines + self._lines)

    @staticmethod
    def _creation_date(line: str) -> Optional[str]:
        record = parse_line(line.strip())
        return None if record.completed else record.creation_date

    def apply_completion(self, record: TaskRecord, result: CompletionResult) -> "TodoBuffer":
        """Write a completed task and, for recurring tasks, its next occurrence."""
        buffer = self.replace(record, result.completed_line)
        if result.recurring_line:
            buffer = buffer.prepend(result.recurring_line)
        return buffer

    def rename_project(self, old_name: str, new_name: str) -> "TodoBuffer":
        """Rename a ``+project`` tag on every line."""
        pattern = _project_token_pattern(old_name)
        replacement = f"+{new_name}"
        return self._with_lines([pattern.sub(lambda _: replacement, line) for line in self._lines])

    def remove_project(self, name: str) -> "TodoBuffer":
        """Delete a project.

        Open tasks of the project are removed; completed tasks keep their
        history and only lose the tag.
        """
        pattern = _project_token_pattern(name)
        lines = []
        for line in self._lines:
            if not line.strip() or not pattern.search(line):
                lines.append(line)
            elif line.strip().startswith('x '):
                lines.append(' '.join(pattern.sub('', line).split()))
        return self._with_lines(lines)
