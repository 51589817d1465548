"""Tests for filtering and sorting task lists."""

import pytest

from todotxt_engine.config import ConfigModel
from todotxt_engine.parser import parse_line
from todotxt_engine.query_engine import (
    NO_CONTEXT,
    FilterCriteria,
    QueryEngine,
    SortOption,
    TaskBucket,
    TimeFilter,
)


def descriptions(records):
    return [record.description.split(" +")[0].split(" @")[0] for record in records]


class TestFilters:
    """Test each filter stage."""

    def setup_method(self):
        self.engine = QueryEngine()

    def test_active_bucket_sorted_by_priority(self, sample_records, today):
        """Test the default view shows open tasks by priority."""
        result = self.engine.apply(sample_records, FilterCriteria(), today)

        assert descriptions(result) == ["Buy milk", "Write report", "Call mom", "Plan trip"]

    def test_completed_bucket(self, sample_records, today):
        """Test completed tasks are sorted by completion date, newest first."""
        result = self.engine.apply(sample_records, FilterCriteria(bucket=TaskBucket.COMPLETED), today)

        assert all(record.completed for record in result)
        assert [r.completion_date for r in result] == ["2024-01-04", "2024-01-02"]

    def test_archived_bucket(self, sample_records, today):
        """Test only archived tasks are shown."""
        result = self.engine.apply(sample_records, FilterCriteria(bucket=TaskBucket.ARCHIVED), today)

        assert descriptions(result) == ["Old idea"]

    def test_today_window(self, sample_records, today):
        """Test 'today' includes overdue tasks."""
        criteria = FilterCriteria(time_filter=TimeFilter.TODAY)

        assert descriptions(self.engine.apply(sample_records, criteria, today)) == ["Write report", "Plan trip"]

    def test_upcoming_window(self, sample_records, today):
        """Test 'upcoming' only includes future due dates."""
        criteria = FilterCriteria(time_filter=TimeFilter.UPCOMING)

        assert descriptions(self.engine.apply(sample_records, criteria, today)) == ["Buy milk"]

    def test_time_window_ignored_outside_active_bucket(self, sample_records, today):
        """Test time windows only narrow the active bucket."""
        criteria = FilterCriteria(bucket=TaskBucket.COMPLETED, time_filter=TimeFilter.TODAY)

        assert len(self.engine.apply(sample_records, criteria, today)) == 2

    @pytest.mark.parametrize("query,expected", [
        ("MILK", ["Buy milk"]),
        ("trav", ["Plan trip"]),
        ("pho", ["Call mom"]),
    ])
    def test_search(self, sample_records, today, query, expected):
        """Test search over description, projects and contexts."""
        result = self.engine.apply(sample_records, FilterCriteria(search=query), today)

        assert descriptions(result) == expected

    def test_context_filter(self, sample_records, today):
        """Test exact context membership."""
        result = self.engine.apply(sample_records, FilterCriteria(context="phone"), today)

        assert descriptions(result) == ["Call mom"]

    def test_no_context_filter(self, sample_records, today):
        """Test the NONE sentinel selects tasks without contexts."""
        result = self.engine.apply(sample_records, FilterCriteria(context=NO_CONTEXT), today)

        assert descriptions(result) == ["Plan trip"]

    def test_project_filter(self, sample_records, today):
        """Test exact project membership."""
        result = self.engine.apply(sample_records, FilterCriteria(project="Errands"), today)

        assert descriptions(result) == ["Buy milk"]

    def test_inbox_filter(self, today):
        """Test Inbox matches tasks without projects or with +Inbox."""
        records = [
            parse_line("No project"),
            parse_line("Errand +Errands"),
            parse_line("Explicit +Inbox"),
        ]

        result = QueryEngine().apply(records, FilterCriteria(project="Inbox"), today)

        assert [r.description for r in result] == ["No project", "Explicit +Inbox"]

    def test_project_filter_skipped_for_archive(self, sample_records, today):
        """Test the archived bucket ignores the project filter."""
        criteria = FilterCriteria(bucket=TaskBucket.ARCHIVED, project="Work")

        assert descriptions(self.engine.apply(sample_records, criteria, today)) == ["Old idea"]

    def test_input_not_modified(self, sample_records, today):
        """Test apply returns a new list."""
        before = list(sample_records)

        self.engine.apply(sample_records, FilterCriteria(sort=SortOption.ALPHABETICAL), today)

        assert sample_records == before


class TestSorting:
    """Test sort keys."""

    def setup_method(self):
        self.engine = QueryEngine()

    @pytest.mark.parametrize("option,expected", [
        (SortOption.DUE_DATE, ["Plan trip", "Write report", "Buy milk", "Call mom"]),
        (SortOption.ALPHABETICAL, ["Buy milk", "Call mom", "Plan trip", "Write report"]),
        (SortOption.PROJECTS, ["Buy milk", "Plan trip", "Write report", "Call mom"]),
        (SortOption.CONTEXTS, ["Write report", "Call mom", "Buy milk", "Plan trip"]),
        (SortOption.CREATION, ["Call mom", "Buy milk", "Write report", "Plan trip"]),
    ])
    def test_sort_options(self, sample_records, today, option, expected):
        """Test each sort key on the active bucket."""
        result = self.engine.apply(sample_records, FilterCriteria(sort=option), today)

        assert descriptions(result) == expected

    def test_completed_always_last(self):
        """Test open tasks precede completed ones whatever the key."""
        records = [parse_line("x 2024-01-01 (A) Done"), parse_line("Open")]

        result = QueryEngine.sort(records, SortOption.PRIORITY)

        assert [r.completed for r in result] == [False, True]

    def test_sort_is_stable(self):
        """Test ties keep their input order."""
        records = [parse_line("(B) first"), parse_line("(B) second"), parse_line("(B) third")]

        result = QueryEngine.sort(records, SortOption.PRIORITY)

        assert [r.description for r in result] == ["first", "second", "third"]

    def test_configured_default_sort(self, sample_records, today):
        """Test the configured default sort applies when none is chosen."""
        engine = QueryEngine(ConfigModel(default_sort="alphabetical"))

        result = engine.apply(sample_records, FilterCriteria(), today)

        assert descriptions(result) == ["Buy milk", "Call mom", "Plan trip", "Write report"]

    def test_unknown_default_sort_falls_back(self, sample_records, today):
        """Test an invalid configured sort falls back to priority."""
        engine = QueryEngine(ConfigModel(default_sort="random"))

        result = engine.apply(sample_records, FilterCriteria(), today)

        assert descriptions(result)[0] == "Buy milk"


class TestFilterCriteria:
    """Test quick filters and defaults."""

    @pytest.mark.parametrize("name,expected", [
        ("All", FilterCriteria()),
        ("inbox", FilterCriteria(project="Inbox")),
        ("Today", FilterCriteria(time_filter=TimeFilter.TODAY)),
        ("upcoming", FilterCriteria(time_filter=TimeFilter.UPCOMING)),
        ("Archived", FilterCriteria(bucket=TaskBucket.ARCHIVED)),
        ("Completed", FilterCriteria(bucket=TaskBucket.COMPLETED)),
        ("Work", FilterCriteria(project="Work")),
    ])
    def test_quick_filters(self, name, expected):
        """Test quick filter names map to criteria."""
        assert FilterCriteria.from_quick_filter(name) == expected

    def test_default_project(self):
        """Test the project preselected for new tasks."""
        assert FilterCriteria(bucket=TaskBucket.ARCHIVED).default_project() == "Archived"
        assert FilterCriteria(project="Work").default_project() == "Work"
        assert FilterCriteria().default_project() is None

    def test_default_due_date(self, today):
        """Test tasks created under 'today' are due today."""
        assert FilterCriteria(time_filter=TimeFilter.TODAY).default_due_date(today) == "2024-01-05"
        assert FilterCriteria().default_due_date(today) is None

    def test_startup_criteria(self):
        """Test the configured startup filter."""
        engine = QueryEngine(ConfigModel(startup_filter="Completed"))

        assert engine.startup_criteria().bucket == TaskBucket.COMPLETED

    def test_contexts_for_ignores_context_filter(self, sample_records, today):
        """Test context choices are not narrowed by the context filter itself."""
        contexts = QueryEngine().contexts_for(sample_records, FilterCriteria(context="phone"), today)

        assert contexts == ["office", "phone", "store"]
