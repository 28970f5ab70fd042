"""
Aggregation tests: ordering of shift pairs and monthly totals.
"""

from datetime import timedelta

from ponto.reports.aggregator import (
    aggregate,
    collation_key,
    group_by_employee,
    total_worked_duration,
)
from ponto.reports.reconciler import reconcile
from tests.factories import employee, punch, utc


class TestOrdering:
    def test_sorted_by_name_then_date(self) -> None:
        bruno = employee("Bruno Costa")
        ana = employee("Ana Silva")
        events = [
            punch(bruno, "entry", utc(2024, 3, 1, 8)),
            punch(ana, "entry", utc(2024, 3, 20, 8)),
            punch(ana, "entry", utc(2024, 3, 2, 8)),
        ]
        pairs = reconcile(events, {ana.id: ana, bruno.id: bruno})

        report = aggregate(pairs, 3, 2024)

        assert [(p.employee.display_name, p.date.day) for p in report.pairs] == [
            ("Ana Silva", 2),
            ("Ana Silva", 20),
            ("Bruno Costa", 1),
        ]

    def test_accents_and_case_ignored(self) -> None:
        names = ["bruno", "Álvaro", "Alberto", "carla"]
        assert sorted(names, key=collation_key) == ["Alberto", "Álvaro", "bruno", "carla"]

    def test_same_day_pairs_keep_pairing_order(self) -> None:
        ana = employee("Ana Silva")
        events = [
            punch(ana, "entry", utc(2024, 3, 4, 8)),
            punch(ana, "exit", utc(2024, 3, 4, 12)),
            punch(ana, "entry", utc(2024, 3, 4, 13)),
            punch(ana, "exit", utc(2024, 3, 4, 17)),
        ]
        pairs = reconcile(events, {ana.id: ana})

        report = aggregate(pairs, 3, 2024)

        assert [p.entry.timestamp.hour for p in report.pairs] == [8, 13]

    def test_homonyms_stay_separate(self) -> None:
        first = employee("Ana Silva")
        second = employee("Ana Silva")
        events = [
            punch(first, "entry", utc(2024, 3, 5, 8)),
            punch(second, "entry", utc(2024, 3, 5, 9)),
            punch(first, "entry", utc(2024, 3, 6, 8)),
        ]
        pairs = reconcile(events, {first.id: first, second.id: second})

        sections = group_by_employee(aggregate(pairs, 3, 2024))

        assert len(sections) == 2
        assert sorted(len(s.pairs) for s in sections) == [1, 2]

    def test_empty_report(self) -> None:
        report = aggregate([], 2, 2024)
        assert report.is_empty
        assert group_by_employee(report) == []


class TestTotals:
    def test_incomplete_pairs_count_as_zero(self) -> None:
        ana = employee("Ana Silva")
        events = [
            punch(ana, "entry", utc(2024, 3, 5, 8)),
            punch(ana, "exit", utc(2024, 3, 5, 17, 30)),
            punch(ana, "entry", utc(2024, 3, 6, 8)),
        ]
        pairs = reconcile(events, {ana.id: ana})

        assert total_worked_duration(pairs) == timedelta(hours=9, minutes=30)

    def test_negative_durations_excluded(self) -> None:
        ana = employee("Ana Silva")
        events = [
            punch(ana, "entry", utc(2024, 3, 5, 8)),
            punch(ana, "exit", utc(2024, 3, 5, 16)),
            punch(ana, "entry", utc(2024, 3, 6, 17)),
            punch(ana, "exit", utc(2024, 3, 6, 8)),
        ]
        pairs = reconcile(events, {ana.id: ana})

        assert total_worked_duration(pairs) == timedelta(hours=8)

    def test_section_totals(self) -> None:
        ana = employee("Ana Silva")
        bruno = employee("Bruno Costa")
        events = [
            punch(ana, "entry", utc(2024, 3, 5, 8)),
            punch(ana, "exit", utc(2024, 3, 5, 12)),
            punch(ana, "entry", utc(2024, 3, 7, 8)),
            punch(ana, "exit", utc(2024, 3, 7, 10, 15)),
            punch(bruno, "entry", utc(2024, 3, 5, 9)),
            punch(bruno, "exit", utc(2024, 3, 5, 18)),
        ]
        pairs = reconcile(events, {ana.id: ana, bruno.id: bruno})

        sections = group_by_employee(aggregate(pairs, 3, 2024))

        totals = {s.employee.display_name: s.total_worked for s in sections}
        assert totals == {
            "Ana Silva": timedelta(hours=6, minutes=15),
            "Bruno Costa": timedelta(hours=9),
        }
