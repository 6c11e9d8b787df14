"""Tests for static conflict detection."""

from __future__ import annotations

from datetime import date

import pytest

from rulecore.rules import ConflictSeverity, ConflictType, RuleStatus, detect_conflicts
from rulecore.rules.conflicts import (
    OverlapPolicy,
    find_dependency_cycles,
    find_overlapping_windows,
    find_priority_ties,
    windows_overlap,
)


def _of_type(result, conflict_type: ConflictType):
    return [c for c in result.conflicts if c.type == conflict_type]


def _layered_rules(make_rule, depth: int, width: int):
    # Each layer depends on every rule in the next layer
    layers = [[f"L{level}_{i}" for i in range(width)] for level in range(depth)]
    rules = []
    for level, layer in enumerate(layers):
        deps = tuple(layers[level + 1]) if level + 1 < depth else ()
        rules.extend(make_rule(rule_id, depends_on_rule_id=deps) for rule_id in layer)
    return rules


class TestOverlappingWindows:
    """Test effective window overlap detection."""

    def test_overlapping_windows_flagged(self, dated_rule):
        rules = [
            dated_rule("h1", date(2025, 1, 1), date(2025, 6, 30)),
            dated_rule("h2", date(2025, 6, 1), date(2025, 12, 31)),
        ]

        conflicts = find_overlapping_windows(rules)

        assert len(conflicts) == 1
        assert conflicts[0].rule_ids == ("h1", "h2")
        assert conflicts[0].severity == ConflictSeverity.WARNING

    def test_adjacent_windows_not_flagged(self, dated_rule):
        rules = [
            dated_rule("q1", date(2025, 1, 1), date(2025, 3, 31)),
            dated_rule("rest", date(2025, 4, 1), date(2025, 12, 31)),
        ]

        assert find_overlapping_windows(rules) == []

    def test_windows_touching_on_same_day_overlap(self):
        assert windows_overlap(
            (date(2025, 1, 1), date(2025, 3, 31)), (date(2025, 3, 31), date(2025, 6, 30))
        )

    def test_only_active_rules_considered(self, dated_rule):
        rules = [
            dated_rule("a", date(2025, 1, 1), date(2025, 12, 31)),
            dated_rule("b", date(2025, 1, 1), date(2025, 12, 31), status=RuleStatus.DRAFT),
        ]

        assert find_overlapping_windows(rules) == []

    def test_different_targets_not_compared(self, dated_rule):
        rules = [
            dated_rule("a", date(2025, 1, 1), date(2025, 12, 31), target_id="cov-1"),
            dated_rule("b", date(2025, 1, 1), date(2025, 12, 31), target_id="cov-2"),
        ]

        assert find_overlapping_windows(rules) == []

    def test_rules_without_target_skipped(self, dated_rule):
        rules = [
            dated_rule("a", date(2025, 1, 1), date(2025, 12, 31), target_id=None),
            dated_rule("b", date(2025, 1, 1), date(2025, 12, 31), target_id=None),
        ]

        assert find_overlapping_windows(rules) == []

    def test_open_ended_skipped_by_default(self, dated_rule):
        rules = [
            dated_rule("old", date(2024, 1, 1), None),
            dated_rule("new", date(2025, 1, 1), date(2025, 12, 31)),
        ]

        assert find_overlapping_windows(rules, OverlapPolicy.SKIP_OPEN_ENDED) == []

    def test_open_ended_forever_policy(self, dated_rule):
        """Test that a missing expiration can be treated as never expiring."""
        rules = [
            dated_rule("old", date(2024, 1, 1), None),
            dated_rule("new", date(2025, 1, 1), date(2025, 12, 31)),
            dated_rule("past", date(2023, 1, 1), date(2023, 12, 31)),
        ]

        conflicts = find_overlapping_windows(rules, OverlapPolicy.OPEN_ENDED_FOREVER)

        assert [c.rule_ids for c in conflicts] == [("old", "new")]

    def test_missing_start_always_skipped(self, dated_rule):
        rules = [
            dated_rule("a", None, date(2025, 12, 31)),
            dated_rule("b", date(2025, 1, 1), date(2025, 12, 31)),
        ]

        assert find_overlapping_windows(rules, OverlapPolicy.OPEN_ENDED_FOREVER) == []


class TestDependencyCycles:
    """Test dependency cycle detection."""

    def test_three_rule_cycle_reported_once(self, make_rule):
        rules = [
            make_rule("A", depends_on_rule_id=("B",)),
            make_rule("B", depends_on_rule_id=("C",)),
            make_rule("C", depends_on_rule_id=("A",)),
        ]

        conflicts = find_dependency_cycles(rules)

        assert len(conflicts) == 1
        assert set(conflicts[0].rule_ids) == {"A", "B", "C"}
        assert conflicts[0].cycle_path == ("A", "B", "C", "A")
        assert conflicts[0].severity == ConflictSeverity.ERROR
        assert "Rule A -> Rule B -> Rule C -> Rule A" in conflicts[0].message

    def test_diamond_is_not_a_cycle(self, make_rule):
        """Test that two paths to the same rule are not reported."""
        rules = [
            make_rule("A", depends_on_rule_id=("B", "C")),
            make_rule("B", depends_on_rule_id=("D",)),
            make_rule("C", depends_on_rule_id=("D",)),
            make_rule("D"),
        ]

        assert find_dependency_cycles(rules) == []

    def test_fan_out_without_cycle(self, make_rule):
        rules = [make_rule("A", depends_on_rule_id=("B", "C")), make_rule("B"), make_rule("C")]

        assert find_dependency_cycles(rules) == []

    def test_self_dependency(self, make_rule):
        conflicts = find_dependency_cycles([make_rule("A", depends_on_rule_id=("A",))])

        assert len(conflicts) == 1
        assert conflicts[0].cycle_path == ("A", "A")

    def test_independent_cycles_reported_separately(self, make_rule):
        rules = [
            make_rule("A", depends_on_rule_id=("B",)),
            make_rule("B", depends_on_rule_id=("A",)),
            make_rule("X", depends_on_rule_id=("Y",)),
            make_rule("Y", depends_on_rule_id=("X",)),
        ]

        conflicts = find_dependency_cycles(rules)

        assert sorted(tuple(sorted(c.rule_ids)) for c in conflicts) == [("A", "B"), ("X", "Y")]

    def test_dangling_dependency_ignored(self, make_rule):
        assert find_dependency_cycles([make_rule("A", depends_on_rule_id=("missing",))]) == []

    def test_walk_cap_reports_truncation(self, make_rule):
        """Test that a graph larger than the step cap stops and says so."""
        conflicts = find_dependency_cycles(_layered_rules(make_rule, 8, 4), max_walk_steps=50)

        assert [c.type for c in conflicts] == [ConflictType.ANALYSIS_TRUNCATED]
        assert conflicts[0].severity == ConflictSeverity.WARNING

    def test_layered_acyclic_set_is_clean(self, make_rule):
        """Test that many paths through shared rules are walked once."""
        assert find_dependency_cycles(_layered_rules(make_rule, 10, 3)) == []

    def test_cycle_after_layered_set_is_found(self, make_rule):
        rules = _layered_rules(make_rule, 10, 3) + [
            make_rule("X", depends_on_rule_id=("Y",)),
            make_rule("Y", depends_on_rule_id=("X",)),
        ]

        result = detect_conflicts(rules)

        cycles = _of_type(result, ConflictType.CIRCULAR_DEPENDENCY)
        assert len(cycles) == 1
        assert set(cycles[0].rule_ids) == {"X", "Y"}
        assert _of_type(result, ConflictType.ANALYSIS_TRUNCATED) == []
        assert result.has_errors

    def test_long_chain_does_not_recurse(self, make_rule):
        """Test that a dependency chain longer than the recursion limit is walked."""
        count = 2500
        rules = [
            make_rule(f"r{i}", depends_on_rule_id=(f"r{i + 1}",) if i + 1 < count else ())
            for i in range(count)
        ]

        assert find_dependency_cycles(rules) == []

    def test_long_chain_closing_on_itself(self, make_rule):
        count = 2500
        rules = [make_rule(f"r{i}", depends_on_rule_id=(f"r{(i + 1) % count}",)) for i in range(count)]

        conflicts = find_dependency_cycles(rules)

        assert len(conflicts) == 1
        assert len(conflicts[0].rule_ids) == count
        assert conflicts[0].cycle_path[0] == conflicts[0].cycle_path[-1] == "r0"


class TestPriorityTies:
    """Test priority tie detection."""

    def test_three_way_tie(self, make_rule):
        rules = [make_rule(rule_id, priority=10) for rule_id in ("a", "b", "c")]

        conflicts = find_priority_ties(rules)

        assert len(conflicts) == 1
        assert conflicts[0].rule_ids == ("a", "b", "c")

    def test_breaking_tie_leaves_remaining_pair(self, make_rule):
        rules = [
            make_rule("a", priority=10),
            make_rule("b", priority=10),
            make_rule("c", priority=11),
        ]

        conflicts = find_priority_ties(rules)

        assert [c.rule_ids for c in conflicts] == [("a", "b")]

    def test_distinct_priorities_no_conflict(self, make_rule):
        rules = [make_rule("a", priority=10), make_rule("b", priority=11), make_rule("c", priority=12)]

        assert find_priority_ties(rules) == []

    def test_unset_priorities_ignored(self, make_rule):
        rules = [make_rule("a"), make_rule("b")]

        assert find_priority_ties(rules) == []


class TestDetectConflicts:
    """Test the combined report."""

    def test_combined_report(self, dated_rule, make_rule):
        rules = [
            dated_rule("a", date(2025, 1, 1), date(2025, 6, 30), priority=1),
            dated_rule("b", date(2025, 6, 1), date(2025, 12, 31), priority=1),
            make_rule("c", depends_on_rule_id=("d",)),
            make_rule("d", depends_on_rule_id=("c",)),
        ]

        result = detect_conflicts(rules)

        assert len(_of_type(result, ConflictType.OVERLAPPING_DATES)) == 1
        assert len(_of_type(result, ConflictType.CIRCULAR_DEPENDENCY)) == 1
        assert len(_of_type(result, ConflictType.PRIORITY_TIE)) == 1
        assert result.has_errors
        assert result.has_warnings

    def test_clean_rule_set(self, make_rule):
        result = detect_conflicts([make_rule("a", priority=1), make_rule("b", priority=2)])

        assert result.conflicts == []
        assert not result.has_errors
        assert not result.has_warnings

    def test_policy_accepts_string(self, dated_rule):
        rules = [
            dated_rule("a", date(2024, 1, 1), None),
            dated_rule("b", date(2025, 1, 1), date(2025, 2, 1)),
        ]

        result = detect_conflicts(rules, overlap_policy="open_ended_forever")

        assert len(result.conflicts) == 1

    def test_does_not_mutate_input(self, make_rule):
        rules = [make_rule("a", depends_on_rule_id=("a",))]
        snapshot = list(rules)

        detect_conflicts(rules)

        assert rules == snapshot

    @pytest.mark.parametrize("policy", list(OverlapPolicy))
    def test_policies_agree_on_closed_windows(self, dated_rule, policy):
        rules = [
            dated_rule("a", date(2025, 1, 1), date(2025, 6, 30)),
            dated_rule("b", date(2025, 6, 1), date(2025, 12, 31)),
        ]

        assert len(detect_conflicts(rules, overlap_policy=policy).conflicts) == 1
