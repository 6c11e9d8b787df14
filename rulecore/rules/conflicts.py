"""Static conflict detection over rule sets.

Three checks run over an in-memory rule set:

- Overlapping windows: Active rules on the same target whose effective
  windows intersect (``warning``).
- Circular dependencies: cycles in the graph where ``A -> B`` iff ``B`` is
  in ``A.depends_on_rule_id`` (``error``).
- Priority ties: rules sharing the same priority (``warning``).

Pairwise overlap checking is quadratic per target. Rule sets are tens of
rules, not millions.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date
from enum import Enum
from itertools import combinations

from .. import config
from .models import Conflict, ConflictDetectionResult, ConflictSeverity, ConflictType, Rule

logger = logging.getLogger(__name__)


class OverlapPolicy(str, Enum):
    """How rules missing a window bound take part in the overlap check."""

    # Skip any pair where either rule lacks a start or an end date
    SKIP_OPEN_ENDED = "skip_open_ended"
    # A missing expiration date means the rule never expires
    OPEN_ENDED_FOREVER = "open_ended_forever"


def _window(rule: Rule, policy: OverlapPolicy) -> tuple[date, date] | None:
    if rule.effective_date is None:
        return None
    if rule.expiration_date is None:
        if policy == OverlapPolicy.OPEN_ENDED_FOREVER:
            return rule.effective_date, date.max
        return None
    return rule.effective_date, rule.expiration_date


def windows_overlap(first: tuple[date, date], second: tuple[date, date]) -> bool:
    """Inclusive overlap test: windows touching on the same day overlap."""
    start1, end1 = first
    start2, end2 = second
    return not (end1 < start2 or end2 < start1)


def find_overlapping_windows(
    rules: Iterable[Rule], policy: OverlapPolicy = OverlapPolicy.SKIP_OPEN_ENDED
) -> list[Conflict]:
    by_target: dict[str, list[Rule]] = defaultdict(list)
    for rule in rules:
        if rule.is_active and rule.target_id:
            by_target[rule.target_id].append(rule)

    conflicts: list[Conflict] = []
    for target_id, target_rules in by_target.items():
        for first, second in combinations(target_rules, 2):
            window1 = _window(first, policy)
            window2 = _window(second, policy)
            if window1 is None or window2 is None:
                continue
            if windows_overlap(window1, window2):
                conflicts.append(
                    Conflict(
                        type=ConflictType.OVERLAPPING_DATES,
                        severity=ConflictSeverity.WARNING,
                        message=(
                            f'Rules "{first.name}" and "{second.name}" have overlapping '
                            f"effective dates for target {target_id}"
                        ),
                        rule_ids=(first.id, second.id),
                    )
                )
    return conflicts


def _canonical_cycle(cycle: Sequence[str]) -> tuple[str, ...]:
    # Rotate so the same cycle found from different entry points compares equal
    pivot = cycle.index(min(cycle))
    return tuple(cycle[pivot:]) + tuple(cycle[:pivot])


def find_dependency_cycles(
    rules: Iterable[Rule], max_walk_steps: int | None = None
) -> list[Conflict]:
    """Report dependency cycles, each distinct cycle once.

    Iterative DFS with three colours: unvisited, on the current path, and
    finished. Only an edge back onto the current path closes a cycle. A
    finished rule is never entered again, so the walk is linear in rules
    plus dependencies and its depth is not bound by the recursion limit.

    ``max_walk_steps`` caps the number of dependency edges examined.
    """
    max_steps = max_walk_steps if max_walk_steps is not None else config.MAX_WALK_STEPS
    rule_list = list(rules)
    graph = {rule.id: rule.depends_on_rule_id for rule in rule_list}
    names = {rule.id: rule.name for rule in rule_list}

    conflicts: list[Conflict] = []
    seen_cycles: set[tuple[str, ...]] = set()
    finished: set[str] = set()
    steps = 0
    truncated = False

    for rule in rule_list:
        if truncated:
            break
        if rule.id in finished or not rule.depends_on_rule_id:
            continue

        path: list[str] = [rule.id]
        on_path: set[str] = {rule.id}
        stack = [iter(graph.get(rule.id, ()))]
        while stack:
            dep_id = next(stack[-1], None)
            if dep_id is None:
                stack.pop()
                done = path.pop()
                on_path.discard(done)
                finished.add(done)
                continue

            steps += 1
            if steps > max_steps:
                truncated = True
                break

            if dep_id in on_path:
                cycle = path[path.index(dep_id):]
                key = _canonical_cycle(cycle)
                if key in seen_cycles:
                    continue
                seen_cycles.add(key)
                cycle_path = (*cycle, dep_id)
                conflicts.append(
                    Conflict(
                        type=ConflictType.CIRCULAR_DEPENDENCY,
                        severity=ConflictSeverity.ERROR,
                        message="Circular dependency detected: "
                        + " -> ".join(names.get(rid, rid) for rid in cycle_path),
                        rule_ids=tuple(cycle),
                        cycle_path=cycle_path,
                    )
                )
            elif dep_id not in finished and dep_id in graph:
                path.append(dep_id)
                on_path.add(dep_id)
                stack.append(iter(graph[dep_id]))

    if truncated:
        logger.warning(
            f"Dependency walk stopped after {max_steps} steps; cycle report is incomplete"
        )
        conflicts.append(
            Conflict(
                type=ConflictType.ANALYSIS_TRUNCATED,
                severity=ConflictSeverity.WARNING,
                message=f"Dependency analysis stopped after {max_steps} steps",
                rule_ids=tuple(rule.id for rule in rule_list if rule.depends_on_rule_id),
            )
        )
    return conflicts


def find_priority_ties(rules: Iterable[Rule]) -> list[Conflict]:
    by_priority: dict[int, list[Rule]] = defaultdict(list)
    for rule in rules:
        if rule.priority is not None:
            by_priority[rule.priority].append(rule)

    return [
        Conflict(
            type=ConflictType.PRIORITY_TIE,
            severity=ConflictSeverity.WARNING,
            message=f"{len(tied)} rules share priority {priority}: "
            + ", ".join(f'"{rule.name}"' for rule in tied),
            rule_ids=tuple(rule.id for rule in tied),
        )
        for priority, tied in by_priority.items()
        if len(tied) > 1
    ]


def detect_conflicts(
    rules: Iterable[Rule],
    overlap_policy: OverlapPolicy | str | None = None,
    max_walk_steps: int | None = None,
) -> ConflictDetectionResult:
    """Run every conflict check over ``rules``. Never mutates its input."""
    rule_list = list(rules)
    policy = OverlapPolicy(overlap_policy or config.OVERLAP_POLICY)

    conflicts = [
        *find_overlapping_windows(rule_list, policy),
        *find_dependency_cycles(rule_list, max_walk_steps),
        *find_priority_ties(rule_list),
    ]
    logger.debug(f"Conflict detection found {len(conflicts)} conflict(s) in {len(rule_list)} rules")
    return ConflictDetectionResult(conflicts=conflicts)
