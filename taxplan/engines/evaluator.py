"""Eligibility rule evaluator.

Matches strategy rule rows against an intake document with three-valued
logic. A rule group is the AND of its rows and a strategy is the OR of its
groups:

  ELIGIBLE      any group passed
  POTENTIAL     no group passed, but some group is missing a required field
  NOT_ELIGIBLE  every group failed on present data

Field paths are dot-separated and may index into arrays ("items.0.kind").
A path that cannot be resolved yields MISSING, which is distinct from a
present null or false.
"""

import json
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from enum import Enum
from typing import Any, Final

from pydantic import BaseModel, JsonValue

from taxplan.models.enums import EligibilityStatus, RuleOperator, RuleRowStatus, StrategyId
from taxplan.models.intake import NormalizedIntake
from taxplan.models.rules import (
    EvaluatedRuleGroup,
    EvaluatedRuleRow,
    EvaluatedStrategy,
    MissingRequiredField,
    RequiredBy,
    RuleTable,
    StrategyEvaluationResult,
    StrategyRuleRow,
)


class _Missing:
    """Sentinel for a path that does not resolve."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()

_SUMMARIES = {
    EligibilityStatus.ELIGIBLE: "At least one rule group passed.",
    EligibilityStatus.POTENTIAL: "Missing required intake fields.",
    EligibilityStatus.NOT_ELIGIBLE: "All rule groups failed.",
}


# ---------------------------------------------------------------------------
# JSON conversion and path resolution
# ---------------------------------------------------------------------------

def to_json_value(value: Any) -> JsonValue:
    """Convert models, Decimals, enums and containers into plain JSON values.

    Integral Decimals become ints so that ``gte 250000`` compares numerically
    against a money field.
    """
    if isinstance(value, BaseModel):
        value = value.model_dump()
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, (int, float, str)):
        return value
    if isinstance(value, Mapping):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((to_json_value(v) for v in value), key=str)
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    raise TypeError(f"Value of type {type(value).__name__} is not JSON-representable")


def resolve_path(document: JsonValue, path: str) -> JsonValue | _Missing:
    """Resolve a dot-path, returning MISSING when any segment is absent."""
    current: JsonValue = document
    for part in path.split("."):
        if isinstance(current, list):
            if not (part.isascii() and part.isdigit()) or int(part) >= len(current):
                return MISSING
            current = current[int(part)]
        elif isinstance(current, dict):
            if part not in current:
                return MISSING
            current = current[part]
        else:
            return MISSING
    return current


def _is_number(value: JsonValue) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def json_equal(a: JsonValue, b: JsonValue) -> bool:
    """Strict equality: no cross-type coercion, booleans never equal numbers.

    Objects and arrays are only equal to themselves.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if _is_number(a) and _is_number(b):
        return a == b
    if isinstance(a, (dict, list)) or isinstance(b, (dict, list)):
        return a is b
    return type(a) is type(b) and a == b


def compare(actual: JsonValue, op: RuleOperator, expected: JsonValue) -> bool:
    """Apply ``op`` to a resolved (present) value."""
    if op == RuleOperator.EXISTS:
        return True
    if op == RuleOperator.EQ:
        return json_equal(actual, expected)
    if op == RuleOperator.NEQ:
        return not json_equal(actual, expected)
    if op == RuleOperator.GTE:
        return _is_number(actual) and _is_number(expected) and actual >= expected
    if op == RuleOperator.LTE:
        return _is_number(actual) and _is_number(expected) and actual <= expected
    if op == RuleOperator.IN:
        return isinstance(expected, list) and any(json_equal(actual, e) for e in expected)
    raise ValueError(f"Unsupported operator: {op}")


def _json_text(value: JsonValue) -> str:
    return json.dumps(value, separators=(",", ":"))


# ---------------------------------------------------------------------------
# Row / group / strategy evaluation
# ---------------------------------------------------------------------------

def evaluate_row(row: StrategyRuleRow, document: JsonValue) -> EvaluatedRuleRow:
    actual = resolve_path(document, row.field)

    if actual is MISSING:
        if row.required:
            return EvaluatedRuleRow(
                row=row,
                status=RuleRowStatus.MISSING_REQUIRED,
                message=f'Required field "{row.field}" is missing.',
            )
        return EvaluatedRuleRow(
            row=row,
            status=RuleRowStatus.MISSING_OPTIONAL,
            message=f'Optional field "{row.field}" is missing.',
        )

    if not compare(actual, row.op, row.value):
        return EvaluatedRuleRow(
            row=row,
            status=RuleRowStatus.FAILED,
            actual=actual,
            message=f"Condition failed: {row.field} {row.op} {_json_text(row.value)}",
        )
    return EvaluatedRuleRow(
        row=row, status=RuleRowStatus.PASSED, actual=actual, message="Condition passed."
    )


def evaluate_group(
    strategy_id: StrategyId,
    rule_group: str,
    rows: Sequence[StrategyRuleRow],
    document: JsonValue,
) -> EvaluatedRuleGroup:
    evaluated = [evaluate_row(row, document) for row in rows]
    has_missing_required = any(r.status == RuleRowStatus.MISSING_REQUIRED for r in evaluated)
    passed = not has_missing_required and all(r.status == RuleRowStatus.PASSED for r in evaluated)
    return EvaluatedRuleGroup(
        strategy_id=strategy_id,
        rule_group=rule_group,
        passed=passed,
        has_missing_required=has_missing_required,
        rows=evaluated,
    )


def _collect_missing_required(groups: list[EvaluatedRuleGroup]) -> list[MissingRequiredField]:
    by_field: dict[str, list[RequiredBy]] = {}
    for group in groups:
        for r in group.rows:
            if r.status == RuleRowStatus.MISSING_REQUIRED:
                by_field.setdefault(r.row.field, []).append(
                    RequiredBy(rule_group=group.rule_group, op=r.row.op)
                )
    return [
        MissingRequiredField(field=field, required_by=required_by)
        for field, required_by in sorted(by_field.items())
    ]


def evaluate_strategy(
    strategy_id: StrategyId, rows: Sequence[StrategyRuleRow], document: JsonValue
) -> EvaluatedStrategy:
    grouped: dict[str, list[StrategyRuleRow]] = {}
    for row in rows:
        grouped.setdefault(row.rule_group, []).append(row)

    groups = [
        evaluate_group(strategy_id, label, grouped[label], document)
        for label in sorted(grouped)
    ]

    if any(g.passed for g in groups):
        status = EligibilityStatus.ELIGIBLE
    elif any(g.has_missing_required for g in groups):
        status = EligibilityStatus.POTENTIAL
    else:
        status = EligibilityStatus.NOT_ELIGIBLE

    failed = []
    if status == EligibilityStatus.NOT_ELIGIBLE:
        failed = [r for g in groups for r in g.rows if r.status == RuleRowStatus.FAILED]
    missing = []
    if status == EligibilityStatus.POTENTIAL:
        missing = _collect_missing_required(groups)

    return EvaluatedStrategy(
        strategy_id=strategy_id,
        status=status,
        groups=groups,
        failed_conditions=failed,
        missing_required=missing,
        summary=_SUMMARIES[status],
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def evaluate(
    intake: NormalizedIntake | Mapping[str, Any],
    rules: RuleTable | Iterable[StrategyRuleRow],
    strategy_ids: Iterable[StrategyId] | None = None,
) -> list[EvaluatedStrategy]:
    """Evaluate every strategy that has rules, sorted by strategy id.

    ``intake`` may be a full NormalizedIntake or a partial intake document;
    fields absent from a partial document evaluate as missing.
    """
    document = to_json_value(intake)
    rows = rules.rules if isinstance(rules, RuleTable) else rules
    wanted = set(strategy_ids) if strategy_ids is not None else None

    by_strategy: dict[StrategyId, list[StrategyRuleRow]] = {}
    for row in rows:
        if wanted is not None and row.strategy_id not in wanted:
            continue
        by_strategy.setdefault(row.strategy_id, []).append(row)

    return [
        evaluate_strategy(strategy_id, by_strategy[strategy_id], document)
        for strategy_id in sorted(by_strategy)
    ]


def evaluate_strategies(
    intake: NormalizedIntake | Mapping[str, Any],
    rules: RuleTable | Iterable[StrategyRuleRow],
    strategy_ids: Iterable[StrategyId] | None = None,
) -> StrategyEvaluationResult:
    """Evaluate and bucket verdicts by status."""
    strategies = evaluate(intake, rules, strategy_ids)
    return StrategyEvaluationResult(
        eligible=[s for s in strategies if s.status == EligibilityStatus.ELIGIBLE],
        not_eligible=[s for s in strategies if s.status == EligibilityStatus.NOT_ELIGIBLE],
        potential=[s for s in strategies if s.status == EligibilityStatus.POTENTIAL],
        all=strategies,
    )
