"""Strategy rule table loading and validation.

Accepts either a bare list of rule rows or ``{"version": ..., "rules": [...]}``.
Every row is validated and all issues are reported together in a single
RulesParseError, so a rule file can be fixed in one pass.
"""

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

from taxplan.exceptions import RulesParseError
from taxplan.models.enums import RuleOperator, StrategyId
from taxplan.models.rules import RuleTable, StrategyRuleRow

logger = logging.getLogger(__name__)

DEFAULT_RULES_RESOURCE = "strategy_rules.json"

_OPERATORS = ", ".join(op.value for op in RuleOperator)
_STRATEGY_IDS = {s.value for s in StrategyId}


def default_rules_path() -> Path:
    """Path of the rule table shipped with the package."""
    return Path(str(resources.files("taxplan") / "data" / DEFAULT_RULES_RESOURCE))


def _is_json_value(value: Any) -> bool:
    if value is None or isinstance(value, (str, bool, int, float)):
        return True
    if isinstance(value, list):
        return all(_is_json_value(v) for v in value)
    if isinstance(value, dict):
        return all(isinstance(k, str) and _is_json_value(v) for k, v in value.items())
    return False


def _non_empty_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _parse_row(index: int, item: Any) -> tuple[StrategyRuleRow | None, list[str]]:
    prefix = f"rules[{index}]"
    if not isinstance(item, dict):
        return None, [f"{prefix} must be an object."]

    issues: list[str] = []

    strategy_id = _non_empty_str(item.get("strategy_id"))
    if strategy_id is None:
        issues.append(f"{prefix}.strategy_id must be a non-empty string.")
    elif strategy_id not in _STRATEGY_IDS:
        issues.append(f'{prefix}.strategy_id "{strategy_id}" is not a valid strategy ID.')

    rule_group = _non_empty_str(item.get("rule_group"))
    if rule_group is None:
        issues.append(f"{prefix}.rule_group must be a non-empty string.")
    field = _non_empty_str(item.get("field"))
    if field is None:
        issues.append(f"{prefix}.field must be a non-empty string.")

    op = item.get("op")
    if not isinstance(op, str) or op not in {o.value for o in RuleOperator}:
        issues.append(f"{prefix}.op must be one of: {_OPERATORS}.")

    required = item.get("required", True)
    if not isinstance(required, bool):
        issues.append(f"{prefix}.required must be a boolean when provided.")

    description = item.get("description", "")
    if not isinstance(description, str):
        issues.append(f"{prefix}.description must be a string when provided.")

    if "value" not in item:
        if op != RuleOperator.EXISTS:
            issues.append(f'{prefix}.value is required when op is not "exists".')
        value = True
    else:
        value = item["value"]
        if not _is_json_value(value):
            issues.append(f"{prefix}.value must be a valid JSON value.")

    if issues:
        return None, issues

    row = StrategyRuleRow(
        strategy_id=StrategyId(strategy_id),
        rule_group=rule_group,
        field=field,
        op=RuleOperator(op),
        value=value,
        required=required,
        description=description.strip(),
    )
    return row, []


def sort_rules(rules: list[StrategyRuleRow]) -> list[StrategyRuleRow]:
    """Stable sort by (strategy_id, rule_group, field, op)."""
    return sorted(rules, key=lambda r: (r.strategy_id.value, r.rule_group, r.field, r.op.value))


def parse_rules(raw: Any) -> RuleTable:
    """Validate decoded rule JSON into a RuleTable.

    Raises:
        RulesParseError: listing every invalid row.
    """
    version: str | None = None
    if isinstance(raw, list):
        rows_raw = raw
    elif isinstance(raw, dict) and isinstance(raw.get("rules"), list):
        rows_raw = raw["rules"]
        if "version" in raw:
            version = _non_empty_str(raw["version"])
            if version is None:
                raise RulesParseError(
                    "Invalid rules JSON shape.", ["`version` must be a non-empty string."]
                )
    else:
        raise RulesParseError(
            "Invalid rules JSON shape.",
            ["Expected an array of rules OR an object with a `rules` array."],
        )

    issues: list[str] = []
    parsed: list[StrategyRuleRow] = []
    for i, item in enumerate(rows_raw):
        row, row_issues = _parse_row(i, item)
        issues.extend(row_issues)
        if row is not None:
            parsed.append(row)

    if issues:
        raise RulesParseError("Rules JSON failed validation.", issues)

    return RuleTable(version=version, rules=tuple(sort_rules(parsed)))


def load_rule_table(path: Path | str | None = None) -> RuleTable:
    """Read, decode and validate a rule file. Defaults to the packaged table."""
    rules_path = Path(path) if path is not None else default_rules_path()
    try:
        text = rules_path.read_text(encoding="utf-8")
    except OSError as e:
        raise RulesParseError(f"Failed to read rules file {rules_path}.", [str(e)]) from e
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise RulesParseError("Failed to parse rules JSON.", [str(e)]) from e

    table = parse_rules(raw)
    logger.info(
        "Loaded %d rule rows (version %s) from %s",
        len(table.rules),
        table.version or "unversioned",
        rules_path,
    )
    return table
