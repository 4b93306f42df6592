"""Strategy rule rows and eligibility verdict models."""

from pydantic import BaseModel, ConfigDict, JsonValue

from taxplan.models.enums import EligibilityStatus, RuleOperator, RuleRowStatus, StrategyId


class StrategyRuleRow(BaseModel):
    """One condition of a rule group. Rows sharing a rule_group are AND-ed."""

    model_config = ConfigDict(frozen=True)

    strategy_id: StrategyId
    rule_group: str
    field: str
    op: RuleOperator
    value: JsonValue = True
    required: bool = True
    description: str = ""


class RuleTable(BaseModel):
    """A loaded, validated, deterministically ordered rule table."""

    model_config = ConfigDict(frozen=True)

    version: str | None = None
    rules: tuple[StrategyRuleRow, ...] = ()

    def for_strategy(self, strategy_id: StrategyId) -> tuple[StrategyRuleRow, ...]:
        return tuple(r for r in self.rules if r.strategy_id == strategy_id)

    @property
    def strategy_ids(self) -> list[StrategyId]:
        return sorted({r.strategy_id for r in self.rules})


class EvaluatedRuleRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    row: StrategyRuleRow
    status: RuleRowStatus
    actual: JsonValue = None
    message: str


class EvaluatedRuleGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategy_id: StrategyId
    rule_group: str
    passed: bool
    has_missing_required: bool
    rows: list[EvaluatedRuleRow]


class RequiredBy(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule_group: str
    op: RuleOperator


class MissingRequiredField(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    required_by: list[RequiredBy]


class EvaluatedStrategy(BaseModel):
    """Verdict for one strategy.

    ``failed_conditions`` is populated only for NOT_ELIGIBLE and
    ``missing_required`` only for POTENTIAL.
    """

    model_config = ConfigDict(frozen=True)

    strategy_id: StrategyId
    status: EligibilityStatus
    groups: list[EvaluatedRuleGroup]
    failed_conditions: list[EvaluatedRuleRow] = []
    missing_required: list[MissingRequiredField] = []
    summary: str = ""


class StrategyEvaluationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    eligible: list[EvaluatedStrategy]
    not_eligible: list[EvaluatedStrategy]
    potential: list[EvaluatedStrategy]
    all: list[EvaluatedStrategy]
