"""Impact estimate and revised-totals models.

Deltas follow a "negative reduces" convention: a taxable-income delta of
-10,000 lowers taxable income by $10,000.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, field_serializer, model_validator

from taxplan.models.baseline import ZERO, BaselineTaxTotals
from taxplan.models.enums import (
    AssumptionCategory,
    EligibilityStatus,
    ImpactFlag,
    ImpactModelKind,
    StrategyId,
)
from taxplan.models.rules import EvaluatedStrategy

_RANGE_KEYS = ("low", "base", "high")


class Range3(BaseModel):
    """A (low, base, high) triple. Inputs are sorted on construction."""

    model_config = ConfigDict(frozen=True)

    low: Decimal
    base: Decimal
    high: Decimal

    @model_validator(mode="before")
    @classmethod
    def _sort_values(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        try:
            # "+ 0" turns a negative zero into zero
            ordered = sorted(Decimal(str(data[k])) + 0 for k in _RANGE_KEYS)
        except (KeyError, InvalidOperation):
            return data
        return {**data, "low": ordered[0], "base": ordered[1], "high": ordered[2]}

    @classmethod
    def of(cls, low: Decimal | int, base: Decimal | int, high: Decimal | int) -> "Range3":
        return cls(low=low, base=base, high=high)

    @classmethod
    def zero(cls) -> "Range3":
        return cls(low=ZERO, base=ZERO, high=ZERO)

    def __add__(self, other: "Range3") -> "Range3":
        return Range3(
            low=self.low + other.low,
            base=self.base + other.base,
            high=self.high + other.high,
        )

    def is_zero(self) -> bool:
        return self.low == ZERO and self.base == ZERO and self.high == ZERO

    def values(self) -> tuple[Decimal, Decimal, Decimal]:
        return (self.low, self.base, self.high)

    def clamp_reduction(self, available: Decimal) -> "Range3":
        """Limit every value to [-available, 0] so the reduced quantity stays >= 0."""
        cap = max(ZERO, available)
        low, base, high = (min(ZERO, max(v, -cap)) for v in self.values())
        return Range3(low=low, base=base, high=high)


class ImpactAssumption(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    category: AssumptionCategory
    value: Decimal | bool | str | None = None
    related_fields: tuple[str, ...] = ()


class StrategyImpactEstimate(BaseModel):
    """Range-valued impact of one strategy plus its audit trail.

    Instances are frozen. The ``with_*`` helpers return updated copies and
    can only add flags and assumptions, never remove them.
    """

    model_config = ConfigDict(frozen=True)

    strategy_id: StrategyId
    status: EligibilityStatus
    model: ImpactModelKind
    taxable_income_delta: Range3 | None = None
    tax_liability_delta: Range3 | None = None
    needs_confirmation: bool = False
    assumptions: tuple[ImpactAssumption, ...] = ()
    inputs_to_tighten: tuple[str, ...] = ()
    flags: frozenset[ImpactFlag] = frozenset()

    @field_serializer("flags")
    def _serialize_flags(self, flags: frozenset[ImpactFlag]) -> list[str]:
        return sorted(str(f) for f in flags)

    def has_flag(self, flag: ImpactFlag) -> bool:
        return flag in self.flags

    def with_flag(self, flag: ImpactFlag) -> "StrategyImpactEstimate":
        return self.model_copy(update={"flags": self.flags | {flag}})

    def with_assumption(self, assumption: ImpactAssumption) -> "StrategyImpactEstimate":
        return self.model_copy(update={"assumptions": self.assumptions + (assumption,)})

    def with_taxable_income_delta(self, delta: Range3) -> "StrategyImpactEstimate":
        return self.model_copy(update={"taxable_income_delta": delta})

    def with_tax_liability_delta(self, delta: Range3) -> "StrategyImpactEstimate":
        return self.model_copy(update={"tax_liability_delta": delta})

    def requiring_confirmation(self) -> "StrategyImpactEstimate":
        return self.model_copy(update={"needs_confirmation": True})

    def assumption(self, assumption_id: str) -> ImpactAssumption | None:
        for a in self.assumptions:
            if a.id == assumption_id:
                return a
        return None


class EvaluationReason(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    field: str | None = None


class ImpactStrategyEvaluation(BaseModel):
    """Eligibility verdict in the shape the impact engine consumes."""

    model_config = ConfigDict(frozen=True)

    strategy_id: StrategyId
    status: EligibilityStatus
    reasons: tuple[EvaluationReason, ...] = ()
    missing_fields: tuple[str, ...] = ()

    @classmethod
    def from_evaluated(cls, evaluated: EvaluatedStrategy) -> "ImpactStrategyEvaluation":
        reasons = [
            EvaluationReason(code=str(row.status), message=row.message, field=row.row.field)
            for row in evaluated.failed_conditions
        ]
        reasons.extend(
            EvaluationReason(
                code="MISSING_REQUIRED",
                message=f'Required field "{m.field}" is missing.',
                field=m.field,
            )
            for m in evaluated.missing_required
        )
        return cls(
            strategy_id=evaluated.strategy_id,
            status=evaluated.status,
            reasons=tuple(reasons),
            missing_fields=tuple(m.field for m in evaluated.missing_required),
        )


class RevisedTaxTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    baseline: BaselineTaxTotals
    revised: BaselineTaxTotals
    total_tax_delta: Range3
    total_taxable_income_delta: Range3


class ImpactRun(BaseModel):
    """Result of one application pass (core or what-if)."""

    model_config = ConfigDict(frozen=True)

    impacts: list[StrategyImpactEstimate]
    revised_totals: RevisedTaxTotals

    @property
    def applied_strategy_ids(self) -> list[StrategyId]:
        return [i.strategy_id for i in self.impacts if i.has_flag(ImpactFlag.APPLIED)]

    def impact_for(self, strategy_id: StrategyId) -> StrategyImpactEstimate | None:
        for impact in self.impacts:
            if impact.strategy_id == strategy_id:
                return impact
        return None


class RetaxedTotals(BaseModel):
    """Revised totals re-taxed through the bracket math for each delta scenario.

    ``total_tax_savings`` is baseline minus revised, so savings are positive.
    """

    model_config = ConfigDict(frozen=True)

    low: BaselineTaxTotals
    base: BaselineTaxTotals
    high: BaselineTaxTotals
    total_tax_savings: Range3


class CoreScenario(BaseModel):
    model_config = ConfigDict(frozen=True)

    applied_strategy_ids: list[StrategyId]
    revised_totals: RevisedTaxTotals
    retaxed: RetaxedTotals


class WhatIfScenario(BaseModel):
    """Core strategies plus exactly one extra strategy.

    Marginal deltas are core minus with-strategy, so a strategy that saves
    tax has a positive marginal value.
    """

    model_config = ConfigDict(frozen=True)

    strategy_id: StrategyId
    applied: bool
    impact: StrategyImpactEstimate
    revised_totals: RevisedTaxTotals
    retaxed: RetaxedTotals
    marginal_tax_delta: Range3
    marginal_taxable_income_delta: Range3
    marginal_retaxed_savings: Range3


class ImpactEngineOutput(BaseModel):
    model_config = ConfigDict(frozen=True)

    impacts: list[StrategyImpactEstimate]
    revised_totals: RevisedTaxTotals
    core: CoreScenario
    what_if: list[WhatIfScenario]
