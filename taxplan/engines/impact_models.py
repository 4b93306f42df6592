"""Deterministic impact models, one per strategy.

Each model turns (intake, baseline totals) into a conservative low/base/high
range for either a taxable-income reduction (deduction and deferral
strategies) or a tax-liability reduction (credit strategies). Deltas are
negative. Models use fixed strategy defaults only, never live data, and
contain no eligibility logic.

Post-processing is shared by every model and runs after the model's own
computation:
  1. Clamp each delta against the baseline so nothing goes below zero,
     flagging and recording the cap when it bites.
  2. Zero every delta when the strategy is already in use.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from decimal import Decimal
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

from taxplan.engines.baseline import BaselineTaxEngine
from taxplan.engines.brackets import DEFAULT_TAX_YEAR, SE_ENTITY_TYPES
from taxplan.models.baseline import ZERO, BaselineTaxTotals
from taxplan.models.enums import (
    AssumptionCategory,
    EligibilityStatus,
    ImpactFlag,
    ImpactModelKind,
    StrategyId,
)
from taxplan.models.impact import ImpactAssumption, Range3, StrategyImpactEstimate
from taxplan.models.intake import NormalizedIntake

logger = logging.getLogger(__name__)

UNMAPPED_STRATEGY_ID = "UNMAPPED_STRATEGY_ID"

# IRS 402(g)(1) elective deferral limit. Catch-up needs age, which intake lacks.
K401_EMPLOYEE_DEFERRAL_LIMIT: dict[int, Decimal] = {
    2025: Decimal("23500"),
}


class ImpactModelContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    intake: NormalizedIntake
    baseline: BaselineTaxTotals
    already_in_use: bool = False


class RawImpact(BaseModel):
    """A model's own output, before capping and in-use zeroing."""

    taxable_income_delta: Range3 | None = None
    tax_liability_delta: Range3 | None = None
    needs_confirmation: bool = False
    assumptions: list[ImpactAssumption] = []
    inputs_to_tighten: list[str] = []


def _assume(
    assumption_id: str,
    category: AssumptionCategory,
    value: Decimal | bool | str | None = True,
    *related_fields: str,
) -> ImpactAssumption:
    return ImpactAssumption(
        id=assumption_id, category=category, value=value, related_fields=related_fields
    )


def cap_amount_by_pct(amount: Decimal, proxy: Decimal, pct: Decimal) -> Decimal:
    """Limit a positive amount to ``pct`` of a non-negative income proxy."""
    cap = max(ZERO, max(proxy, ZERO) * max(pct, ZERO))
    return max(ZERO, min(amount, cap))


# ---------------------------------------------------------------------------
# Shared post-processing
# ---------------------------------------------------------------------------

def cap_to_baseline(
    estimate: StrategyImpactEstimate, baseline: BaselineTaxTotals
) -> StrategyImpactEstimate:
    """Clamp deltas so baseline taxable income and total tax stay >= 0."""
    if estimate.taxable_income_delta is not None:
        capped = estimate.taxable_income_delta.clamp_reduction(baseline.taxable_income)
        if capped != estimate.taxable_income_delta:
            estimate = (
                estimate.with_taxable_income_delta(capped)
                .with_flag(ImpactFlag.CAPPED_BY_TAXABLE_INCOME)
                .with_assumption(
                    _assume(
                        "CAPPED_BY_BASELINE_TAXABLE_INCOME",
                        AssumptionCategory.CAP,
                        baseline.taxable_income,
                    )
                )
            )
    if estimate.tax_liability_delta is not None:
        capped = estimate.tax_liability_delta.clamp_reduction(baseline.total_tax)
        if capped != estimate.tax_liability_delta:
            estimate = (
                estimate.with_tax_liability_delta(capped)
                .with_flag(ImpactFlag.CAPPED_BY_TAX_LIABILITY)
                .with_assumption(
                    _assume(
                        "CAPPED_BY_BASELINE_TOTAL_TAX",
                        AssumptionCategory.CAP,
                        baseline.total_tax,
                    )
                )
            )
    return estimate


def zero_for_already_in_use(estimate: StrategyImpactEstimate) -> StrategyImpactEstimate:
    """The strategy is already reflected in the baseline: no incremental impact."""
    estimate = estimate.with_flag(ImpactFlag.ALREADY_IN_USE).with_assumption(
        _assume("ALREADY_IN_USE_ZERO_INCREMENT", AssumptionCategory.INTERACTION)
    )
    if estimate.taxable_income_delta is not None:
        estimate = estimate.with_taxable_income_delta(Range3.zero())
    if estimate.tax_liability_delta is not None:
        estimate = estimate.with_tax_liability_delta(Range3.zero())
    return estimate


# ---------------------------------------------------------------------------
# Base model
# ---------------------------------------------------------------------------

class ImpactModel(ABC):
    """Base class for strategy impact models."""

    kind: ImpactModelKind

    def __init__(self, tax_year: int = DEFAULT_TAX_YEAR) -> None:
        self.tax_year = tax_year

    @abstractmethod
    def compute(self, ctx: ImpactModelContext) -> RawImpact:
        """Strategy-specific raw ranges and assumptions."""

    def estimate(
        self,
        ctx: ImpactModelContext,
        strategy_id: StrategyId,
        status: EligibilityStatus,
    ) -> StrategyImpactEstimate:
        raw = self.compute(ctx)
        estimate = StrategyImpactEstimate(
            strategy_id=strategy_id,
            status=status,
            model=self.kind,
            taxable_income_delta=raw.taxable_income_delta,
            tax_liability_delta=raw.tax_liability_delta,
            needs_confirmation=raw.needs_confirmation,
            assumptions=tuple(raw.assumptions),
            inputs_to_tighten=tuple(raw.inputs_to_tighten),
        )
        estimate = cap_to_baseline(estimate, ctx.baseline)
        if ctx.already_in_use:
            estimate = zero_for_already_in_use(estimate)
        return estimate


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class UnknownRangeModel(ImpactModel):
    """Zero-impact fallback for strategies without a model."""

    kind = ImpactModelKind.UNKNOWN_RANGE

    def __init__(self, reason_code: str = UNMAPPED_STRATEGY_ID, tax_year: int = DEFAULT_TAX_YEAR):
        super().__init__(tax_year)
        self.reason_code = reason_code

    def compute(self, ctx: ImpactModelContext) -> RawImpact:
        return RawImpact(
            taxable_income_delta=Range3.zero(),
            tax_liability_delta=Range3.zero(),
            needs_confirmation=True,
            assumptions=[
                _assume("UNKNOWN_RANGE_MINIMAL_IMPACT", AssumptionCategory.CONSERVATISM),
                _assume("DATA_GAP", AssumptionCategory.DATA_GAP, self.reason_code),
            ],
        )


class K401DeferralModel(ImpactModel):
    """Remaining employee deferral room; uptake 0% / 50% / 100%."""

    kind = ImpactModelKind.DEFERRAL_RANGE
    UPTAKE = Decimal("0.5")

    def compute(self, ctx: ImpactModelContext) -> RawImpact:
        limit = K401_EMPLOYEE_DEFERRAL_LIMIT[self.tax_year]
        ytd = max(ctx.intake.retirement.k401_employee_contrib_ytd, ZERO)
        room = max(limit - ytd, ZERO)
        return RawImpact(
            taxable_income_delta=Range3.of(ZERO, -room * self.UPTAKE, -room),
            assumptions=[
                _assume(
                    "401K_EMPLOYEE_LIMIT_2025",
                    AssumptionCategory.CAP,
                    limit,
                    "retirement.k401_employee_contrib_ytd",
                ),
                _assume("NO_CATCHUP_ASSUMED", AssumptionCategory.DATA_GAP),
                _assume("CONSERVATIVE_PARTIAL_UPTAKE", AssumptionCategory.CONSERVATISM, self.UPTAKE),
            ],
            inputs_to_tighten=["taxpayer_age"],
        )


class AugustaModel(ImpactModel):
    """Home rental to the business: daily rate x days."""

    kind = ImpactModelKind.DEDUCTION_RANGE
    DAILY_RATE = Decimal("950")
    BASE_DAYS = 10
    MAX_DAYS = 14

    def compute(self, ctx: ImpactModelContext) -> RawImpact:
        return RawImpact(
            taxable_income_delta=Range3.of(
                ZERO, -self.DAILY_RATE * self.BASE_DAYS, -self.DAILY_RATE * self.MAX_DAYS
            ),
            assumptions=[
                _assume("AUGUSTA_DAILY_RATE", AssumptionCategory.DEFAULT, self.DAILY_RATE),
                _assume("AUGUSTA_BASE_DAYS", AssumptionCategory.DEFAULT, Decimal(self.BASE_DAYS)),
                _assume("AUGUSTA_MAX_DAYS", AssumptionCategory.CAP, Decimal(self.MAX_DAYS)),
                _assume("CONSERVATIVE_DAYS_RANGE", AssumptionCategory.CONSERVATISM),
            ],
            inputs_to_tighten=["local_comparable_daily_rent", "meeting_days_documented"],
        )


class MedicalReimbursementModel(ImpactModel):
    kind = ImpactModelKind.DEDUCTION_RANGE
    MONTHLY = (Decimal("1500"), Decimal("2000"), Decimal("2500"))

    def compute(self, ctx: ImpactModelContext) -> RawImpact:
        low, base, high = self.MONTHLY
        return RawImpact(
            taxable_income_delta=Range3.of(-low * 12, -base * 12, -high * 12),
            needs_confirmation=True,
            assumptions=[
                _assume("MED_REIMB_MONTHLY_LOW", AssumptionCategory.DEFAULT, low),
                _assume("MED_REIMB_MONTHLY_BASE", AssumptionCategory.DEFAULT, base),
                _assume("MED_REIMB_MONTHLY_HIGH", AssumptionCategory.DEFAULT, high),
                _assume("REQUIRES_PLAN_AND_SUBSTANTIATION", AssumptionCategory.DATA_GAP),
            ],
            inputs_to_tighten=["annual_medical_expenses"],
        )


class CashBalancePlanModel(ImpactModel):
    kind = ImpactModelKind.DEFERRAL_RANGE
    CONTRIBUTIONS = (Decimal("50000"), Decimal("100000"), Decimal("150000"))

    def compute(self, ctx: ImpactModelContext) -> RawImpact:
        low, base, high = self.CONTRIBUTIONS
        return RawImpact(
            taxable_income_delta=Range3.of(-low, -base, -high),
            needs_confirmation=True,
            assumptions=[
                _assume("CASH_BALANCE_CONTRIB_LOW", AssumptionCategory.DEFAULT, low),
                _assume("CASH_BALANCE_CONTRIB_BASE", AssumptionCategory.DEFAULT, base),
                _assume("CASH_BALANCE_CONTRIB_HIGH", AssumptionCategory.DEFAULT, high),
                _assume("REQUIRES_PLAN_DESIGN", AssumptionCategory.DATA_GAP),
            ],
            inputs_to_tighten=["taxpayer_age", "employee_census"],
        )


class HiringChildrenModel(ImpactModel):
    kind = ImpactModelKind.DEDUCTION_RANGE
    PER_CHILD = (Decimal("1000"), Decimal("6000"), Decimal("15000"))

    def compute(self, ctx: ImpactModelContext) -> RawImpact:
        kids = max(ctx.intake.personal.children_0_17, 0)
        if not ctx.intake.business.has_business or kids == 0:
            return RawImpact(
                taxable_income_delta=Range3.zero(),
                needs_confirmation=True,
                assumptions=[
                    _assume(
                        "NO_CHILDREN_OR_NO_BUSINESS",
                        AssumptionCategory.DATA_GAP,
                        True,
                        "business.has_business",
                        "personal.children_0_17",
                    ),
                    _assume("CONSERVATIVE_ZERO", AssumptionCategory.CONSERVATISM),
                ],
            )

        low, base, high = self.PER_CHILD
        return RawImpact(
            taxable_income_delta=Range3.of(-low * kids, -base * kids, -high * kids),
            needs_confirmation=True,
            assumptions=[
                _assume(
                    "HIRING_CHILDREN_RANGE_PER_CHILD",
                    AssumptionCategory.DEFAULT,
                    f"{low}/{base}/{high}",
                    "personal.children_0_17",
                ),
                _assume("NEEDS_WAGE_AND_SUBSTANTIATION", AssumptionCategory.DATA_GAP),
            ],
            inputs_to_tighten=["children_ages", "hours_worked"],
        )


class LeveragedCharitableModel(ImpactModel):
    """Investment x multiplier, limited to 30% of baseline taxable income."""

    kind = ImpactModelKind.DEDUCTION_RANGE
    INVESTMENT_MIN = Decimal("50000")
    MULTIPLIER = Decimal("5")
    AGI_CAP_PCT = Decimal("0.30")

    def compute(self, ctx: ImpactModelContext) -> RawImpact:
        base = cap_amount_by_pct(
            self.INVESTMENT_MIN * self.MULTIPLIER, ctx.baseline.taxable_income, self.AGI_CAP_PCT
        )
        return RawImpact(
            taxable_income_delta=Range3.of(ZERO, -base, -base),
            needs_confirmation=True,
            assumptions=[
                _assume(
                    "LEVERAGED_CHARITABLE_INVESTMENT_MIN",
                    AssumptionCategory.DEFAULT,
                    self.INVESTMENT_MIN,
                ),
                _assume("LEVERAGED_CHARITABLE_MULTIPLIER", AssumptionCategory.DEFAULT, self.MULTIPLIER),
                _assume("LEVERAGED_CHARITABLE_AGI_CAP_PCT", AssumptionCategory.CAP, self.AGI_CAP_PCT),
                _assume("REQUIRES_COST_BENEFIT_REVIEW", AssumptionCategory.DATA_GAP),
            ],
        )


class ShortTermRentalModel(ImpactModel):
    """Cost segregation on a rental purchase: 18% / 22% / 26% of price."""

    kind = ImpactModelKind.DEDUCTION_RANGE
    PURCHASE_PRICE = Decimal("1000000")
    COSTSEG_PCTS = (Decimal("0.18"), Decimal("0.22"), Decimal("0.26"))

    def compute(self, ctx: ImpactModelContext) -> RawImpact:
        low, base, high = (self.PURCHASE_PRICE * pct for pct in self.COSTSEG_PCTS)
        low_pct, base_pct, high_pct = self.COSTSEG_PCTS
        return RawImpact(
            taxable_income_delta=Range3.of(-low, -base, -high),
            needs_confirmation=True,
            assumptions=[
                _assume("STR_PURCHASE_PRICE", AssumptionCategory.DEFAULT, self.PURCHASE_PRICE),
                _assume("STR_COSTSEG_PCT_LOW", AssumptionCategory.DEFAULT, low_pct),
                _assume("STR_COSTSEG_PCT_BASE", AssumptionCategory.DEFAULT, base_pct),
                _assume("STR_COSTSEG_PCT_HIGH", AssumptionCategory.DEFAULT, high_pct),
                _assume("REQUIRES_PROPERTY_AND_PARTICIPATION_FACTS", AssumptionCategory.DATA_GAP),
            ],
            inputs_to_tighten=["property_purchase_price", "material_participation_hours"],
        )


class RTUProgramModel(ImpactModel):
    kind = ImpactModelKind.DEDUCTION_RANGE
    INVESTMENT = Decimal("50000")
    DEDUCTION = Decimal("350000")
    AGI_CAP_PCT = Decimal("1.0")

    def compute(self, ctx: ImpactModelContext) -> RawImpact:
        base = cap_amount_by_pct(self.DEDUCTION, ctx.baseline.taxable_income, self.AGI_CAP_PCT)
        return RawImpact(
            taxable_income_delta=Range3.of(ZERO, -base, -base),
            needs_confirmation=True,
            assumptions=[
                _assume("RTU_INVESTMENT", AssumptionCategory.DEFAULT, self.INVESTMENT),
                _assume("RTU_DEDUCTION", AssumptionCategory.DEFAULT, self.DEDUCTION),
                _assume("RTU_AGI_CAP_PCT", AssumptionCategory.CAP, self.AGI_CAP_PCT),
                _assume("REQUIRES_COST_BENEFIT_REVIEW", AssumptionCategory.DATA_GAP),
            ],
        )


class FilmCreditsModel(ImpactModel):
    """Film equity: investment x 4.5 / 5.0 / 5.2, each capped at taxable income."""

    kind = ImpactModelKind.DEDUCTION_RANGE
    INVESTMENT_MIN = Decimal("100000")
    MULTIPLIERS = (Decimal("4.5"), Decimal("5.0"), Decimal("5.2"))
    AGI_CAP_PCT = Decimal("1.0")

    def compute(self, ctx: ImpactModelContext) -> RawImpact:
        low, base, high = (
            cap_amount_by_pct(self.INVESTMENT_MIN * m, ctx.baseline.taxable_income, self.AGI_CAP_PCT)
            for m in self.MULTIPLIERS
        )
        low_mult, base_mult, high_mult = self.MULTIPLIERS
        return RawImpact(
            taxable_income_delta=Range3.of(-low, -base, -high),
            needs_confirmation=True,
            assumptions=[
                _assume("FILM_INVESTMENT_MIN", AssumptionCategory.DEFAULT, self.INVESTMENT_MIN),
                _assume("FILM_MULT_LOW", AssumptionCategory.DEFAULT, low_mult),
                _assume("FILM_MULT_BASE", AssumptionCategory.DEFAULT, base_mult),
                _assume("FILM_MULT_HIGH", AssumptionCategory.DEFAULT, high_mult),
                _assume("FILM_AGI_CAP_PCT", AssumptionCategory.CAP, self.AGI_CAP_PCT),
                _assume("REQUIRES_PROGRAM_SPECIFICS", AssumptionCategory.DATA_GAP),
                _assume("REQUIRES_COST_BENEFIT_REVIEW", AssumptionCategory.DATA_GAP),
            ],
        )


class SCorpConversionModel(ImpactModel):
    """Payroll-tax savings from paying a reasonable salary instead of SE tax.

    Salary is 60% / 50% / 40% of net profit (the lower the salary, the larger
    the savings). Savings = current payroll tax - payroll tax with the salary
    taxed as W-2 wages and no SE earnings. Income tax is not modeled.
    """

    kind = ImpactModelKind.CREDIT_RANGE
    SALARY_PCTS = (Decimal("0.60"), Decimal("0.50"), Decimal("0.40"))

    def __init__(self, tax_year: int = DEFAULT_TAX_YEAR) -> None:
        super().__init__(tax_year)
        self._payroll = BaselineTaxEngine(tax_year)

    def compute(self, ctx: ImpactModelContext) -> RawImpact:
        personal = ctx.intake.personal
        business = ctx.intake.business
        profit = business.net_profit if business.has_business else ZERO

        if business.entity_type not in SE_ENTITY_TYPES or profit <= 0:
            return RawImpact(
                tax_liability_delta=Range3.zero(),
                needs_confirmation=True,
                assumptions=[
                    _assume(
                        "NOT_A_PROFITABLE_PASS_THROUGH",
                        AssumptionCategory.DATA_GAP,
                        True,
                        "business.entity_type",
                        "business.net_profit",
                    ),
                    _assume("CONSERVATIVE_ZERO", AssumptionCategory.CONSERVATISM),
                ],
            )

        current = self._payroll.compute_payroll_tax(
            personal.filing_status, personal.income_excl_business, profit
        ).total
        savings = []
        for pct in self.SALARY_PCTS:
            converted = self._payroll.compute_payroll_tax(
                personal.filing_status, personal.income_excl_business + profit * pct
            ).total
            savings.append(current - converted)

        return RawImpact(
            tax_liability_delta=Range3.of(*(-s for s in savings)),
            needs_confirmation=True,
            assumptions=[
                _assume(
                    "REASONABLE_SALARY_PCT",
                    AssumptionCategory.DEFAULT,
                    "/".join(str(p) for p in self.SALARY_PCTS),
                    "business.net_profit",
                ),
                _assume("PAYROLL_TAX_SAVINGS_ONLY", AssumptionCategory.CONSERVATISM),
                _assume("REQUIRES_PAYROLL_AND_ENTITY_ELECTION", AssumptionCategory.DATA_GAP),
            ],
            inputs_to_tighten=["reasonable_compensation_study"],
        )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_MODEL_MAP: dict[StrategyId, type[ImpactModel]] = {
    StrategyId.AUGUSTA_LOOPHOLE: AugustaModel,
    StrategyId.MEDICAL_REIMBURSEMENT: MedicalReimbursementModel,
    StrategyId.HIRING_CHILDREN: HiringChildrenModel,
    StrategyId.CASH_BALANCE_PLAN: CashBalancePlanModel,
    StrategyId.K401: K401DeferralModel,
    StrategyId.LEVERAGED_CHARITABLE: LeveragedCharitableModel,
    StrategyId.SHORT_TERM_RENTAL: ShortTermRentalModel,
    StrategyId.RTU_PROGRAM: RTUProgramModel,
    StrategyId.FILM_CREDITS: FilmCreditsModel,
    StrategyId.S_CORP_CONVERSION: SCorpConversionModel,
}


class ImpactModelRegistry:
    """Immutable strategy -> model lookup. Total: unmapped ids get the fallback."""

    def __init__(
        self,
        models: Mapping[StrategyId, ImpactModel],
        fallback: ImpactModel | None = None,
    ) -> None:
        self._models = MappingProxyType(dict(models))
        self._fallback = fallback or UnknownRangeModel(UNMAPPED_STRATEGY_ID)

    def is_mapped(self, strategy_id: StrategyId) -> bool:
        return strategy_id in self._models

    def get(self, strategy_id: StrategyId) -> ImpactModel:
        model = self._models.get(strategy_id)
        if model is None:
            logger.warning("No impact model for %s; using unknown_range fallback", strategy_id)
            return self._fallback
        return model

    def estimate(
        self,
        strategy_id: StrategyId,
        status: EligibilityStatus,
        intake: NormalizedIntake,
        baseline: BaselineTaxTotals,
    ) -> StrategyImpactEstimate:
        ctx = ImpactModelContext(
            intake=intake,
            baseline=baseline,
            already_in_use=intake.is_in_use(strategy_id),
        )
        return self.get(strategy_id).estimate(ctx, strategy_id, status)


def default_registry(tax_year: int = DEFAULT_TAX_YEAR) -> ImpactModelRegistry:
    return ImpactModelRegistry({sid: cls(tax_year) for sid, cls in _MODEL_MAP.items()})
