"""Baseline tax engine.

Computes the "time zero" tax picture with no strategies applied:
  - AGI proxy: W-2 income + business net profit - 401(k) deferrals YTD
  - Federal ordinary tax via marginal bracket integration after the standard deduction
  - Simplified nonrefundable Child Tax Credit with AGI phase-out
  - State tax (none / flat / hybrid estimate) on federal taxable income
  - Payroll and self-employment tax (Social Security, Medicare, Additional Medicare)

All amounts are Decimal and rounded to cents. The engine is pure: it reads
the intake and the bracket tables, nothing else.
"""

from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal

from taxplan.engines.brackets import (
    ADDITIONAL_MEDICARE_TAX_RATE,
    ADDITIONAL_MEDICARE_TAX_THRESHOLD,
    CHILD_TAX_CREDIT_PER_CHILD,
    CHILD_TAX_CREDIT_PHASEOUT_REDUCTION,
    CHILD_TAX_CREDIT_PHASEOUT_STEP,
    CHILD_TAX_CREDIT_PHASEOUT_THRESHOLD,
    DEFAULT_TAX_YEAR,
    FEDERAL_BRACKETS,
    FEDERAL_STANDARD_DEDUCTION,
    MEDICARE_RATE,
    SE_EARNINGS_FACTOR,
    SE_ENTITY_TYPES,
    SOCIAL_SECURITY_RATE,
    SOCIAL_SECURITY_WAGE_BASE,
)
from taxplan.engines.state_tables import (
    HYBRID_THRESHOLD,
    STATE_TAX_ESTIMATE_DISCLOSURE,
    get_state_rate,
)
from taxplan.models.baseline import (
    ZERO,
    BaselineComputation,
    BaselineTaxTotals,
    ChildTaxCreditResult,
    PayrollTaxResult,
    StateTaxResult,
)
from taxplan.models.enums import FilingStatus, StateCode, StateTaxMethod
from taxplan.models.intake import NormalizedIntake

CENTS = Decimal("0.01")


def round_cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_bracket_tax(
    income: Decimal, brackets: list[tuple[Decimal | None, Decimal]]
) -> Decimal:
    """Integrate ``income`` over ascending (upper_bound, rate) brackets.

    An upper bound of None is an open-ended top bracket.
    """
    tax = ZERO
    prev_bound = ZERO
    for upper_bound, rate in brackets:
        if income <= prev_bound:
            break
        top = income if upper_bound is None else min(income, upper_bound)
        tax += (top - prev_bound) * rate
        if upper_bound is None:
            break
        prev_bound = upper_bound
    return tax


class BaselineTaxEngine:
    """Computes baseline federal, state and payroll tax for one intake."""

    def __init__(self, tax_year: int = DEFAULT_TAX_YEAR) -> None:
        if tax_year not in FEDERAL_BRACKETS:
            raise ValueError(f"Unsupported tax year {tax_year}")
        self.tax_year = tax_year

    def compute(
        self, intake: NormalizedIntake, agi_override: Decimal | None = None
    ) -> BaselineComputation:
        """Compute baseline totals and their breakdown.

        ``agi_override`` replaces the derived AGI proxy; payroll tax is still
        computed from the intake's wages and profit.
        """
        personal = intake.personal
        business = intake.business

        # --- Income aggregation ---
        net_profit = business.net_profit if business.has_business else ZERO
        gross_income = round_cents(personal.income_excl_business + net_profit)
        if agi_override is None:
            agi = round_cents(
                max(gross_income - intake.retirement.k401_employee_contrib_ytd, ZERO)
            )
        else:
            agi = round_cents(max(agi_override, ZERO))

        # --- Federal ---
        standard_deduction = self.standard_deduction(personal.filing_status)
        taxable_income = round_cents(max(agi - standard_deduction, ZERO))
        tax_before_credits = round_cents(
            self.compute_federal_tax(taxable_income, personal.filing_status)
        )
        ctc = self.compute_child_tax_credit(
            tax_before_credits, agi, personal.children_0_17, personal.filing_status
        )

        # --- State (federal taxable income as the base proxy) ---
        state = self.compute_state_tax(taxable_income, personal.state)

        # --- Payroll ---
        payroll = self.compute_payroll_for_intake(intake)

        totals = BaselineTaxTotals.from_components(
            federal_tax=ctc.tax_after_credit,
            state_tax=state.tax,
            payroll_tax=payroll.total,
            taxable_income=taxable_income,
        )
        return BaselineComputation(
            tax_year=self.tax_year,
            totals=totals,
            gross_income=gross_income,
            agi=agi,
            standard_deduction=standard_deduction,
            federal_tax_before_credits=tax_before_credits,
            child_tax_credit=ctc,
            state=state,
            payroll=payroll,
        )

    def standard_deduction(self, filing_status: FilingStatus) -> Decimal:
        deduction = FEDERAL_STANDARD_DEDUCTION.get(self.tax_year, {}).get(filing_status)
        if deduction is None:
            raise ValueError(f"No standard deduction for {self.tax_year}/{filing_status}")
        return deduction

    def compute_federal_tax(self, taxable_income: Decimal, filing_status: FilingStatus) -> Decimal:
        """Compute federal ordinary income tax using progressive brackets."""
        brackets = FEDERAL_BRACKETS.get(self.tax_year, {}).get(filing_status)
        if not brackets:
            raise ValueError(f"No federal brackets for {self.tax_year}/{filing_status}")
        return compute_bracket_tax(taxable_income, brackets)

    def compute_child_tax_credit(
        self,
        tax_before_credits: Decimal,
        agi: Decimal,
        qualifying_children: int,
        filing_status: FilingStatus,
    ) -> ChildTaxCreditResult:
        """Apply the simplified nonrefundable Child Tax Credit.

        The credit is reduced by $50 per $1,000 (or fraction thereof) of AGI
        over the filing-status threshold. Any unused credit is lost.
        """
        max_credit = CHILD_TAX_CREDIT_PER_CHILD[self.tax_year] * max(qualifying_children, 0)
        threshold = CHILD_TAX_CREDIT_PHASEOUT_THRESHOLD[filing_status]
        excess = max(agi - threshold, ZERO)
        steps = (excess / CHILD_TAX_CREDIT_PHASEOUT_STEP).to_integral_value(
            rounding=ROUND_CEILING
        )
        available = round_cents(
            max(max_credit - steps * CHILD_TAX_CREDIT_PHASEOUT_REDUCTION, ZERO)
        )
        tax = max(tax_before_credits, ZERO)
        used = min(tax, available)
        return ChildTaxCreditResult(
            qualifying_children=qualifying_children,
            available=available,
            used=used,
            unused=available - used,
            tax_after_credit=tax - used,
        )

    def compute_state_tax(self, taxable_base: Decimal, state: StateCode) -> StateTaxResult:
        """Estimate state income tax from the per-state rate structure."""
        rate = get_state_rate(state, self.tax_year)
        base = round_cents(max(taxable_base, ZERO))
        notes: list[str] = []

        if rate.method == StateTaxMethod.NONE:
            tax = ZERO
        elif rate.method == StateTaxMethod.FLAT:
            tax = round_cents(base * rate.rate)
        else:
            below = min(base, HYBRID_THRESHOLD)
            above = max(base - HYBRID_THRESHOLD, ZERO)
            tax = round_cents(below * rate.rate + above * rate.top_rate)
            notes.append(STATE_TAX_ESTIMATE_DISCLOSURE)

        if rate.note:
            notes.append(rate.note)
        return StateTaxResult(
            state=state, method=rate.method, taxable_base=base, tax=tax, notes=notes
        )

    def compute_payroll_for_intake(self, intake: NormalizedIntake) -> PayrollTaxResult:
        business = intake.business
        se_profit = ZERO
        if business.has_business and business.entity_type in SE_ENTITY_TYPES:
            se_profit = max(business.net_profit, ZERO)
        return self.compute_payroll_tax(
            intake.personal.filing_status,
            w2_wages=intake.personal.income_excl_business,
            se_net_profit=se_profit,
        )

    def compute_payroll_tax(
        self,
        filing_status: FilingStatus,
        w2_wages: Decimal,
        se_net_profit: Decimal = ZERO,
    ) -> PayrollTaxResult:
        """Compute FICA on wages plus self-employment tax.

        W-2 wages consume the Social Security wage base first; SE earnings
        (92.35% of net profit) use whatever base remains. Medicare has no cap.
        Additional Medicare applies to wages + SE earnings over the threshold.
        """
        wages = max(w2_wages, ZERO)
        se_earnings = max(se_net_profit, ZERO) * SE_EARNINGS_FACTOR
        wage_base = SOCIAL_SECURITY_WAGE_BASE[self.tax_year]

        ss_wages = min(wages, wage_base)
        ss_se = min(se_earnings, max(wage_base - ss_wages, ZERO))

        fica_on_wages = ss_wages * SOCIAL_SECURITY_RATE + wages * MEDICARE_RATE
        se_tax = ss_se * SOCIAL_SECURITY_RATE + se_earnings * MEDICARE_RATE
        excess = max(wages + se_earnings - ADDITIONAL_MEDICARE_TAX_THRESHOLD[filing_status], ZERO)
        additional_medicare = excess * ADDITIONAL_MEDICARE_TAX_RATE

        return PayrollTaxResult(
            w2_wages=round_cents(wages),
            se_earnings=round_cents(se_earnings),
            ss_wage_base_used_by_wages=round_cents(ss_wages),
            fica_tax_on_wages=round_cents(fica_on_wages),
            self_employment_tax=round_cents(se_tax),
            additional_medicare_tax=round_cents(additional_medicare),
            total=round_cents(fica_on_wages + se_tax + additional_medicare),
            half_se_tax_deduction=round_cents(se_tax / 2),
        )


def compute_baseline(
    intake: NormalizedIntake, tax_year: int = DEFAULT_TAX_YEAR
) -> BaselineTaxTotals:
    """Baseline totals for ``intake``; see BaselineTaxEngine.compute for the breakdown."""
    return BaselineTaxEngine(tax_year).compute(intake).totals
