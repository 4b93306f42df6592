"""Revised-totals arithmetic and re-taxing.

The application engine moves taxable income and total tax independently:
a taxable-income reduction does not by itself change the running tax. The
re-tax projection closes that gap by pushing the aggregate taxable-income
delta back through the bracket, credit and state math.
"""

from decimal import Decimal

from taxplan.engines.baseline import BaselineTaxEngine, round_cents
from taxplan.engines.brackets import DEFAULT_TAX_YEAR
from taxplan.models.baseline import ZERO, BaselineTaxTotals
from taxplan.models.impact import Range3, RetaxedTotals, RevisedTaxTotals
from taxplan.models.intake import NormalizedIntake


def reduce_taxable_income(totals: BaselineTaxTotals, delta: Decimal) -> BaselineTaxTotals:
    """Apply a (negative) taxable-income delta, never going below zero."""
    before = max(totals.taxable_income, ZERO)
    capped = min(ZERO, max(delta, -before))
    return totals.model_copy(update={"taxable_income": before + capped})


def allocate_tax_reduction(totals: BaselineTaxTotals, delta: Decimal) -> BaselineTaxTotals:
    """Apply a (negative) tax-liability delta across the tax components.

    The reduction is capped at the current total and split by each
    component's share of total tax. Payroll tax takes its share too, so a
    credit against a mostly-payroll liability lowers the payroll line; the
    total stays equal to the sum of the components. Any cent left over from
    rounding goes to the largest component, so the new total is exactly the
    old total plus the capped delta.
    """
    total_before = max(totals.total_tax, ZERO)
    if total_before <= 0:
        return BaselineTaxTotals.from_components(ZERO, ZERO, ZERO, totals.taxable_income)

    capped = min(ZERO, max(delta, -total_before))

    components = [totals.federal_tax, totals.state_tax, totals.payroll_tax]
    reduced = [
        max(round_cents(c + capped * (max(c, ZERO) / total_before)), ZERO) for c in components
    ]
    remainder = round_cents(total_before + capped) - sum(reduced)
    if remainder:
        largest = components.index(max(components))
        reduced[largest] += remainder

    federal_tax, state_tax, payroll_tax = reduced
    return BaselineTaxTotals.from_components(
        federal_tax=federal_tax,
        state_tax=state_tax,
        payroll_tax=payroll_tax,
        taxable_income=totals.taxable_income,
    )


def retax_revised_totals(
    intake: NormalizedIntake,
    revised_totals: RevisedTaxTotals,
    tax_year: int = DEFAULT_TAX_YEAR,
    baseline_agi: Decimal | None = None,
) -> RetaxedTotals:
    """Re-run federal (with CTC phase-out) and state tax for each delta scenario.

    The taxable-income delta is applied to AGI. Without ``baseline_agi`` the
    AGI is approximated as baseline taxable income plus the standard deduction.
    Payroll tax stays at baseline; tax-liability deltas are then applied on
    top of the re-taxed figures.
    """
    engine = BaselineTaxEngine(tax_year)
    baseline = revised_totals.baseline
    if baseline_agi is None:
        baseline_agi = baseline.taxable_income + engine.standard_deduction(
            intake.personal.filing_status
        )

    scenarios: list[BaselineTaxTotals] = []
    for income_delta, tax_delta in zip(
        revised_totals.total_taxable_income_delta.values(),
        revised_totals.total_tax_delta.values(),
    ):
        computed = engine.compute(intake, agi_override=baseline_agi + income_delta).totals
        retaxed = BaselineTaxTotals.from_components(
            federal_tax=computed.federal_tax,
            state_tax=computed.state_tax,
            payroll_tax=baseline.payroll_tax,
            taxable_income=computed.taxable_income,
        )
        scenarios.append(allocate_tax_reduction(retaxed, tax_delta))

    low, base, high = scenarios
    return RetaxedTotals(
        low=low,
        base=base,
        high=high,
        total_tax_savings=Range3.of(*(baseline.total_tax - s.total_tax for s in scenarios)),
    )
