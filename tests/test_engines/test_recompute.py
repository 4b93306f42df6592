"""Tests for revised-totals arithmetic and re-taxing."""

from decimal import Decimal

import pytest

from taxplan.engines.baseline import compute_baseline
from taxplan.engines.recompute import (
    allocate_tax_reduction,
    reduce_taxable_income,
    retax_revised_totals,
)
from taxplan.models.impact import Range3, RevisedTaxTotals


def revised_for(baseline, income_delta, tax_delta):
    return RevisedTaxTotals(
        baseline=baseline,
        revised=baseline,
        total_tax_delta=tax_delta,
        total_taxable_income_delta=income_delta,
    )


class TestReduceTaxableIncome:
    def test_reduces(self, mid_baseline):
        assert reduce_taxable_income(mid_baseline, Decimal("-30000")).taxable_income == Decimal(
            "220000"
        )

    def test_floors_at_zero(self, mid_baseline):
        assert reduce_taxable_income(mid_baseline, Decimal("-999999")).taxable_income == 0

    def test_positive_delta_ignored(self, mid_baseline):
        assert reduce_taxable_income(mid_baseline, Decimal("500")) == mid_baseline

    def test_tax_untouched(self, mid_baseline):
        assert reduce_taxable_income(mid_baseline, Decimal("-1")).total_tax == mid_baseline.total_tax


class TestAllocateTaxReduction:
    def test_proportional_split(self, mid_baseline):
        result = allocate_tax_reduction(mid_baseline, Decimal("-6500"))
        assert result.federal_tax == Decimal("36000.00")
        assert result.state_tax == Decimal("9000.00")
        assert result.payroll_tax == Decimal("13500.00")
        assert result.total_tax == Decimal("58500.00")

    def test_reduction_capped_at_total(self, mid_baseline):
        result = allocate_tax_reduction(mid_baseline, Decimal("-1000000"))
        assert result.total_tax == 0
        assert result.taxable_income == mid_baseline.taxable_income

    def test_zero_total(self, make_totals):
        result = allocate_tax_reduction(make_totals("0", "0", "0", "1000"), Decimal("-50"))
        assert result.total_tax == 0
        assert result.taxable_income == Decimal("1000")

    def test_total_is_sum_after_rounding(self, make_totals):
        result = allocate_tax_reduction(make_totals("100", "100", "100", "0"), Decimal("-100"))
        assert result.federal_tax == Decimal("66.66")
        assert result.state_tax == Decimal("66.67")
        assert result.total_tax == Decimal("200.00")
        assert result.total_tax == result.federal_tax + result.state_tax + result.payroll_tax

    @pytest.mark.parametrize(
        "components, delta",
        [
            (("1", "1", "1"), "-1"),
            (("0.01", "0.01", "0.01"), "-0.02"),
            (("1000.00", "333.33", "20.01"), "-77.77"),
            (("5", "7", "11"), "-0.01"),
        ],
    )
    def test_new_total_matches_delta_exactly(self, make_totals, components, delta):
        totals = make_totals(*components, "0")
        result = allocate_tax_reduction(totals, Decimal(delta))
        assert result.total_tax == totals.total_tax + Decimal(delta)
        assert min(result.federal_tax, result.state_tax, result.payroll_tax) >= 0

    def test_rounding_remainder_goes_to_largest_component(self, make_totals):
        result = allocate_tax_reduction(make_totals("1", "1", "2", "0"), Decimal("-1"))
        assert result.federal_tax == Decimal("0.75")
        assert result.state_tax == Decimal("0.75")
        assert result.payroll_tax == Decimal("1.50")

    def test_payroll_takes_its_share(self, make_totals):
        result = allocate_tax_reduction(make_totals("1000", "0", "9000", "0"), Decimal("-5000"))
        assert result.federal_tax == Decimal("500.00")
        assert result.state_tax == 0
        assert result.payroll_tax == Decimal("4500.00")
        assert result.total_tax == Decimal("5000.00")


class TestRetax:
    def test_no_change_means_no_savings(self, w2_intake):
        baseline = compute_baseline(w2_intake)
        retaxed = retax_revised_totals(
            w2_intake, revised_for(baseline, Range3.zero(), Range3.zero())
        )
        assert retaxed.total_tax_savings.is_zero()
        assert retaxed.base == baseline

    def test_income_reduction_retaxed_through_brackets(self, w2_intake):
        baseline = compute_baseline(w2_intake)
        delta = Range3.of(-35000, -35000, -35000)
        retaxed = retax_revised_totals(w2_intake, revised_for(baseline, delta, Range3.zero()))
        assert retaxed.base.taxable_income == Decimal("50000.00")
        assert retaxed.base.federal_tax == Decimal("5914.00")
        assert retaxed.base.payroll_tax == baseline.payroll_tax
        assert retaxed.total_tax_savings == Range3.of(7700, 7700, 7700)

    def test_liability_delta_applied_after_retax(self, w2_intake):
        baseline = compute_baseline(w2_intake)
        retaxed = retax_revised_totals(
            w2_intake,
            revised_for(baseline, Range3.of(-35000, -35000, -35000), Range3.of(-1000, -1000, 0)),
        )
        assert retaxed.low.total_tax == Decimal("20214.00")
        assert retaxed.total_tax_savings == Range3.of(7700, 8700, 8700)

    def test_explicit_baseline_agi(self, w2_intake):
        baseline = compute_baseline(w2_intake)
        retaxed = retax_revised_totals(
            w2_intake,
            revised_for(baseline, Range3.zero(), Range3.zero()),
            baseline_agi=Decimal("65000"),
        )
        assert retaxed.base.federal_tax == Decimal("5914.00")
