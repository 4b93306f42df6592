"""Tests for the impact application engine (single application pass)."""

from decimal import Decimal

import pytest

from taxplan.engines.evaluator import evaluate
from taxplan.engines.impact import ImpactEngine, apply
from taxplan.engines.impact_models import ImpactModelRegistry, K401DeferralModel
from taxplan.models.enums import (
    EligibilityStatus,
    EntityType,
    FilingStatus,
    ImpactFlag,
    StrategyId,
)
from taxplan.models.impact import ImpactStrategyEvaluation, Range3

ELIGIBLE = EligibilityStatus.ELIGIBLE
POTENTIAL = EligibilityStatus.POTENTIAL
NOT_ELIGIBLE = EligibilityStatus.NOT_ELIGIBLE

GATED = (StrategyId.RTU_PROGRAM, StrategyId.LEVERAGED_CHARITABLE, StrategyId.FILM_CREDITS)


def evals(*pairs):
    return [ImpactStrategyEvaluation(strategy_id=sid, status=status) for sid, status in pairs]


def all_eligible():
    return evals(*((sid, ELIGIBLE) for sid in StrategyId))


@pytest.fixture
def engine() -> ImpactEngine:
    return ImpactEngine()


@pytest.fixture
def family_intake(make_intake):
    return make_intake(
        filing_status=FilingStatus.MFJ,
        children=2,
        income="200000",
        has_business=True,
        entity_type=EntityType.SOLE_PROP,
        employees=1,
        net_profit="150000",
    )


class TestScenarios:
    def test_income_gates_block_at_250k(self, engine, family_intake, mid_baseline):
        run = engine.apply(family_intake, mid_baseline, all_eligible())
        for sid in GATED:
            impact = run.impact_for(sid)
            assert not impact.has_flag(ImpactFlag.APPLIED)
            assert impact.has_flag(ImpactFlag.NOT_APPLIED_POTENTIAL)
            assert impact.needs_confirmation
        assert run.impact_for(StrategyId.RTU_PROGRAM).assumption(
            "INCOME_GATE_NOT_MET"
        ).value == Decimal("350000")
        assert run.revised_totals.revised.taxable_income >= 0
        assert run.revised_totals.revised.total_tax >= 0

    def test_everything_applies_at_1_5m(self, engine, family_intake, high_baseline):
        run = engine.apply(family_intake, high_baseline, all_eligible())
        for impact in run.impacts:
            assert impact.has_flag(ImpactFlag.APPLIED), impact.strategy_id
        assert set(run.applied_strategy_ids) == set(StrategyId)
        assert run.revised_totals.revised.taxable_income >= 0
        assert run.revised_totals.revised.total_tax >= 0


class TestGates:
    @pytest.mark.parametrize("status", list(EligibilityStatus))
    @pytest.mark.parametrize("apply_potential", [True, False])
    def test_gate_determinism(self, engine, family_intake, make_totals, status, apply_potential):
        baseline = make_totals("80000", "20000", "20000", "349999.99")
        run = engine.apply(
            family_intake, baseline, evals((StrategyId.RTU_PROGRAM, status)), apply_potential
        )
        assert not run.impact_for(StrategyId.RTU_PROGRAM).has_flag(ImpactFlag.APPLIED)

    def test_gate_met_exactly(self, engine, family_intake, make_totals):
        baseline = make_totals("80000", "20000", "20000", "350000")
        run = engine.apply(family_intake, baseline, evals((StrategyId.RTU_PROGRAM, ELIGIBLE)))
        assert run.impact_for(StrategyId.RTU_PROGRAM).has_flag(ImpactFlag.APPLIED)

    def test_not_eligible_never_applies(self, engine, family_intake, mid_baseline):
        run = engine.apply(
            family_intake, mid_baseline, evals((StrategyId.K401, NOT_ELIGIBLE)), apply_potential=True
        )
        impact = run.impact_for(StrategyId.K401)
        assert impact.flags == frozenset({ImpactFlag.NOT_APPLIED_NOT_ELIGIBLE})
        assert run.revised_totals.revised == mid_baseline

    def test_potential_needs_toggle(self, engine, family_intake, mid_baseline):
        evaluations = evals((StrategyId.K401, POTENTIAL))
        off = engine.apply(family_intake, mid_baseline, evaluations, apply_potential=False)
        on = engine.apply(family_intake, mid_baseline, evaluations, apply_potential=True)
        assert off.impact_for(StrategyId.K401).has_flag(ImpactFlag.NOT_APPLIED_POTENTIAL)
        assert on.impact_for(StrategyId.K401).has_flag(ImpactFlag.APPLIED)

    def test_apply_potential_never_raises_taxable_income(self, engine, family_intake, mid_baseline):
        evaluations = evals(
            (StrategyId.AUGUSTA_LOOPHOLE, POTENTIAL),
            (StrategyId.K401, ELIGIBLE),
            (StrategyId.CASH_BALANCE_PLAN, ELIGIBLE),
        )
        off = engine.apply(family_intake, mid_baseline, evaluations, apply_potential=False)
        on = engine.apply(family_intake, mid_baseline, evaluations, apply_potential=True)
        assert (
            off.revised_totals.revised.taxable_income >= on.revised_totals.revised.taxable_income
        )

    def test_unselected_marked_potential(self, engine, family_intake, mid_baseline):
        run = engine.apply(
            family_intake,
            mid_baseline,
            evals((StrategyId.K401, ELIGIBLE), (StrategyId.AUGUSTA_LOOPHOLE, ELIGIBLE)),
            strategy_ids_to_apply=[StrategyId.K401],
        )
        assert run.impact_for(StrategyId.AUGUSTA_LOOPHOLE).flags == frozenset(
            {ImpactFlag.NOT_APPLIED_POTENTIAL}
        )
        assert run.applied_strategy_ids == [StrategyId.K401]


class TestStacking:
    def test_taxable_income_deltas_stack(self, engine, family_intake, mid_baseline):
        run = engine.apply(
            family_intake,
            mid_baseline,
            evals((StrategyId.AUGUSTA_LOOPHOLE, ELIGIBLE), (StrategyId.CASH_BALANCE_PLAN, ELIGIBLE)),
        )
        totals = run.revised_totals
        assert totals.total_taxable_income_delta == Range3.of(-163300, -109500, -50000)
        assert totals.revised.taxable_income == Decimal("140500")
        # taxable-income reductions alone leave the running tax untouched
        assert totals.revised.total_tax == mid_baseline.total_tax
        assert totals.total_tax_delta.is_zero()

    def test_running_clamp_flags_later_strategies(self, engine, family_intake, make_totals):
        baseline = make_totals("3000", "0", "2000", "110000")
        run = engine.apply(
            family_intake,
            baseline,
            evals((StrategyId.CASH_BALANCE_PLAN, ELIGIBLE), (StrategyId.SHORT_TERM_RENTAL, ELIGIBLE)),
        )
        cash = run.impact_for(StrategyId.CASH_BALANCE_PLAN)
        rental = run.impact_for(StrategyId.SHORT_TERM_RENTAL)
        assert cash.taxable_income_delta == Range3.of(-110000, -100000, -50000)
        assert rental.taxable_income_delta == Range3.of(-10000, -10000, -10000)
        assert rental.has_flag(ImpactFlag.CAPPED_BY_TAXABLE_INCOME)
        assert rental.has_flag(ImpactFlag.APPLIED)
        assert run.revised_totals.revised.taxable_income == 0

    def test_liability_allocated_across_components(self, engine, owner_intake, mid_baseline):
        run = engine.apply(
            owner_intake, mid_baseline, evals((StrategyId.S_CORP_CONVERSION, ELIGIBLE))
        )
        revised = run.revised_totals.revised
        assert run.revised_totals.total_tax_delta.base == Decimal("-4827.90")
        assert revised.federal_tax == Decimal("37028.98")
        assert revised.state_tax == Decimal("9257.25")
        assert revised.payroll_tax == Decimal("13885.87")
        assert revised.total_tax == Decimal("60172.10")
        assert revised.total_tax == revised.federal_tax + revised.state_tax + revised.payroll_tax
        assert revised.taxable_income == mid_baseline.taxable_income

    def test_liability_clamped_against_running_total(self, engine, owner_intake, make_totals):
        baseline = make_totals("1000", "500", "500", "300000")
        run = engine.apply(
            owner_intake, baseline, evals((StrategyId.S_CORP_CONVERSION, ELIGIBLE))
        )
        assert run.revised_totals.revised.total_tax == 0
        assert run.impact_for(StrategyId.S_CORP_CONVERSION).has_flag(
            ImpactFlag.CAPPED_BY_TAX_LIABILITY
        )

    def test_monotonic_in_extra_strategy(self, engine, family_intake, mid_baseline):
        base_set = [StrategyId.AUGUSTA_LOOPHOLE, StrategyId.K401]
        evaluations = all_eligible()
        for extra in (
            StrategyId.MEDICAL_REIMBURSEMENT,
            StrategyId.HIRING_CHILDREN,
            StrategyId.S_CORP_CONVERSION,
        ):
            without = engine.apply(family_intake, mid_baseline, evaluations, False, base_set)
            with_extra = engine.apply(
                family_intake, mid_baseline, evaluations, False, [*base_set, extra]
            )
            a = with_extra.revised_totals.revised
            b = without.revised_totals.revised
            assert a.total_tax <= b.total_tax
            assert a.taxable_income <= b.taxable_income

    def test_already_in_use_applies_zero(self, engine, make_intake, mid_baseline):
        intake = make_intake(income="100000", in_use=(StrategyId.K401,))
        run = engine.apply(intake, mid_baseline, evals((StrategyId.K401, ELIGIBLE)))
        impact = run.impact_for(StrategyId.K401)
        assert impact.has_flag(ImpactFlag.ALREADY_IN_USE)
        assert impact.has_flag(ImpactFlag.APPLIED)
        assert impact.taxable_income_delta == Range3.zero()
        assert run.revised_totals.revised.taxable_income == mid_baseline.taxable_income


class TestOrdering:
    def test_impacts_follow_evaluation_order(self, engine, family_intake, mid_baseline):
        evaluations = list(reversed(all_eligible()))
        run = engine.apply(family_intake, mid_baseline, evaluations)
        assert [i.strategy_id for i in run.impacts] == [e.strategy_id for e in evaluations]

    def test_application_order_decides_who_is_capped(self, engine, family_intake, make_totals):
        baseline = make_totals("3000", "0", "2000", "265000")
        evaluations = evals(
            (StrategyId.SHORT_TERM_RENTAL, ELIGIBLE), (StrategyId.AUGUSTA_LOOPHOLE, ELIGIBLE)
        )
        run = engine.apply(family_intake, baseline, evaluations)
        # augusta sorts first, so the rental absorbs the clamp
        assert not run.impact_for(StrategyId.AUGUSTA_LOOPHOLE).has_flag(
            ImpactFlag.CAPPED_BY_TAXABLE_INCOME
        )
        assert run.impact_for(StrategyId.SHORT_TERM_RENTAL).has_flag(
            ImpactFlag.CAPPED_BY_TAXABLE_INCOME
        )

    def test_custom_registry(self, family_intake, mid_baseline):
        engine = ImpactEngine(registry=ImpactModelRegistry({StrategyId.K401: K401DeferralModel()}))
        run = engine.apply(
            family_intake,
            mid_baseline,
            evals((StrategyId.K401, ELIGIBLE), (StrategyId.FILM_CREDITS, ELIGIBLE)),
        )
        film = run.impact_for(StrategyId.FILM_CREDITS)
        assert film.taxable_income_delta.is_zero()
        assert film.needs_confirmation


class TestModuleFunction:
    def test_apply_uses_defaults(self, family_intake, mid_baseline):
        run = apply(family_intake, mid_baseline, evals((StrategyId.K401, ELIGIBLE)))
        assert run.applied_strategy_ids == [StrategyId.K401]


class TestEvaluationAdapter:
    def test_from_evaluated(self, rule_table):
        [evaluated] = evaluate({}, rule_table, [StrategyId.K401])
        adapted = ImpactStrategyEvaluation.from_evaluated(evaluated)
        assert adapted.status == POTENTIAL
        assert "retirement.k401_employee_contrib_ytd" in adapted.missing_fields
        assert all(r.code == "MISSING_REQUIRED" for r in adapted.reasons)
