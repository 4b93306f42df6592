"""Tests for the strategy catalog."""

from decimal import Decimal

from taxplan.engines.catalog import (
    CombineMode,
    StrategyCatalog,
    StrategyMeta,
    default_catalog,
    sort_by_impact_for_display,
)
from taxplan.models.enums import EligibilityStatus, ImpactModelKind, StrategyId
from taxplan.models.impact import Range3, StrategyImpactEstimate


def estimate(strategy_id, income=None, tax=None):
    return StrategyImpactEstimate(
        strategy_id=strategy_id,
        status=EligibilityStatus.ELIGIBLE,
        model=ImpactModelKind.DEDUCTION_RANGE,
        taxable_income_delta=Range3.of(*income) if income else None,
        tax_liability_delta=Range3.of(*tax) if tax else None,
    )


class TestDefaultCatalog:
    def test_covers_every_strategy(self):
        catalog = default_catalog()
        assert len(catalog) == len(StrategyId)
        for sid in StrategyId:
            assert sid in catalog

    def test_income_gates(self):
        catalog = default_catalog()
        assert catalog.min_baseline_taxable_income(StrategyId.RTU_PROGRAM) == Decimal("350000")
        assert catalog.min_baseline_taxable_income(StrategyId.LEVERAGED_CHARITABLE) == Decimal(
            "833000"
        )
        assert catalog.min_baseline_taxable_income(StrategyId.FILM_CREDITS) == Decimal("500000")
        assert catalog.min_baseline_taxable_income(StrategyId.K401) is None

    def test_auto_apply_ids_in_display_order(self):
        assert default_catalog().auto_apply_ids() == [
            StrategyId.AUGUSTA_LOOPHOLE,
            StrategyId.MEDICAL_REIMBURSEMENT,
            StrategyId.K401,
            StrategyId.HIRING_CHILDREN,
            StrategyId.S_CORP_CONVERSION,
        ]

    def test_tier_two_never_auto_applies(self):
        for meta in default_catalog():
            if meta.tier == 2:
                assert not meta.auto_apply_when_eligible
                assert meta.combine_mode == CombineMode.SOLO

    def test_label_falls_back_to_id(self):
        catalog = StrategyCatalog([])
        assert catalog.label(StrategyId.K401) == "k401"


class TestOrdering:
    def test_display_order(self):
        order = default_catalog().order(
            [StrategyId.FILM_CREDITS, StrategyId.K401, StrategyId.AUGUSTA_LOOPHOLE]
        )
        assert order == [StrategyId.AUGUSTA_LOOPHOLE, StrategyId.K401, StrategyId.FILM_CREDITS]

    def test_uncatalogued_ids_sorted_last(self):
        catalog = StrategyCatalog([
            StrategyMeta(
                id=StrategyId.RTU_PROGRAM,
                tier=2,
                auto_apply_when_eligible=False,
                combine_mode=CombineMode.SOLO,
                label="RTU",
                summary="",
                display_order=1,
            )
        ])
        order = catalog.order([StrategyId.SHORT_TERM_RENTAL, StrategyId.K401, StrategyId.RTU_PROGRAM])
        assert order == [StrategyId.RTU_PROGRAM, StrategyId.K401, StrategyId.SHORT_TERM_RENTAL]

    def test_ties_broken_by_id(self):
        def meta(sid):
            return StrategyMeta(
                id=sid,
                tier=1,
                auto_apply_when_eligible=True,
                combine_mode=CombineMode.STACK,
                label=sid.value,
                summary="",
                display_order=5,
            )

        catalog = StrategyCatalog([meta(StrategyId.K401), meta(StrategyId.AUGUSTA_LOOPHOLE)])
        assert catalog.order([StrategyId.K401, StrategyId.AUGUSTA_LOOPHOLE]) == [
            StrategyId.AUGUSTA_LOOPHOLE,
            StrategyId.K401,
        ]


class TestDisplaySort:
    def test_tier_two_ascending_by_size(self):
        impacts = [
            estimate(StrategyId.K401, income=(0, -10, -20)),
            estimate(StrategyId.FILM_CREDITS, income=(-450000, -500000, -520000)),
            estimate(StrategyId.CASH_BALANCE_PLAN, income=(-50000, -100000, -150000)),
            estimate(StrategyId.SHORT_TERM_RENTAL, income=(-180000, -220000, -260000)),
        ]
        ordered = sort_by_impact_for_display(impacts, default_catalog())
        assert [i.strategy_id for i in ordered] == [
            StrategyId.CASH_BALANCE_PLAN,
            StrategyId.SHORT_TERM_RENTAL,
            StrategyId.FILM_CREDITS,
        ]

    def test_tax_delta_takes_precedence(self):
        impacts = [
            estimate(StrategyId.RTU_PROGRAM, income=(0, -350000, -350000), tax=(-10, -10, -10)),
            estimate(StrategyId.CASH_BALANCE_PLAN, income=(-50000, -100000, -150000)),
        ]
        ordered = sort_by_impact_for_display(impacts, default_catalog())
        assert ordered[0].strategy_id == StrategyId.RTU_PROGRAM
