"""Strategy catalog: tiers, auto-apply policy, income gates and display order.

Tier 1 strategies stack automatically when eligible (the "core" run).
Tier 2 strategies are only projected as independent what-if scenarios and
may carry a minimum baseline taxable income gate.
"""

from collections.abc import Iterable, Iterator
from decimal import Decimal
from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

from taxplan.models.enums import StrategyId
from taxplan.models.impact import StrategyImpactEstimate


class CombineMode(StrEnum):
    STACK = "stack"
    SOLO = "solo"


class StrategyMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: StrategyId
    tier: int
    auto_apply_when_eligible: bool
    combine_mode: CombineMode
    min_baseline_taxable_income: Decimal | None = None
    label: str
    summary: str
    display_order: int


DEFAULT_STRATEGIES: tuple[StrategyMeta, ...] = (
    StrategyMeta(
        id=StrategyId.AUGUSTA_LOOPHOLE,
        tier=1,
        auto_apply_when_eligible=True,
        combine_mode=CombineMode.STACK,
        label="Augusta Rule",
        summary=(
            "Rent your home to your business for legitimate business use, allowing you "
            "to deduct rental expenses and reduce taxable income."
        ),
        display_order=10,
    ),
    StrategyMeta(
        id=StrategyId.MEDICAL_REIMBURSEMENT,
        tier=1,
        auto_apply_when_eligible=True,
        combine_mode=CombineMode.STACK,
        label="Medical Reimbursement Plan",
        summary=(
            "Set up a plan where your business reimburses you for medical expenses, "
            "reducing your taxable income while covering healthcare costs."
        ),
        display_order=20,
    ),
    StrategyMeta(
        id=StrategyId.K401,
        tier=1,
        auto_apply_when_eligible=True,
        combine_mode=CombineMode.STACK,
        label="401(k) Employee Deferral",
        summary=(
            "Contribute pre-tax money to your 401(k) retirement plan, reducing your "
            "taxable income now while saving for retirement."
        ),
        display_order=30,
    ),
    StrategyMeta(
        id=StrategyId.HIRING_CHILDREN,
        tier=1,
        auto_apply_when_eligible=True,
        combine_mode=CombineMode.STACK,
        label="Hiring Children",
        summary=(
            "Hire your children to work in your business, shifting income to lower "
            "tax brackets."
        ),
        display_order=40,
    ),
    StrategyMeta(
        id=StrategyId.CASH_BALANCE_PLAN,
        tier=2,
        auto_apply_when_eligible=False,
        combine_mode=CombineMode.SOLO,
        label="Cash Balance Plan",
        summary=(
            "Set up a retirement plan that allows larger contributions than a 401(k), "
            "reducing taxable income significantly for business owners."
        ),
        display_order=50,
    ),
    StrategyMeta(
        id=StrategyId.S_CORP_CONVERSION,
        tier=1,
        auto_apply_when_eligible=True,
        combine_mode=CombineMode.STACK,
        label="S-Corp Conversion",
        summary=(
            "Pay yourself a reasonable salary through an S corporation and take the "
            "rest as distributions to reduce self-employment tax."
        ),
        display_order=60,
    ),
    StrategyMeta(
        id=StrategyId.SHORT_TERM_RENTAL,
        tier=2,
        auto_apply_when_eligible=False,
        combine_mode=CombineMode.SOLO,
        label="Short-Term Rental + Cost Segregation",
        summary=(
            "Use cost segregation on rental property to accelerate depreciation "
            "deductions, reducing taxable income in early years."
        ),
        display_order=80,
    ),
    StrategyMeta(
        id=StrategyId.LEVERAGED_CHARITABLE,
        tier=2,
        auto_apply_when_eligible=False,
        combine_mode=CombineMode.SOLO,
        min_baseline_taxable_income=Decimal("833000"),
        label="Leveraged Charitable",
        summary="Charitable giving structures that multiply the deduction per dollar invested.",
        display_order=90,
    ),
    StrategyMeta(
        id=StrategyId.RTU_PROGRAM,
        tier=2,
        auto_apply_when_eligible=False,
        combine_mode=CombineMode.SOLO,
        min_baseline_taxable_income=Decimal("350000"),
        label="RTU Program",
        summary="Participate in a program that generates a large first-year deduction.",
        display_order=95,
    ),
    StrategyMeta(
        id=StrategyId.FILM_CREDITS,
        tier=2,
        auto_apply_when_eligible=False,
        combine_mode=CombineMode.SOLO,
        min_baseline_taxable_income=Decimal("500000"),
        label="Film Equity",
        summary="Invest in qualified film production to deduct a multiple of the investment.",
        display_order=100,
    ),
)


class StrategyCatalog:
    """Immutable lookup of strategy metadata."""

    def __init__(self, strategies: Iterable[StrategyMeta]) -> None:
        ordered = sorted(strategies, key=lambda m: (m.display_order, m.id.value))
        self._by_id = MappingProxyType({m.id: m for m in ordered})

    def __contains__(self, strategy_id: object) -> bool:
        return strategy_id in self._by_id

    def __iter__(self) -> Iterator[StrategyMeta]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, strategy_id: StrategyId) -> StrategyMeta | None:
        return self._by_id.get(strategy_id)

    def label(self, strategy_id: StrategyId) -> str:
        meta = self._by_id.get(strategy_id)
        return meta.label if meta else str(strategy_id)

    def min_baseline_taxable_income(self, strategy_id: StrategyId) -> Decimal | None:
        meta = self._by_id.get(strategy_id)
        return meta.min_baseline_taxable_income if meta else None

    def auto_apply_ids(self) -> list[StrategyId]:
        return [m.id for m in self if m.auto_apply_when_eligible]

    def order(self, strategy_ids: Iterable[StrategyId]) -> list[StrategyId]:
        """Catalog display order first, then uncatalogued ids lexicographically."""
        wanted = set(strategy_ids)
        known = [m.id for m in self if m.id in wanted]
        rest = sorted((s for s in wanted if s not in self._by_id), key=str)
        return known + rest


def default_catalog() -> StrategyCatalog:
    return StrategyCatalog(DEFAULT_STRATEGIES)


def sort_by_impact_for_display(
    impacts: Iterable[StrategyImpactEstimate], catalog: StrategyCatalog
) -> list[StrategyImpactEstimate]:
    """Tier 2 impacts in ascending order of estimated size.

    Scored by |tax liability delta base| when non-zero, else
    |taxable income delta base|. Display only; application order is unaffected.
    """

    def score(impact: StrategyImpactEstimate) -> Decimal:
        tax = impact.tax_liability_delta.base if impact.tax_liability_delta else Decimal("0")
        income = impact.taxable_income_delta.base if impact.taxable_income_delta else Decimal("0")
        return abs(tax if tax != 0 else income)

    tier2 = []
    for impact in impacts:
        meta = catalog.get(impact.strategy_id)
        if meta is not None and meta.tier == 2:
            tier2.append(impact)
    return sorted(tier2, key=score)
