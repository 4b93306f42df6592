"""Impact application engine.

Applies per-strategy impact estimates to the baseline in a fixed order
(catalog display order, then uncatalogued ids lexicographically). Each
strategy moves through:

  1. not selected      -> NOT_APPLIED_POTENTIAL
  2. eligibility gate  -> ELIGIBLE proceeds; POTENTIAL only with apply_potential
  3. income gate       -> checked against the ORIGINAL baseline taxable income
  4. taxable income    -> clamped against the RUNNING revised taxable income
  5. tax liability     -> clamped against the RUNNING revised total tax
  6. APPLIED

Because later strategies see a smaller running base, application is
sequential within a run. Runs themselves share nothing, so the core run and
the what-if runs are independent.
"""

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import Executor

from taxplan.engines.brackets import DEFAULT_TAX_YEAR
from taxplan.engines.catalog import StrategyCatalog, default_catalog
from taxplan.engines.impact_models import ImpactModelRegistry, default_registry
from taxplan.engines.recompute import (
    allocate_tax_reduction,
    reduce_taxable_income,
    retax_revised_totals,
)
from taxplan.models.baseline import ZERO, BaselineTaxTotals
from taxplan.models.enums import AssumptionCategory, EligibilityStatus, ImpactFlag, StrategyId
from taxplan.models.impact import (
    CoreScenario,
    ImpactAssumption,
    ImpactEngineOutput,
    ImpactRun,
    ImpactStrategyEvaluation,
    Range3,
    RetaxedTotals,
    RevisedTaxTotals,
    StrategyImpactEstimate,
    WhatIfScenario,
)
from taxplan.models.intake import NormalizedIntake
from taxplan.models.rules import EvaluatedStrategy

logger = logging.getLogger(__name__)

Evaluation = ImpactStrategyEvaluation | EvaluatedStrategy


def _passes_status_gate(status: EligibilityStatus, apply_potential: bool) -> bool:
    if status == EligibilityStatus.ELIGIBLE:
        return True
    if status == EligibilityStatus.POTENTIAL:
        return apply_potential
    return False


def _difference(a: Range3, b: Range3) -> Range3:
    return Range3(low=a.low - b.low, base=a.base - b.base, high=a.high - b.high)


class ImpactEngine:
    """Orders, gates, clamps and stacks strategy impacts."""

    def __init__(
        self,
        catalog: StrategyCatalog | None = None,
        registry: ImpactModelRegistry | None = None,
        tax_year: int = DEFAULT_TAX_YEAR,
    ) -> None:
        self.catalog = catalog or default_catalog()
        self.registry = registry or default_registry(tax_year)
        self.tax_year = tax_year

    # ------------------------------------------------------------------
    # Single application pass
    # ------------------------------------------------------------------

    def apply(
        self,
        intake: NormalizedIntake,
        baseline: BaselineTaxTotals,
        evaluations: Sequence[Evaluation],
        apply_potential: bool = False,
        strategy_ids_to_apply: Iterable[StrategyId] | None = None,
    ) -> ImpactRun:
        """Apply one set of strategies to the baseline.

        ``strategy_ids_to_apply`` defaults to every evaluated strategy.
        Impacts are returned in the order of ``evaluations``.
        """
        if strategy_ids_to_apply is None:
            selected = {e.strategy_id for e in evaluations}
        else:
            selected = set(strategy_ids_to_apply)

        impacts: dict[StrategyId, StrategyImpactEstimate] = {
            e.strategy_id: self.registry.estimate(e.strategy_id, e.status, intake, baseline)
            for e in evaluations
        }

        revised = BaselineTaxTotals.from_components(
            federal_tax=max(baseline.federal_tax, ZERO),
            state_tax=max(baseline.state_tax, ZERO),
            payroll_tax=max(baseline.payroll_tax, ZERO),
            taxable_income=max(baseline.taxable_income, ZERO),
        )
        income_delta_total = Range3.zero()
        tax_delta_total = Range3.zero()

        for strategy_id in self.catalog.order(impacts):
            impact = impacts[strategy_id]

            if strategy_id not in selected:
                impacts[strategy_id] = impact.with_flag(ImpactFlag.NOT_APPLIED_POTENTIAL)
                continue

            if not _passes_status_gate(impact.status, apply_potential):
                flag = (
                    ImpactFlag.NOT_APPLIED_POTENTIAL
                    if impact.status == EligibilityStatus.POTENTIAL
                    else ImpactFlag.NOT_APPLIED_NOT_ELIGIBLE
                )
                logger.debug("%s not applied: status %s", strategy_id, impact.status)
                impacts[strategy_id] = impact.with_flag(flag)
                continue

            gate = self.catalog.min_baseline_taxable_income(strategy_id)
            if gate is not None and baseline.taxable_income < gate:
                logger.debug(
                    "%s not applied: baseline taxable income %s below gate %s",
                    strategy_id,
                    baseline.taxable_income,
                    gate,
                )
                impacts[strategy_id] = (
                    impact.with_flag(ImpactFlag.NOT_APPLIED_POTENTIAL)
                    .requiring_confirmation()
                    .with_assumption(
                        ImpactAssumption(
                            id="INCOME_GATE_NOT_MET", category=AssumptionCategory.CAP, value=gate
                        )
                    )
                )
                continue

            if impact.taxable_income_delta is not None:
                clamped = impact.taxable_income_delta.clamp_reduction(revised.taxable_income)
                income_delta_total = income_delta_total + clamped
                revised = reduce_taxable_income(revised, clamped.base)
                if clamped != impact.taxable_income_delta:
                    impact = impact.with_flag(ImpactFlag.CAPPED_BY_TAXABLE_INCOME)
                impact = impact.with_taxable_income_delta(clamped)

            if impact.tax_liability_delta is not None:
                clamped = impact.tax_liability_delta.clamp_reduction(revised.total_tax)
                tax_delta_total = tax_delta_total + clamped
                revised = allocate_tax_reduction(revised, clamped.base)
                if clamped != impact.tax_liability_delta:
                    impact = impact.with_flag(ImpactFlag.CAPPED_BY_TAX_LIABILITY)
                impact = impact.with_tax_liability_delta(clamped)

            logger.debug("%s applied", strategy_id)
            impacts[strategy_id] = impact.with_flag(ImpactFlag.APPLIED)

        return ImpactRun(
            impacts=[impacts[e.strategy_id] for e in evaluations],
            revised_totals=RevisedTaxTotals(
                baseline=baseline,
                revised=revised,
                total_tax_delta=tax_delta_total,
                total_taxable_income_delta=income_delta_total,
            ),
        )

    # ------------------------------------------------------------------
    # Core + what-if
    # ------------------------------------------------------------------

    def run(
        self,
        intake: NormalizedIntake,
        baseline: BaselineTaxTotals,
        evaluations: Sequence[Evaluation],
        apply_potential: bool = False,
        executor: Executor | None = None,
    ) -> ImpactEngineOutput:
        """Core run over auto-apply strategies plus one what-if per other strategy.

        What-if runs are independent; pass an ``executor`` (e.g. a
        ThreadPoolExecutor) to compute them concurrently. Results are the
        same either way.
        """
        evaluations = list(evaluations)
        evaluated_ids = [e.strategy_id for e in evaluations]
        core_ids = [s for s in self.catalog.auto_apply_ids() if s in evaluated_ids]

        core = self.apply(intake, baseline, evaluations, apply_potential, core_ids)
        core_retaxed = retax_revised_totals(intake, core.revised_totals, self.tax_year)

        what_if_ids = [s for s in self.catalog.order(evaluated_ids) if s not in core_ids]

        def project(strategy_id: StrategyId) -> WhatIfScenario:
            return self._what_if(
                intake, baseline, evaluations, apply_potential, core, core_retaxed,
                core_ids, strategy_id,
            )

        if executor is None:
            scenarios = [project(s) for s in what_if_ids]
        else:
            scenarios = list(executor.map(project, what_if_ids))

        return ImpactEngineOutput(
            impacts=core.impacts,
            revised_totals=core.revised_totals,
            core=CoreScenario(
                applied_strategy_ids=core.applied_strategy_ids,
                revised_totals=core.revised_totals,
                retaxed=core_retaxed,
            ),
            what_if=scenarios,
        )

    def _what_if(
        self,
        intake: NormalizedIntake,
        baseline: BaselineTaxTotals,
        evaluations: list[Evaluation],
        apply_potential: bool,
        core: ImpactRun,
        core_retaxed: RetaxedTotals,
        core_ids: list[StrategyId],
        strategy_id: StrategyId,
    ) -> WhatIfScenario:
        solo = self.apply(intake, baseline, evaluations, apply_potential, [*core_ids, strategy_id])
        retaxed = retax_revised_totals(intake, solo.revised_totals, self.tax_year)
        impact = solo.impact_for(strategy_id)
        return WhatIfScenario(
            strategy_id=strategy_id,
            applied=impact.has_flag(ImpactFlag.APPLIED),
            impact=impact,
            revised_totals=solo.revised_totals,
            retaxed=retaxed,
            marginal_tax_delta=_difference(
                core.revised_totals.total_tax_delta, solo.revised_totals.total_tax_delta
            ),
            marginal_taxable_income_delta=_difference(
                core.revised_totals.total_taxable_income_delta,
                solo.revised_totals.total_taxable_income_delta,
            ),
            marginal_retaxed_savings=_difference(
                retaxed.total_tax_savings, core_retaxed.total_tax_savings
            ),
        )


def apply(
    intake: NormalizedIntake,
    baseline: BaselineTaxTotals,
    evaluations: Sequence[Evaluation],
    apply_potential: bool = False,
    strategy_ids_to_apply: Iterable[StrategyId] | None = None,
) -> ImpactRun:
    """Apply with the default catalog and registry."""
    return ImpactEngine().apply(
        intake, baseline, evaluations, apply_potential, strategy_ids_to_apply
    )
