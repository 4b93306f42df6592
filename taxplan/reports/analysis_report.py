"""Strategy analysis report generator."""

from decimal import Decimal
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from taxplan.engines.catalog import StrategyCatalog, default_catalog, sort_by_impact_for_display
from taxplan.models.baseline import BaselineComputation
from taxplan.models.impact import ImpactEngineOutput, Range3, WhatIfScenario
from taxplan.models.rules import EvaluatedStrategy

TEMPLATE_DIR = Path(__file__).parent / "templates"


def format_money(value: Decimal) -> str:
    if value < 0:
        return f"-${-value:,.2f}"
    return f"${value:,.2f}"


def format_range(value: Range3 | None) -> str:
    if value is None:
        return "n/a"
    return " / ".join(format_money(v) for v in value.values())


class AnalysisReportGenerator:
    """Generates the baseline + strategy analysis text report."""

    def __init__(self, catalog: StrategyCatalog | None = None) -> None:
        self.catalog = catalog or default_catalog()
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)), trim_blocks=True, lstrip_blocks=True
        )
        self.env.filters["money"] = format_money
        self.env.filters["range3"] = format_range
        self.env.filters["label"] = self.catalog.label

    def order_what_ifs(self, scenarios: list[WhatIfScenario]) -> list[WhatIfScenario]:
        """Tier 2 by ascending size, then any remaining scenarios in catalog order."""
        by_id = {s.strategy_id: s for s in scenarios}
        ranked = [
            by_id[i.strategy_id]
            for i in sort_by_impact_for_display([s.impact for s in scenarios], self.catalog)
        ]
        ranked_ids = {s.strategy_id for s in ranked}
        rest = [by_id[sid] for sid in self.catalog.order(by_id) if sid not in ranked_ids]
        return ranked + rest

    def render(
        self,
        baseline: BaselineComputation,
        evaluations: list[EvaluatedStrategy],
        output: ImpactEngineOutput,
    ) -> str:
        """Render analysis report."""
        template = self.env.get_template("analysis_report.txt")
        return template.render(
            baseline=baseline,
            evaluations=evaluations,
            output=output,
            what_ifs=self.order_what_ifs(list(output.what_if)),
        )
