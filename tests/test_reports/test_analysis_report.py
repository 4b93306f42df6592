"""Tests for the analysis report generator."""

from decimal import Decimal

import pytest

from taxplan.engines.baseline import BaselineTaxEngine
from taxplan.engines.evaluator import evaluate
from taxplan.engines.impact import ImpactEngine
from taxplan.models.impact import ImpactStrategyEvaluation, Range3
from taxplan.models.enums import StrategyId
from taxplan.reports import AnalysisReportGenerator
from taxplan.reports.analysis_report import format_money, format_range


@pytest.fixture
def report_inputs(owner_intake, rule_table):
    computation = BaselineTaxEngine().compute(owner_intake)
    evaluations = evaluate(owner_intake, rule_table)
    output = ImpactEngine().run(
        owner_intake,
        computation.totals,
        [ImpactStrategyEvaluation.from_evaluated(e) for e in evaluations],
    )
    return computation, evaluations, output


class TestFormatting:
    def test_money(self):
        assert format_money(Decimal("1234.5")) == "$1,234.50"
        assert format_money(Decimal("-99")) == "-$99.00"

    def test_range(self):
        assert format_range(Range3.of(-1, 0, 1)) == "-$1.00 / $0.00 / $1.00"
        assert format_range(None) == "n/a"


class TestAnalysisReport:
    def test_render_sections(self, report_inputs):
        text = AnalysisReportGenerator().render(*report_inputs)
        assert "TAX STRATEGY ANALYSIS (2025)" in text
        assert "BASELINE" in text
        assert "CORE PLAN" in text
        assert "WHAT-IF SCENARIOS" in text

    def test_render_labels_and_state_note(self, report_inputs):
        text = AnalysisReportGenerator().render(*report_inputs)
        assert "Augusta Rule" in text
        assert "Cash Balance Plan" in text
        assert "State tax is an estimate for progressive states" in text

    def test_gated_scenario_marked_not_applied(self, report_inputs):
        text = AnalysisReportGenerator().render(*report_inputs)
        assert "Leveraged Charitable (not applied)" in text

    def test_what_if_display_order(self, report_inputs):
        _, _, output = report_inputs
        ordered = AnalysisReportGenerator().order_what_ifs(list(output.what_if))
        ids = [s.strategy_id for s in ordered]
        assert set(ids) == {s.strategy_id for s in output.what_if}
        # smallest estimated impact first
        assert ids[0] == StrategyId.CASH_BALANCE_PLAN
