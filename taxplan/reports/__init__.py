"""Report generation for taxplan."""

from taxplan.reports.analysis_report import AnalysisReportGenerator

__all__ = [
    "AnalysisReportGenerator",
]
