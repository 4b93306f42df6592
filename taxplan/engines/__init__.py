"""Tax computation engines."""

from taxplan.engines.baseline import BaselineTaxEngine, compute_baseline
from taxplan.engines.catalog import StrategyCatalog, default_catalog
from taxplan.engines.evaluator import evaluate, evaluate_strategies
from taxplan.engines.impact import ImpactEngine
from taxplan.engines.impact_models import ImpactModelRegistry, default_registry
from taxplan.engines.recompute import retax_revised_totals
from taxplan.engines.rules import load_rule_table, parse_rules

__all__ = [
    "BaselineTaxEngine",
    "ImpactEngine",
    "ImpactModelRegistry",
    "StrategyCatalog",
    "compute_baseline",
    "default_catalog",
    "default_registry",
    "evaluate",
    "evaluate_strategies",
    "load_rule_table",
    "parse_rules",
    "retax_revised_totals",
]
