"""Data models for taxplan."""

from taxplan.models.baseline import (
    BaselineComputation,
    BaselineTaxTotals,
    ChildTaxCreditResult,
    PayrollTaxResult,
    StateTaxResult,
)
from taxplan.models.enums import (
    AssumptionCategory,
    EligibilityStatus,
    EntityType,
    FilingStatus,
    ImpactFlag,
    ImpactModelKind,
    RuleOperator,
    RuleRowStatus,
    StateCode,
    StateTaxMethod,
    StrategyId,
)
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
from taxplan.models.intake import BusinessInfo, NormalizedIntake, PersonalInfo, RetirementInfo
from taxplan.models.rules import (
    EvaluatedRuleGroup,
    EvaluatedRuleRow,
    EvaluatedStrategy,
    MissingRequiredField,
    RuleTable,
    StrategyEvaluationResult,
    StrategyRuleRow,
)

__all__ = [
    "AssumptionCategory",
    "BaselineComputation",
    "BaselineTaxTotals",
    "BusinessInfo",
    "ChildTaxCreditResult",
    "CoreScenario",
    "EligibilityStatus",
    "EntityType",
    "EvaluatedRuleGroup",
    "EvaluatedRuleRow",
    "EvaluatedStrategy",
    "FilingStatus",
    "ImpactAssumption",
    "ImpactEngineOutput",
    "ImpactFlag",
    "ImpactModelKind",
    "ImpactRun",
    "ImpactStrategyEvaluation",
    "MissingRequiredField",
    "NormalizedIntake",
    "PayrollTaxResult",
    "PersonalInfo",
    "Range3",
    "RetaxedTotals",
    "RetirementInfo",
    "RevisedTaxTotals",
    "RuleOperator",
    "RuleRowStatus",
    "RuleTable",
    "StateCode",
    "StateTaxMethod",
    "StateTaxResult",
    "StrategyEvaluationResult",
    "StrategyId",
    "StrategyImpactEstimate",
    "StrategyRuleRow",
    "WhatIfScenario",
]
