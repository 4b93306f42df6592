"""Tax bracket configuration.

Federal brackets, standard deductions, child tax credit and payroll-tax
parameters. Keyed by tax year (and filing status where the law varies by it).
Never hardcode these values in computation functions.

Sources:
  - 2025: IRS Rev. Proc. 2024-40, SSA 2025 contribution and benefit base
"""

from decimal import Decimal

from taxplan.models.enums import EntityType, FilingStatus

DEFAULT_TAX_YEAR = 2025

# ---------------------------------------------------------------------------
# Federal ordinary income brackets: {year: {filing_status: [(upper_bound, rate), ...]}}
# Upper bound is Decimal or None for the top bracket.
# ---------------------------------------------------------------------------
FEDERAL_BRACKETS: dict[int, dict[FilingStatus, list[tuple[Decimal | None, Decimal]]]] = {
    2025: {
        FilingStatus.SINGLE: [
            (Decimal("11925"), Decimal("0.10")),
            (Decimal("48475"), Decimal("0.12")),
            (Decimal("103350"), Decimal("0.22")),
            (Decimal("197300"), Decimal("0.24")),
            (Decimal("250525"), Decimal("0.32")),
            (Decimal("626350"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.MFJ: [
            (Decimal("23850"), Decimal("0.10")),
            (Decimal("96950"), Decimal("0.12")),
            (Decimal("206700"), Decimal("0.22")),
            (Decimal("394600"), Decimal("0.24")),
            (Decimal("501050"), Decimal("0.32")),
            (Decimal("751600"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.MFS: [
            (Decimal("11925"), Decimal("0.10")),
            (Decimal("48475"), Decimal("0.12")),
            (Decimal("103350"), Decimal("0.22")),
            (Decimal("197300"), Decimal("0.24")),
            (Decimal("250525"), Decimal("0.32")),
            (Decimal("375800"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
        FilingStatus.HOH: [
            (Decimal("17000"), Decimal("0.10")),
            (Decimal("64850"), Decimal("0.12")),
            (Decimal("103350"), Decimal("0.22")),
            (Decimal("197300"), Decimal("0.24")),
            (Decimal("250500"), Decimal("0.32")),
            (Decimal("626350"), Decimal("0.35")),
            (None, Decimal("0.37")),
        ],
    },
}

# ---------------------------------------------------------------------------
# Federal standard deduction
# ---------------------------------------------------------------------------
FEDERAL_STANDARD_DEDUCTION: dict[int, dict[FilingStatus, Decimal]] = {
    2025: {
        FilingStatus.SINGLE: Decimal("15000"),
        FilingStatus.MFJ: Decimal("30000"),
        FilingStatus.MFS: Decimal("15000"),
        FilingStatus.HOH: Decimal("22500"),
    },
}

# ---------------------------------------------------------------------------
# Child Tax Credit (IRC Section 24), simplified and nonrefundable.
# Phase-out: credit drops by $50 for each $1,000 (or part) of AGI over threshold.
# Thresholds are NOT inflation-adjusted.
# ---------------------------------------------------------------------------
CHILD_TAX_CREDIT_PER_CHILD: dict[int, Decimal] = {
    2025: Decimal("2000"),
}
CHILD_TAX_CREDIT_PHASEOUT_THRESHOLD: dict[FilingStatus, Decimal] = {
    FilingStatus.SINGLE: Decimal("200000"),
    FilingStatus.MFJ: Decimal("400000"),
    FilingStatus.MFS: Decimal("200000"),
    FilingStatus.HOH: Decimal("200000"),
}
CHILD_TAX_CREDIT_PHASEOUT_STEP = Decimal("1000")
CHILD_TAX_CREDIT_PHASEOUT_REDUCTION = Decimal("50")

# ---------------------------------------------------------------------------
# Payroll / self-employment tax. Rates are combined employee + employer.
# ---------------------------------------------------------------------------
SOCIAL_SECURITY_WAGE_BASE: dict[int, Decimal] = {
    2025: Decimal("176100"),
}
SOCIAL_SECURITY_RATE = Decimal("0.124")
MEDICARE_RATE = Decimal("0.029")
SE_EARNINGS_FACTOR = Decimal("0.9235")
SE_ENTITY_TYPES: frozenset[EntityType] = frozenset(
    {EntityType.SOLE_PROP, EntityType.PARTNERSHIP, EntityType.LLC}
)

# ---------------------------------------------------------------------------
# Additional Medicare Tax (IRC Section 3101(b)(2)): 0.9% on wages + SE earnings
# exceeding threshold. Thresholds are NOT inflation-adjusted.
# ---------------------------------------------------------------------------
ADDITIONAL_MEDICARE_TAX_RATE = Decimal("0.009")
ADDITIONAL_MEDICARE_TAX_THRESHOLD: dict[FilingStatus, Decimal] = {
    FilingStatus.SINGLE: Decimal("200000"),
    FilingStatus.MFJ: Decimal("250000"),
    FilingStatus.MFS: Decimal("125000"),
    FilingStatus.HOH: Decimal("200000"),
}
