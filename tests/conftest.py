"""Shared test fixtures for taxplan."""

from decimal import Decimal

import pytest

from taxplan.engines.rules import load_rule_table
from taxplan.models.baseline import BaselineTaxTotals
from taxplan.models.enums import EntityType, FilingStatus, StateCode
from taxplan.models.intake import BusinessInfo, NormalizedIntake, PersonalInfo, RetirementInfo
from taxplan.models.rules import RuleTable


def build_intake(
    filing_status: FilingStatus = FilingStatus.SINGLE,
    children: int = 0,
    income: str = "0",
    state: StateCode = StateCode.TX,
    has_business: bool = False,
    entity_type: EntityType = EntityType.UNKNOWN,
    employees: int = 0,
    net_profit: str = "0",
    k401_ytd: str = "0",
    in_use: tuple = (),
) -> NormalizedIntake:
    return NormalizedIntake(
        personal=PersonalInfo(
            filing_status=filing_status,
            children_0_17=children,
            income_excl_business=Decimal(income),
            state=state,
        ),
        business=BusinessInfo(
            has_business=has_business,
            entity_type=entity_type,
            employees_count=employees,
            net_profit=Decimal(net_profit),
        ),
        retirement=RetirementInfo(k401_employee_contrib_ytd=Decimal(k401_ytd)),
        strategies_in_use=in_use,
    )


def build_totals(
    federal: str, state: str, payroll: str, taxable_income: str
) -> BaselineTaxTotals:
    return BaselineTaxTotals.from_components(
        federal_tax=Decimal(federal),
        state_tax=Decimal(state),
        payroll_tax=Decimal(payroll),
        taxable_income=Decimal(taxable_income),
    )


@pytest.fixture
def w2_intake() -> NormalizedIntake:
    """Single W-2 earner in a no-income-tax state."""
    return build_intake(income="100000")


@pytest.fixture
def owner_intake() -> NormalizedIntake:
    """MFJ sole proprietor with two children in California."""
    return build_intake(
        filing_status=FilingStatus.MFJ,
        children=2,
        income="150000",
        state=StateCode.CA,
        has_business=True,
        entity_type=EntityType.SOLE_PROP,
        employees=2,
        net_profit="300000",
        k401_ytd="5000",
    )


@pytest.fixture
def mid_baseline() -> BaselineTaxTotals:
    return build_totals("40000", "10000", "15000", "250000")


@pytest.fixture
def high_baseline() -> BaselineTaxTotals:
    return build_totals("450000", "150000", "40000", "1500000")


@pytest.fixture
def rule_table() -> RuleTable:
    return load_rule_table()


@pytest.fixture
def make_intake():
    return build_intake


@pytest.fixture
def make_totals():
    return build_totals
