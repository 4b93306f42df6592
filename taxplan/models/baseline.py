"""Baseline tax output models."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from taxplan.models.enums import StateCode, StateTaxMethod

ZERO = Decimal("0")


class BaselineTaxTotals(BaseModel):
    """Tax picture with zero strategies applied. Revised totals share this shape."""

    model_config = ConfigDict(frozen=True)

    federal_tax: Decimal = Field(ge=0)
    state_tax: Decimal = Field(ge=0)
    payroll_tax: Decimal = Field(ge=0)
    total_tax: Decimal = Field(ge=0)
    taxable_income: Decimal = Field(ge=0)

    @classmethod
    def from_components(
        cls,
        federal_tax: Decimal,
        state_tax: Decimal,
        payroll_tax: Decimal,
        taxable_income: Decimal,
    ) -> "BaselineTaxTotals":
        """Build totals with total_tax derived as the sum of its components."""
        return cls(
            federal_tax=federal_tax,
            state_tax=state_tax,
            payroll_tax=payroll_tax,
            total_tax=federal_tax + state_tax + payroll_tax,
            taxable_income=taxable_income,
        )


class ChildTaxCreditResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    qualifying_children: int
    available: Decimal
    used: Decimal
    unused: Decimal
    tax_after_credit: Decimal


class StateTaxResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: StateCode
    method: StateTaxMethod
    taxable_base: Decimal
    tax: Decimal
    notes: list[str] = []


class PayrollTaxResult(BaseModel):
    """Payroll and self-employment tax components.

    ``half_se_tax_deduction`` is reported for reference only and is not
    subtracted from AGI.
    """

    model_config = ConfigDict(frozen=True)

    w2_wages: Decimal
    se_earnings: Decimal
    ss_wage_base_used_by_wages: Decimal
    fica_tax_on_wages: Decimal
    self_employment_tax: Decimal
    additional_medicare_tax: Decimal
    total: Decimal
    half_se_tax_deduction: Decimal


class BaselineComputation(BaseModel):
    """Baseline totals plus the intermediate values that produced them."""

    model_config = ConfigDict(frozen=True)

    tax_year: int
    totals: BaselineTaxTotals
    gross_income: Decimal
    agi: Decimal
    standard_deduction: Decimal
    federal_tax_before_credits: Decimal
    child_tax_credit: ChildTaxCreditResult
    state: StateTaxResult
    payroll: PayrollTaxResult
