"""Normalized intake record consumed by every engine."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from taxplan.models.enums import EntityType, FilingStatus, StateCode, StrategyId


class PersonalInfo(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    filing_status: FilingStatus
    children_0_17: int = Field(default=0, ge=0, description="Qualifying children under 17")
    income_excl_business: Decimal = Field(
        default=Decimal("0"), ge=0, description="W-2 equivalent income outside the business"
    )
    state: StateCode


class BusinessInfo(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    has_business: bool = False
    entity_type: EntityType = EntityType.UNKNOWN
    employees_count: int = Field(default=0, ge=0)
    net_profit: Decimal = Field(default=Decimal("0"), description="May be negative for a loss year")


class RetirementInfo(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    k401_employee_contrib_ytd: Decimal = Field(default=Decimal("0"), ge=0)


class NormalizedIntake(BaseModel):
    """Immutable taxpayer facts produced once per request by the intake mapper."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    personal: PersonalInfo
    business: BusinessInfo = BusinessInfo()
    retirement: RetirementInfo = RetirementInfo()
    strategies_in_use: tuple[StrategyId, ...] = ()

    def is_in_use(self, strategy_id: StrategyId | str) -> bool:
        return strategy_id in self.strategies_in_use
