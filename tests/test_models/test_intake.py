"""Tests for the normalized intake record."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from taxplan.models.enums import EntityType, FilingStatus, StateCode, StrategyId
from taxplan.models.intake import NormalizedIntake


class TestNormalizedIntake:
    def test_from_json_document(self):
        intake = NormalizedIntake.model_validate({
            "personal": {
                "filing_status": "MARRIED_FILING_JOINTLY",
                "children_0_17": 1,
                "income_excl_business": 120000.5,
                "state": "NY",
            },
            "business": {"has_business": True, "entity_type": "LLC", "net_profit": -2000},
            "strategies_in_use": ["k401"],
        })
        assert intake.personal.filing_status == FilingStatus.MFJ
        assert intake.personal.state == StateCode.NY
        assert intake.personal.income_excl_business == Decimal("120000.5")
        assert intake.business.entity_type == EntityType.LLC
        assert intake.business.net_profit == Decimal("-2000")
        assert intake.retirement.k401_employee_contrib_ytd == 0
        assert intake.is_in_use(StrategyId.K401)
        assert not intake.is_in_use(StrategyId.RTU_PROGRAM)

    def test_defaults(self):
        intake = NormalizedIntake.model_validate(
            {"personal": {"filing_status": "SINGLE", "state": "TX"}}
        )
        assert intake.business.has_business is False
        assert intake.business.entity_type == EntityType.UNKNOWN
        assert intake.personal.children_0_17 == 0

    @pytest.mark.parametrize(
        "personal",
        [
            {"filing_status": "SINGLE", "state": "XX"},
            {"filing_status": "WIDOWED", "state": "TX"},
            {"filing_status": "SINGLE", "state": "TX", "children_0_17": -1},
            {"filing_status": "SINGLE", "state": "TX", "income_excl_business": -5},
            {"filing_status": "SINGLE", "state": "TX", "nickname": "x"},
        ],
    )
    def test_rejects_invalid(self, personal):
        with pytest.raises(ValidationError):
            NormalizedIntake.model_validate({"personal": personal})

    def test_rejects_unknown_strategy_in_use(self):
        with pytest.raises(ValidationError):
            NormalizedIntake.model_validate({
                "personal": {"filing_status": "SINGLE", "state": "TX"},
                "strategies_in_use": ["crypto_magic"],
            })

    def test_frozen(self, w2_intake):
        with pytest.raises(ValidationError):
            w2_intake.strategies_in_use = (StrategyId.K401,)
