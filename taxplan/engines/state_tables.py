"""State individual income tax configuration (no local taxes).

Three structures:
  - none:   no broad wage income tax (or not modeled)
  - flat:   taxable base x rate
  - hybrid: progressive states, estimated as
            min(base, threshold) x rate_at_threshold + max(base - threshold, 0) x top_rate

For hybrid states the rate at the threshold defaults to the top rate, a
conservative estimate until states are refined by filing status.
"""

from decimal import Decimal
from typing import NamedTuple

from taxplan.models.enums import StateCode, StateTaxMethod

HYBRID_THRESHOLD = Decimal("300000")

STATE_TAX_ESTIMATE_DISCLOSURE = (
    "State tax is an estimate for progressive states. Hybrid method: tax up to $300k "
    "at an assumed marginal rate at $300k, then tax above $300k at the top marginal rate. "
    "This does not model state-specific income definitions, deductions, exemptions, "
    "credits, surcharges, or local taxes."
)


class StateRate(NamedTuple):
    method: StateTaxMethod
    rate: Decimal = Decimal("0")
    top_rate: Decimal = Decimal("0")
    note: str | None = None


def _none(note: str | None = None) -> StateRate:
    return StateRate(StateTaxMethod.NONE, note=note)


def _flat(rate: str, note: str | None = None) -> StateRate:
    return StateRate(StateTaxMethod.FLAT, Decimal(rate), Decimal(rate), note)


def _hybrid(top_rate: str, note: str | None = None) -> StateRate:
    return StateRate(StateTaxMethod.HYBRID, Decimal(top_rate), Decimal(top_rate), note)


# ---------------------------------------------------------------------------
# {year: {state: StateRate}}
# ---------------------------------------------------------------------------
STATE_RATES: dict[int, dict[StateCode, StateRate]] = {
    2025: {
        # Progressive (hybrid estimate)
        StateCode.AL: _hybrid("0.05"),
        StateCode.AR: _hybrid("0.039"),
        StateCode.CA: _hybrid(
            "0.133",
            "CA is progressive; this uses top rate for both segments as a conservative estimate.",
        ),
        StateCode.CT: _hybrid("0.0699"),
        StateCode.DE: _hybrid("0.066"),
        StateCode.HI: _hybrid("0.11"),
        StateCode.KS: _hybrid("0.0558"),
        StateCode.ME: _hybrid("0.0715"),
        StateCode.MD: _hybrid(
            "0.0575", "Maryland has local income taxes (not modeled). This is state-only."
        ),
        StateCode.MA: _hybrid(
            "0.09", "Includes high-income surtax conceptually; modeled here as top rate estimate."
        ),
        StateCode.MN: _hybrid("0.0985"),
        StateCode.MO: _hybrid("0.047"),
        StateCode.MT: _hybrid("0.059"),
        StateCode.NE: _hybrid("0.052"),
        StateCode.NJ: _hybrid("0.1075"),
        StateCode.NM: _hybrid("0.059"),
        StateCode.NY: _hybrid("0.109", "New York City local tax not modeled. This is NYS-only."),
        StateCode.ND: _hybrid("0.025"),
        StateCode.OH: _hybrid("0.035"),
        StateCode.OK: _hybrid("0.0475"),
        StateCode.OR: _hybrid("0.099"),
        StateCode.RI: _hybrid("0.0599"),
        StateCode.SC: _hybrid("0.062"),
        StateCode.VT: _hybrid("0.0875"),
        StateCode.VA: _hybrid("0.0575"),
        StateCode.WV: _hybrid("0.0482"),
        StateCode.WI: _hybrid("0.0765"),
        StateCode.DC: _hybrid("0.1075"),
        # Flat
        StateCode.AZ: _flat("0.025"),
        StateCode.CO: _flat("0.044"),
        StateCode.GA: _flat("0.0539"),
        StateCode.IA: _flat("0.038"),
        StateCode.ID: _flat("0.05695"),
        StateCode.IL: _flat("0.0495"),
        StateCode.IN: _flat("0.03"),
        StateCode.KY: _flat("0.04"),
        StateCode.LA: _flat("0.03"),
        StateCode.MI: _flat("0.0425"),
        StateCode.MS: _flat("0.044", "Simplified as flat for baseline estimate."),
        StateCode.NC: _flat("0.0425"),
        StateCode.PA: _flat("0.0307"),
        StateCode.UT: _flat("0.0455"),
        # No broad wage income tax
        StateCode.AK: _none(),
        StateCode.FL: _none(),
        StateCode.NV: _none(),
        StateCode.NH: _none("No wage income tax (interest/dividends not modeled)."),
        StateCode.SD: _none(),
        StateCode.TN: _none(),
        StateCode.TX: _none(),
        StateCode.WA: _none("No wage income tax (capital gains tax not modeled)."),
        StateCode.WY: _none(),
    },
}


def get_state_rate(state: StateCode, tax_year: int) -> StateRate:
    """Look up a state's rate structure."""
    rate = STATE_RATES.get(tax_year, {}).get(state)
    if rate is None:
        raise ValueError(f"No state rate for {tax_year}/{state}")
    return rate
