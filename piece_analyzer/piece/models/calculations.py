"""Financial calculation engine for PIECE Analyzer.

Implements the discounted cash flow metrics used to compare electrification
scenarios: NPV over explicitly numbered periods, IRR, and simple payback.
Cash flows are (period, amount) pairs; the period is the discounting
exponent and is never re-derived from list position.
"""

from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import numpy_financial as npf

from piece.data.validators import (
    ValidationError,
    require_valid,
    validate_cash_flows,
    validate_discount_rate,
)
from piece.models.project import CashFlowRecord, NpvEvaluation

CashFlowLike = Union[CashFlowRecord, Tuple[int, float]]

# IRR and payback run over a dense 0..N series; beyond this horizon they are
# reported as None and only the NPV is computed.
MAX_DENSE_PERIODS = 600


def _to_records(cash_flows: Sequence[CashFlowLike]) -> List[CashFlowRecord]:
    records = []
    for cf in cash_flows:
        if isinstance(cf, CashFlowRecord):
            records.append(cf)
        else:
            period, amount = cf
            if period < 0:
                raise ValidationError(f"Cash flow period must be >= 0, got {period}.")
            records.append(CashFlowRecord(period=int(period), amount=float(amount)))
    return records


def _arrays(records: Sequence[CashFlowRecord]) -> Tuple[np.ndarray, np.ndarray]:
    periods = np.array([cf.period for cf in records], dtype=float)
    amounts = np.array([cf.amount for cf in records], dtype=float)
    return periods, amounts


def discount_factors(discount_rate: float, periods: Sequence[int]) -> List[float]:
    r"""Return 1 / (1 + r)^t for each period t."""
    return [float(f) for f in 1.0 / (1.0 + discount_rate) ** np.array(periods, dtype=float)]


def calculate_npv(
    discount_rate: float,
    initial_investment: float,
    cash_flows: Sequence[CashFlowLike],
) -> float:
    r"""Calculate net present value of an investment and its cash flows.

    Formula:
        NPV = -I_0 + \sum_{i} \frac{CF_i}{(1+r)^{t_i}}

    Periods may have gaps and may arrive in any order.

    Args:
        discount_rate: Per-period rate as decimal, must be > -1.
        initial_investment: I_0, subtracted undiscounted.
        cash_flows: CashFlowRecords or (period, amount) pairs. Must not be empty.

    Returns:
        Net present value in the same currency units as the inputs.

    Raises:
        ValidationError: If cash_flows is empty, a period is negative, or
            discount_rate <= -1.

    Example:
        >>> calculate_npv(0.10, 1000, [(1, 500), (2, 600)])
        -45.45...
    """
    require_valid(validate_discount_rate(discount_rate))
    records = _to_records(cash_flows)
    require_valid(validate_cash_flows(records))

    periods, amounts = _arrays(records)
    pv = np.sum(amounts / (1.0 + discount_rate) ** periods)
    return float(-initial_investment + pv)


def dense_cash_flow_series(
    initial_investment: float,
    cash_flows: Sequence[CashFlowLike],
) -> List[float]:
    """Expand sparse cash flows into one value per period 0..max_period.

    The initial investment is placed at period 0 as an outflow; missing
    periods are zero and repeated periods are summed.
    """
    records = _to_records(cash_flows)
    last = max((cf.period for cf in records), default=0)
    series = np.zeros(last + 1)
    series[0] -= initial_investment
    for cf in records:
        series[cf.period] += cf.amount
    return [float(v) for v in series]


def calculate_irr(series: Sequence[float]) -> Optional[float]:
    r"""Calculate internal rate of return for a dense cash flow series.

    The IRR is the rate r that makes NPV = 0:
        0 = \sum_{t=0}^{N} \frac{CF_t}{(1+IRR)^t}

    Args:
        series: Cash flows for periods 0..N.

    Returns:
        IRR as a decimal, or None if no real solution exists or the solver fails.
    """
    try:
        result = npf.irr(series)
        if np.isnan(result) or np.isinf(result):
            return None
        return float(result)
    except Exception:
        return None


def calculate_payback(series: Sequence[float]) -> Optional[float]:
    """Calculate simple payback from a dense net cash flow series.

    Finds the first period where cumulative net cash flow turns
    non-negative, interpolating linearly within that period.

    Returns:
        Payback in periods, or None if never achieved.
    """
    cumulative = 0.0
    for t, cf in enumerate(series):
        prev_cumulative = cumulative
        cumulative += cf
        if cumulative >= 0 and t > 0:
            fraction = -prev_cumulative / cf if cf != 0 else 0
            return t - 1 + fraction
    return None


def evaluate_npv(
    discount_rate: float,
    initial_investment: float,
    cash_flows: Sequence[CashFlowLike],
    project_id: str = "",
    project_name: str = "",
    scenario_id: Optional[str] = None,
) -> NpvEvaluation:
    """Compute NPV and supporting metrics without touching storage.

    Args:
        discount_rate: Per-period rate as decimal, must be > -1.
        initial_investment: Investment at period 0.
        cash_flows: CashFlowRecords or (period, amount) pairs, non-empty.
        project_id: Project the flows belong to.
        project_name: Display name echoed in the result.
        scenario_id: Scenario the flows belong to, if any.

    Returns:
        NpvEvaluation holding the NPV, the inputs used, IRR and payback.
        IRR and payback are None when the last period exceeds
        MAX_DENSE_PERIODS.
    """
    records = _to_records(cash_flows)
    npv = calculate_npv(discount_rate, initial_investment, records)

    irr = payback = None
    if max(cf.period for cf in records) <= MAX_DENSE_PERIODS:
        series = dense_cash_flow_series(initial_investment, records)
        irr = calculate_irr(series)
        payback = calculate_payback(series)

    return NpvEvaluation(
        npv=npv,
        discount_rate=discount_rate,
        initial_investment=initial_investment,
        total_periods=len(records),
        cash_flows=list(records),
        irr=irr,
        payback_periods=payback,
        project_id=project_id,
        project_name=project_name,
        scenario_id=scenario_id,
    )


def rank_evaluations(evaluations: Dict[str, NpvEvaluation]) -> List[Tuple[str, NpvEvaluation]]:
    """Order named evaluations by NPV, best first. Ties keep input order."""
    return sorted(evaluations.items(), key=lambda item: item[1].npv, reverse=True)
