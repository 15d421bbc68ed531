# ledger/deadcap.py
"""Dead cap retained when a contract is released.

Retention depends on the original contract length and how many seasons into
the deal the release happens (0 = the signing season).
"""

from __future__ import annotations
from typing import Any, Dict

DEAD_CAP_PERCENTAGES: Dict[int, list[float]] = {
    5: [0.75, 0.50, 0.25, 0.10, 0.10],
    4: [0.75, 0.50, 0.25, 0.10],
    3: [0.50, 0.25, 0.10],
    2: [0.50, 0.25],
    1: [0.50],
}

# contracts at or below this salary keep their full cap hit when cut
MINIMUM_CONTRACT_SALARY = 1.0


def retention_pct(years_total: int, start_season: int, season: int) -> float:
    years_into = season - start_season
    pcts = DEAD_CAP_PERCENTAGES.get(years_total, [])
    if years_into < 0 or years_into >= len(pcts):
        return 0.0
    return pcts[years_into]


def dead_cap(salary: float, years_total: int, start_season: int, season: int) -> float:
    salary = float(salary or 0.0)
    if salary <= MINIMUM_CONTRACT_SALARY:
        return round(salary, 2)
    return round(salary * retention_pct(years_total, start_season, season), 2)


def dead_cap_for(contract, season: int) -> float:
    return dead_cap(contract.salary, contract.years_total, contract.start_season, season)


def preview(contract, season: int) -> Dict[str, Any]:
    """What releasing `contract` in `season` would cost, without touching the ledger."""
    salary = float(contract.salary or 0.0)
    hit = dead_cap_for(contract, season)
    if salary <= MINIMUM_CONTRACT_SALARY:
        pct = 1.0 if salary > 0 else 0.0
    else:
        pct = retention_pct(contract.years_total, contract.start_season, season)
    return {
        "contract_id": contract.id,
        "salary": salary,
        "years_total": contract.years_total,
        "years_into_contract": season - contract.start_season,
        "dead_cap_pct": round(pct * 100, 2),
        "dead_cap": hit,
        "cap_savings": round(salary - hit, 2),
    }
