# ledger/evaluator.py
"""League-relative contract ratings.

    value_score = (estimated - actual) / estimated * 100

Positive means the team pays less than market. Rank 1 is the best value in
the league, so rating a single contract needs the whole league ranked; build
the ranking once with `league_rankings` and pass it to `evaluate_contract`
(or use `evaluate_league`) when rating many contracts.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger import store
from ledger.errors import ValidationError
from ledger.estimator import Comparable, estimate_contract
from ledger.models import Contract, Player, PlayerSeasonStat

BUST_BELOW = -25.0
STEAL_FROM = 25.0
LEGENDARY_MAX_RANK = 10
LEGENDARY_MIN_SCORE = 50.0
LEGENDARY_MIN_PPG = 10.0

RATINGS = ("ROOKIE", "BUST", "GOOD", "STEAL", "LEGENDARY")


@dataclass
class RankedContract:
    contract_id: int
    player_id: int
    team_id: Optional[int]
    position: str
    actual_salary: float
    estimated_salary: int
    value_score: float
    ppg: Optional[float]
    games_played: int
    comparables: List[Comparable] = field(default_factory=list)
    rank: int = 0


@dataclass
class LeagueRanking:
    league_id: int
    season: int
    entries: List[RankedContract]
    rookies: set = field(default_factory=set)

    def __post_init__(self):
        self._by_contract = {e.contract_id: e for e in self.entries}

    def find(self, contract_id: int) -> Optional[RankedContract]:
        return self._by_contract.get(contract_id)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class ContractEvaluation:
    contract_id: int
    rating: str
    value_score: float
    actual_salary: float
    estimated_salary: int
    salary_difference: float
    league_rank: Optional[int]
    position_rank: Optional[int]
    total_contracts: int
    comparable_contracts: List[Comparable]
    reasoning: str
    player_stats: Optional[Dict[str, Any]] = None


def value_score(estimated: float, actual: float) -> float:
    if not estimated:
        return 0.0
    return (estimated - actual) / estimated * 100.0


def classify(score: float, rank: Optional[int], ppg: Optional[float]) -> str:
    if (
        rank is not None
        and rank <= LEGENDARY_MAX_RANK
        and score >= LEGENDARY_MIN_SCORE
        and ppg is not None
        and ppg >= LEGENDARY_MIN_PPG
    ):
        return "LEGENDARY"
    if score < BUST_BELOW:
        return "BUST"
    if score >= STEAL_FROM:
        return "STEAL"
    return "GOOD"


def league_rankings(session: Session, league_id: int, season: int | None = None) -> LeagueRanking:
    """Score every active, non-zero contract and rank them best value first.

    Players with no stats in any season have no basis for a market value and
    are left out of the ranking (they rate ROOKIE).
    """
    league = store.get_league(session, league_id)
    if season is None:
        season = store.stats_season(league)

    rows = store.active_league_contracts(session, league_id, min_salary=0)
    with_stats = store.players_with_stats(session, [p.id for _, p in rows])

    entries: List[RankedContract] = []
    rookies = set()
    for contract, player in rows:
        if player.id not in with_stats:
            rookies.add(contract.id)
            continue
        # prior salary left out so a contract is never valued against itself
        est = estimate_contract(session, league_id, player.id, player.position, player.age,
                                previous_salary=None, season=season)
        actual = float(contract.salary)
        entries.append(RankedContract(
            contract_id=contract.id,
            player_id=player.id,
            team_id=contract.team_id,
            position=player.position,
            actual_salary=actual,
            estimated_salary=est.estimated_salary,
            value_score=value_score(est.estimated_salary, actual),
            ppg=est.ppg,
            games_played=est.games_played,
            comparables=est.comparable_players,
        ))

    entries.sort(key=lambda e: (-e.value_score, e.contract_id))
    for i, e in enumerate(entries, start=1):
        e.rank = i
    return LeagueRanking(league_id=league_id, season=season, entries=entries, rookies=rookies)


def position_rankings(session: Session, league_id: int, position: str, season: int) -> List[Dict[str, Any]]:
    rows = session.execute(
        select(Player.id, Player.full_name, PlayerSeasonStat.avg_points_per_game)
        .join(Contract, Contract.player_id == Player.id)
        .join(PlayerSeasonStat, (PlayerSeasonStat.player_id == Player.id) & (PlayerSeasonStat.season == season))
        .where(
            Contract.league_id == league_id,
            Contract.status == "active",
            Contract.salary > 0,
            Player.position == position,
            PlayerSeasonStat.avg_points_per_game.is_not(None),
        )
        .distinct()
    ).all()
    ordered = sorted(rows, key=lambda r: (-float(r[2]), r[0]))
    return [
        {"player_id": pid, "player_name": name, "ppg": float(ppg), "rank": i}
        for i, (pid, name, ppg) in enumerate(ordered, start=1)
    ]


def _reasoning(rating: str, score: float, actual: float, estimated: float, position: str, rank: Optional[int]) -> str:
    diff = abs(estimated - actual)
    pct = abs(score)
    if rating == "LEGENDARY":
        return (f"Elite value! #{rank} best contract in the league. Saving ${diff:.0f}/year "
                f"({pct:.0f}% below market) for this {position}.")
    if rating == "STEAL":
        return f"Great deal! Paying ${diff:.0f} less than market value ({pct:.0f}% savings) for this {position}."
    if rating == "BUST":
        return f"Overpaying by ${diff:.0f}/year ({pct:.0f}% above market) for this {position}."
    if rating == "ROOKIE":
        return "Rookie contract - no stats history to evaluate yet. Check back after the season."
    side = "below" if score >= 0 else "above"
    return f"Fair contract. Slightly {side} market value for this {position}."


def _evaluation(contract: Contract, player: Player, ranking: LeagueRanking,
                position_rank: Optional[int]) -> ContractEvaluation:
    actual = float(contract.salary)
    entry = ranking.find(contract.id)
    if entry is None:
        return ContractEvaluation(
            contract_id=contract.id,
            rating="ROOKIE",
            value_score=0.0,
            actual_salary=actual,
            estimated_salary=0,
            salary_difference=0.0,
            league_rank=None,
            position_rank=None,
            total_contracts=len(ranking),
            comparable_contracts=[],
            reasoning=_reasoning("ROOKIE", 0.0, actual, 0.0, player.position, None),
        )

    rating = classify(entry.value_score, entry.rank, entry.ppg)
    return ContractEvaluation(
        contract_id=contract.id,
        rating=rating,
        value_score=round(entry.value_score),
        actual_salary=actual,
        estimated_salary=entry.estimated_salary,
        salary_difference=entry.estimated_salary - actual,
        league_rank=entry.rank,
        position_rank=position_rank,
        total_contracts=len(ranking),
        comparable_contracts=entry.comparables[:3],
        reasoning=_reasoning(rating, entry.value_score, actual, entry.estimated_salary, player.position, entry.rank),
        player_stats=(
            {"ppg": entry.ppg, "games_played": entry.games_played} if entry.ppg is not None else None
        ),
    )


def evaluate_contract(session: Session, contract_id: int, ranking: LeagueRanking | None = None) -> ContractEvaluation:
    contract = store.get_contract(session, contract_id)
    if contract.status != "active":
        raise ValidationError(f"Contract {contract_id} is {contract.status}; only active contracts are rated.")
    if float(contract.salary) == 0:
        raise ValidationError("Cannot evaluate $0 contracts - player is awaiting franchise tag or release.")
    player = store.get_player(session, contract.player_id)

    if not store.players_with_stats(session, [player.id]):
        if ranking is None:
            ranking = LeagueRanking(contract.league_id, 0, [], {contract.id})
        return _evaluation(contract, player, ranking, None)

    # a snapshot taken before this contract existed cannot rank it
    if ranking is None or ranking.league_id != contract.league_id or ranking.find(contract.id) is None:
        ranking = league_rankings(session, contract.league_id)

    pos_rank = None
    for r in position_rankings(session, contract.league_id, player.position, ranking.season):
        if r["player_id"] == player.id:
            pos_rank = r["rank"]
            break
    return _evaluation(contract, player, ranking, pos_rank)


def evaluate_league(session: Session, league_id: int, ranking: LeagueRanking | None = None) -> List[ContractEvaluation]:
    """Evaluations for every active, non-zero contract from a single ranking pass."""
    if ranking is None:
        ranking = league_rankings(session, league_id)

    pos_ranks: Dict[str, Dict[int, int]] = {}
    out = []
    for contract, player in store.active_league_contracts(session, league_id, min_salary=0):
        if player.position not in pos_ranks:
            pos_ranks[player.position] = {
                r["player_id"]: r["rank"]
                for r in position_rankings(session, league_id, player.position, ranking.season)
            }
        out.append(_evaluation(contract, player, ranking, pos_ranks[player.position].get(player.id)))
    out.sort(key=lambda e: (e.league_rank is None, e.league_rank or 0, e.contract_id))
    return out
