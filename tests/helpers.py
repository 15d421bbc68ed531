"""Builders for league fixtures. Each flushes so ids are available right away."""

from ledger.models import Contract, League, Player, PlayerSeasonStat, Team

SEASON = 2026


def make_league(session, *, sleeper_id="L1", name="Test League", salary_cap=500, current_season=SEASON,
                min_contract_years=0, max_contract_years=999, scoring_settings=None):
    league = League(
        sleeper_league_id=sleeper_id,
        name=name,
        salary_cap=salary_cap,
        current_season=current_season,
        min_contract_years=min_contract_years,
        max_contract_years=max_contract_years,
        scoring_settings=scoring_settings,
    )
    session.add(league)
    session.flush()
    return league


def make_team(session, league, roster_id, name=None, owner=None):
    team = Team(
        league_id=league.id,
        sleeper_roster_id=roster_id,
        team_name=name or f"Team {roster_id}",
        owner_name=owner or f"owner{roster_id}",
    )
    session.add(team)
    session.flush()
    return team


def make_player(session, sleeper_id, name, position="WR", age=27, nfl_team="KC"):
    player = Player(
        sleeper_player_id=str(sleeper_id),
        full_name=name,
        position=position,
        age=age,
        nfl_team=nfl_team,
    )
    session.add(player)
    session.flush()
    return player


def add_stat(session, player, ppg, games=16, season=SEASON - 1):
    stat = PlayerSeasonStat(
        player_id=player.id,
        season=season,
        games_played=games,
        games_started=games,
        total_fantasy_points=round(ppg * games, 2),
        avg_points_per_game=ppg,
    )
    session.add(stat)
    session.flush()
    return stat


def make_contract(session, team, player, salary, years_total=3, start_season=SEASON, status="active"):
    contract = Contract(
        league_id=team.league_id,
        team_id=team.id,
        player_id=player.id,
        salary=salary,
        years_total=years_total,
        years_remaining=years_total,
        start_season=start_season,
        end_season=start_season + years_total - 1,
        status=status,
    )
    session.add(contract)
    session.flush()
    return contract
