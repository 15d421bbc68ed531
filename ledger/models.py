# ledger/models.py
"""SQLAlchemy schema for the cap ledger.

Cap state is never stored on a team: it is always derived from contracts,
cap transactions and cap adjustments (see ledger/cap.py).
"""

from datetime import datetime

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# money columns come back as float; amounts are rounded to cents on write
Money = Numeric(12, 2, asdecimal=False)

CONTRACT_STATUSES = ("active", "released", "traded", "expired", "voided")
MIN_CONTRACT_YEARS = 1
MAX_CONTRACT_YEARS = 5


class League(Base):
    __tablename__ = "leagues"

    id = Column(Integer, primary_key=True)
    sleeper_league_id = Column(String(32), unique=True, nullable=False)
    name = Column(String(255), nullable=False, default="")
    salary_cap = Column(Money, nullable=False, default=500)
    current_season = Column(Integer, nullable=False)
    min_contract_years = Column(Integer, nullable=False, default=0)
    max_contract_years = Column(Integer, nullable=False, default=999)
    scoring_settings = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    teams = relationship("Team", back_populates="league")


class Team(Base):
    __tablename__ = "teams"
    __table_args__ = (UniqueConstraint("league_id", "sleeper_roster_id"),)

    id = Column(Integer, primary_key=True)
    league_id = Column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False)
    sleeper_roster_id = Column(Integer, nullable=False)
    sleeper_user_id = Column(String(32), nullable=True)
    team_name = Column(String(255), nullable=False, default="")
    owner_name = Column(String(255), nullable=False, default="")

    league = relationship("League", back_populates="teams")
    contracts = relationship("Contract", back_populates="team")


class Player(Base):
    __tablename__ = "players"

    id = Column(Integer, primary_key=True)
    sleeper_player_id = Column(String(32), unique=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    position = Column(String(8), nullable=False, index=True)
    nfl_team = Column(String(8), nullable=True)
    age = Column(Integer, nullable=True)
    years_exp = Column(Integer, nullable=True)
    status = Column(String(32), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    stats = relationship("PlayerSeasonStat", back_populates="player")


class PlayerSeasonStat(Base):
    __tablename__ = "player_season_stats"
    __table_args__ = (UniqueConstraint("player_id", "season"),)

    id = Column(Integer, primary_key=True)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    season = Column(Integer, nullable=False)
    games_played = Column(Integer, nullable=False, default=0)
    games_started = Column(Integer, nullable=False, default=0)
    total_fantasy_points = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    avg_points_per_game = Column(Numeric(8, 2, asdecimal=False), nullable=True)

    player = relationship("Player", back_populates="stats")


class Contract(Base):
    __tablename__ = "contracts"
    __table_args__ = (
        CheckConstraint("years_total BETWEEN 1 AND 5", name="ck_contract_years_total"),
        CheckConstraint("end_season = start_season + years_total - 1", name="ck_contract_end_season"),
        CheckConstraint("salary >= 0", name="ck_contract_salary"),
        CheckConstraint(
            "status IN ('active', 'released', 'traded', 'expired', 'voided')",
            name="ck_contract_status",
        ),
        Index("ix_contracts_league_status", "league_id", "status"),
    )

    id = Column(Integer, primary_key=True)
    league_id = Column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    salary = Column(Money, nullable=False)
    years_total = Column(Integer, nullable=False)
    years_remaining = Column(Integer, nullable=False)
    start_season = Column(Integer, nullable=False)
    end_season = Column(Integer, nullable=False)
    contract_type = Column(String(16), nullable=False, default="standard")
    status = Column(String(16), nullable=False, default="active")
    roster_status = Column(String(16), nullable=False, default="active")
    acquisition_type = Column(String(16), nullable=False, default="free_agent")
    released_at = Column(DateTime, nullable=True)
    release_reason = Column(String(64), nullable=True)
    dead_cap_hit = Column(Money, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    team = relationship("Team", back_populates="contracts")
    player = relationship("Player")


class CapAdjustment(Base):
    """A named one-off ledger entry (trade dead money, corrections).

    Amounts live in CapAdjustmentAmount keyed by season, positive = charge,
    negative = credit.
    """

    __tablename__ = "cap_adjustments"

    id = Column(Integer, primary_key=True)
    league_id = Column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    adjustment_type = Column(String(32), nullable=False, default="trade_cap_hit")
    description = Column(Text, nullable=False, default="")
    player_name = Column(String(255), nullable=True)
    trade_id = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    amounts = relationship(
        "CapAdjustmentAmount", back_populates="adjustment", cascade="all, delete-orphan"
    )


class CapAdjustmentAmount(Base):
    __tablename__ = "cap_adjustment_amounts"
    __table_args__ = (UniqueConstraint("adjustment_id", "season"),)

    id = Column(Integer, primary_key=True)
    adjustment_id = Column(Integer, ForeignKey("cap_adjustments.id", ondelete="CASCADE"), nullable=False)
    season = Column(Integer, nullable=False)
    amount = Column(Money, nullable=False, default=0)

    adjustment = relationship("CapAdjustment", back_populates="amounts")


class CapTransaction(Base):
    """Append-only audit trail of cap-affecting events."""

    __tablename__ = "cap_transactions"
    __table_args__ = (
        Index("ix_cap_transactions_team_season", "team_id", "season", "transaction_type"),
        # one dead-money charge per released contract
        Index(
            "uq_cap_transactions_dead_money",
            "related_contract_id",
            unique=True,
            sqlite_where=text("transaction_type = 'dead_money'"),
            postgresql_where=text("transaction_type = 'dead_money'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    league_id = Column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    season = Column(Integer, nullable=False)
    transaction_type = Column(String(32), nullable=False)
    amount = Column(Money, nullable=False)
    description = Column(Text, nullable=True)
    related_contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class SyncLog(Base):
    __tablename__ = "sync_log"

    id = Column(Integer, primary_key=True)
    league_id = Column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False)
    sync_type = Column(String(32), nullable=False)
    status = Column(String(16), nullable=False)
    records_processed = Column(Integer, nullable=False, default=0)
    total_dead_cap = Column(Money, nullable=False, default=0)
    errors = Column(JSON, nullable=True)
    completed_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class OwnerMapping(Base):
    """One version of a Discord user -> team mapping. Rows are never updated."""

    __tablename__ = "owner_mappings"
    __table_args__ = (UniqueConstraint("league_id", "discord_user", "version"),)

    id = Column(Integer, primary_key=True)
    league_id = Column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False)
    discord_user = Column(String(255), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    version = Column(Integer, nullable=False)
    changed_by = Column(String(255), nullable=False)
    changed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    team = relationship("Team")
