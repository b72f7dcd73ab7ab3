"""
SQLAlchemy models

文件型欄位（assets / decisions / results / leaderboard）以 JSON 儲存，
內容是 services.game_state 的 pydantic model 透過 model_dump(mode="json") 的結果。
注意：JSON 欄位請整個重新指定，不要原地修改 dict（SQLAlchemy 不會追蹤）。
"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RoomStatus(str, enum.Enum):
    WAITING = "WAITING"
    PLAYING = "PLAYING"
    FINISHED = "FINISHED"
    DELETED = "DELETED"


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True, default=_uuid)
    code = Column(String(4), unique=True, nullable=False, index=True)
    name = Column(String(50), nullable=False)
    status = Column(Enum(RoomStatus), nullable=False, default=RoomStatus.WAITING)
    current_round = Column(Integer, nullable=False, default=1)
    total_teams = Column(Integer, nullable=False)
    leaderboard = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now)

    teams = relationship("Team", back_populates="room", order_by="Team.position")


class Team(Base):
    __tablename__ = "teams"

    id = Column(String(36), primary_key=True, default=_uuid)
    room_id = Column(String(36), ForeignKey("rooms.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    name = Column(String(50), nullable=False)
    assets = Column(JSON, nullable=False)
    cumulative_net_profit = Column(Float, nullable=False, default=0)

    room = relationship("Room", back_populates="teams")
    rounds = relationship("TeamRound", back_populates="team", order_by="TeamRound.round_number")


class TeamRound(Base):
    """
    一個隊伍在一個回合的決策紀錄

    opening_assets / opening_cumulative_net_profit 是回合開始時的快照，
    結算一律以快照為輸入，重跑結算會得到相同結果。
    """
    __tablename__ = "team_rounds"
    __table_args__ = (UniqueConstraint("team_id", "round_number"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=False, index=True)
    round_number = Column(Integer, nullable=False)
    decisions = Column(JSON, nullable=False)
    is_submitted = Column(Boolean, nullable=False, default=False)
    opening_assets = Column(JSON, nullable=False)
    opening_cumulative_net_profit = Column(Float, nullable=False, default=0)
    results = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    team = relationship("Team", back_populates="rounds")


class EventLog(Base):
    __tablename__ = "event_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(String(36), ForeignKey("rooms.id"), nullable=False, index=True)
    event_type = Column(String(50), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=_now)
