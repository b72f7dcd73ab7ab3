"""
API request / response schemas
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from models import RoomStatus
from services.game_state import (
    Approvals,
    FinanceDecision,
    HrDecision,
    LeaderboardEntry,
    MarketConfig,
    MarketingDecision,
    ProductionDecision,
    RndDecision,
    RoundDecisions,
    RoundResults,
    TeamAssets,
)


# ============ Room ============

class RoomCreate(BaseModel):
    room_name: str = Field(..., min_length=1, max_length=50)
    total_teams: int


class TeamResponse(BaseModel):
    team_id: str
    team_name: str
    assets: TeamAssets
    cumulative_net_profit: float


class RoomResponse(BaseModel):
    room_code: str
    room_name: str
    status: RoomStatus
    current_round: int
    total_teams: int
    market_config: MarketConfig
    leaderboard: Optional[List[LeaderboardEntry]] = None


class RoomCreateResponse(RoomResponse):
    teams: List[TeamResponse]


class RoomDeleteResponse(BaseModel):
    room_code: str
    status: RoomStatus


# ============ Game (round start / close) ============

class StartRoundRequest(BaseModel):
    room_code: str
    round: int


class StartRoundResponse(BaseModel):
    success: bool
    error: Optional[str] = None


class EndRoundRequest(BaseModel):
    room_code: str


class EndRoundResponse(BaseModel):
    success: bool
    leaderboard: Optional[List[LeaderboardEntry]] = None
    team_results: Optional[Dict[str, RoundResults]] = None
    error: Optional[str] = None


# ============ Decisions ============

class DecisionUpdate(BaseModel):
    """
    決策修改：只帶要替換的區塊

    每個區塊的欄位範圍在 services.game_state 的 model 上驗證
    （例如 loan_request <= 10000、new_hires <= 20、製程等級 1 ~ 4）。
    """
    approvals: Optional[Approvals] = None
    finance: Optional[FinanceDecision] = None
    production: Optional[ProductionDecision] = None
    rnd: Optional[RndDecision] = None
    marketing: Optional[MarketingDecision] = None
    hr: Optional[HrDecision] = None
    ceo_strategy: Optional[str] = Field(None, max_length=2000)


class DecisionResponse(BaseModel):
    round_number: int
    status: str
    decisions: RoundDecisions


class CashFlowResponse(BaseModel):
    current_cash: float
    planned_expenses: float
    available_cash: float


class HistoryEntry(BaseModel):
    round_number: int
    decisions: RoundDecisions
    results: RoundResults


class TeamHistoryResponse(BaseModel):
    team_id: str
    rounds: List[HistoryEntry]
