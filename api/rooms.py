"""
Room API Endpoints

職責：
1. 建立房間（含所有隊伍）
2. 刪除房間（Admin）
3. 查詢房間資訊、市場狀況與排行榜
4. 查詢隊伍列表
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
import logging

from database import get_db
from models import Room, Team
from schemas import RoomCreate, RoomCreateResponse, RoomDeleteResponse, RoomResponse, TeamResponse
from core.room_manager import RoomManager
from core.exceptions import RoomNotFound, InvalidTeamCount
from services.market_config import get_market_config

router = APIRouter(prefix="/api/rooms", tags=["rooms"])
logger = logging.getLogger(__name__)


def _room_response(room: Room) -> dict:
    return dict(
        room_code=room.code,
        room_name=room.name,
        status=room.status,
        current_round=room.current_round,
        total_teams=room.total_teams,
        market_config=get_market_config(room.current_round),
        leaderboard=room.leaderboard
    )


def _team_response(team: Team) -> TeamResponse:
    return TeamResponse(
        team_id=team.id,
        team_name=team.name,
        assets=team.assets,
        cumulative_net_profit=team.cumulative_net_profit
    )


@router.post("", response_model=RoomCreateResponse)
def create_room(room_data: RoomCreate, db: Session = Depends(get_db)):
    """
    建立房間（Host endpoint）

    流程：
    1. 建立 Room 與 Team 1..N（初始資產）
    2. 每隊建立第 1 回合的 OPEN 決策
    """
    try:
        room, teams = RoomManager.create_room(db, room_data.room_name, room_data.total_teams)
        return RoomCreateResponse(
            **_room_response(room),
            teams=[_team_response(team) for team in teams]
        )

    except InvalidTeamCount as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create room: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{code}", response_model=RoomResponse)
def get_room(code: str, db: Session = Depends(get_db)):
    """
    取得房間資訊

    返回：
        - status / current_round: 房間狀態與回合
        - market_config: 當前回合的市場狀況
        - leaderboard: 最近一次結算的排行榜（尚未結算為 null）
    """
    try:
        room = RoomManager.get_room_by_code(db, code)
        return RoomResponse(**_room_response(room))

    except RoomNotFound:
        raise HTTPException(status_code=404, detail="Room not found")
    except Exception as e:
        logger.error(f"Failed to get room: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{code}/teams", response_model=List[TeamResponse])
def list_teams(code: str, db: Session = Depends(get_db)):
    """取得房間內所有隊伍的資產與累計淨利"""
    try:
        room = RoomManager.get_room_by_code(db, code)
        return [_team_response(team) for team in RoomManager.get_teams(db, room.id)]

    except RoomNotFound:
        raise HTTPException(status_code=404, detail="Room not found")
    except Exception as e:
        logger.error(f"Failed to list teams: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/{code}", response_model=RoomDeleteResponse)
def delete_room(code: str, db: Session = Depends(get_db)):
    """
    刪除房間（Admin endpoint）

    房間標記為 DELETED 後，所有以房間代碼存取的 endpoint 都回 404。
    """
    try:
        room = RoomManager.delete_room(db, code)
        return RoomDeleteResponse(room_code=room.code, status=room.status)

    except RoomNotFound:
        raise HTTPException(status_code=404, detail="Room not found")
    except Exception as e:
        logger.error(f"Failed to delete room: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
