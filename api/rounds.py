"""
Team Round API Endpoints

重點：
1. 決策逐區塊修改，已提交的決策一律拒絕寫入（409）
2. 提交為冪等操作
3. 現金流預覽與歷史結算紀錄都直接由伺服器計算
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import (
    DecisionUpdate,
    DecisionResponse,
    CashFlowResponse,
    TeamHistoryResponse
)
from core.round_manager import RoundManager
from core.room_manager import RoomManager
from core.state_machine import DecisionStateMachine
from core.exceptions import (
    RoomNotFound,
    TeamNotFound,
    DecisionAlreadySubmitted,
    TechLevelLocked,
    ApprovalsMissing
)
from services.game_state import RoundDecisions, TeamAssets
from services.market_config import get_market_config
from services.cash_flow_service import preview_cash_flow
from services.history_service import get_team_round_history

router = APIRouter(prefix="/api/rooms", tags=["rounds"])
logger = logging.getLogger(__name__)


def _decision_response(round_number: int, decisions: RoundDecisions) -> DecisionResponse:
    return DecisionResponse(
        round_number=round_number,
        status=DecisionStateMachine.status(decisions).value,
        decisions=decisions
    )


@router.get("/{code}/teams/{team_id}/decisions", response_model=DecisionResponse)
def get_decisions(code: str, team_id: str, db: Session = Depends(get_db)):
    """
    取得隊伍當前回合的決策

    返回：
        - round_number: 回合數
        - status: OPEN / SUBMITTED
        - decisions: 最後儲存的決策
    """
    try:
        room = RoomManager.get_room_by_code(db, code)
        team = RoomManager.get_team(db, room.id, team_id)
        team_round = RoundManager.get_team_round(db, team, room.current_round)
        db.commit()

        decisions = RoundDecisions.model_validate(team_round.decisions)
        return _decision_response(room.current_round, decisions)

    except (RoomNotFound, TeamNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get decisions: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.patch("/{code}/teams/{team_id}/decisions", response_model=DecisionResponse)
def update_decisions(
    code: str,
    team_id: str,
    update: DecisionUpdate,
    db: Session = Depends(get_db)
):
    """
    修改決策（各職務各自送出自己的區塊）

    前置條件：
    - 決策尚未提交
    - 製程目標等級必須在本回合開放的等級內

    參數：
        update: 只帶要替換的區塊（finance / production / rnd / marketing / hr /
                approvals / ceo_strategy）
    """
    try:
        changes = {
            field: getattr(update, field)
            for field in update.model_fields_set
            if getattr(update, field) is not None
        }
        if not changes:
            raise HTTPException(status_code=400, detail="No decision section given")

        room = RoomManager.get_room_by_code(db, code)
        decisions = RoundManager.update_decisions(db, code, team_id, changes)
        return _decision_response(room.current_round, decisions)

    except HTTPException:
        raise
    except (RoomNotFound, TeamNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DecisionAlreadySubmitted as e:
        raise HTTPException(status_code=409, detail=str(e))
    except TechLevelLocked as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update decisions: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{code}/teams/{team_id}/decisions/submit", response_model=DecisionResponse)
def submit_decisions(code: str, team_id: str, db: Session = Depends(get_db)):
    """
    提交決策（CEO endpoint）

    前置條件：
    - CFO / CPO / CRO / CMO / CHO 全部核准（否則 409）

    效果：
    - OPEN -> SUBMITTED，之後任何修改都會被拒絕
    - 重複提交不會出錯（冪等）
    """
    try:
        room = RoomManager.get_room_by_code(db, code)
        decisions = RoundManager.submit_decisions(db, code, team_id)
        return _decision_response(room.current_round, decisions)

    except (RoomNotFound, TeamNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ApprovalsMissing as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to submit decisions: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{code}/teams/{team_id}/cash-flow", response_model=CashFlowResponse)
def get_cash_flow(code: str, team_id: str, db: Session = Depends(get_db)):
    """
    現金流預覽（CFO 畫面）

    返回：
        - current_cash: 現金 + 借款 - 還款
        - planned_expenses: 本回合決策的預計支出
        - available_cash: 扣除預計支出後的剩餘現金
    """
    try:
        room = RoomManager.get_room_by_code(db, code)
        team = RoomManager.get_team(db, room.id, team_id)
        team_round = RoundManager.get_team_round(db, team, room.current_round)
        db.commit()

        preview = preview_cash_flow(
            TeamAssets.model_validate(team_round.opening_assets),
            RoundDecisions.model_validate(team_round.decisions),
            get_market_config(room.current_round)
        )
        return CashFlowResponse(**preview.model_dump())

    except (RoomNotFound, TeamNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to preview cash flow: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{code}/teams/{team_id}/history", response_model=TeamHistoryResponse)
def get_history(code: str, team_id: str, db: Session = Depends(get_db)):
    """取得隊伍所有已結算回合的損益紀錄（依回合排序）"""
    try:
        room = RoomManager.get_room_by_code(db, code)
        team = RoomManager.get_team(db, room.id, team_id)
        return TeamHistoryResponse(
            team_id=team.id,
            rounds=get_team_round_history(team.id, db)
        )

    except (RoomNotFound, TeamNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get history: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
