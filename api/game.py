"""
Game API Endpoints：回合開始與回合結算（Host endpoint）

回應格式沿用前端約定：
- 成功：{ success: true, ... }
- 失敗：{ success: false, error }，搭配非 2xx 狀態碼
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import (
    StartRoundRequest,
    StartRoundResponse,
    EndRoundRequest,
    EndRoundResponse
)
from core.round_manager import RoundManager
from core.exceptions import (
    RoomNotFound,
    InvalidRoundNumber,
    InvalidStateTransition
)

router = APIRouter(prefix="/api/game", tags=["game"])
logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.post("/start-round", response_model=StartRoundResponse)
def start_round(request: StartRoundRequest, db: Session = Depends(get_db)):
    """
    開始回合

    前置條件：
    - round 必須在 1 ~ 4
    - 房間必須存在且尚未結束

    效果：
    - 房間切換到該回合的 MarketConfig，狀態轉為 PLAYING
    - 所有隊伍的決策重設為 OPEN 預設值
    """
    logger.info(f"Starting round {request.round} for room {request.room_code}")
    try:
        RoundManager.start_round(db, request.room_code, request.round)
        return StartRoundResponse(success=True)

    except InvalidRoundNumber as e:
        return _error(400, str(e))
    except RoomNotFound as e:
        return _error(404, str(e))
    except InvalidStateTransition as e:
        return _error(400, str(e))
    except Exception as e:
        logger.error(f"Failed to start round: {e}", exc_info=True)
        return _error(500, str(e) or "Unknown error while starting round")


@router.post("/end-round", response_model=EndRoundResponse)
def end_round(request: EndRoundRequest, db: Session = Depends(get_db)):
    """
    結算當前回合

    流程（全部在同一個 transaction）：
    1. 未提交的隊伍強制提交
    2. 需求 -> 各車種市佔分配 -> 各隊損益 -> 排行榜
    3. 寫回結果、資產與排行榜

    失敗時整個回合不會被部分寫入，可以直接重試。

    返回：
        - leaderboard: 排行榜（rank 1 為第一名）
        - team_results: {team_id: 損益表與更新後資產}
    """
    if not request.room_code:
        return _error(400, "Room code is required")

    try:
        settlement = RoundManager.end_round(db, request.room_code)
        return EndRoundResponse(
            success=True,
            leaderboard=settlement.leaderboard,
            team_results=settlement.team_results
        )

    except RoomNotFound as e:
        return _error(404, str(e))
    except Exception as e:
        logger.error(f"Failed to settle round: {e}", exc_info=True)
        return _error(500, str(e) or "Unknown error while settling round")
