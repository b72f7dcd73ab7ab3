"""
狀態機：集中管理所有狀態轉換

- RoomStateMachine：房間狀態（WAITING -> PLAYING -> FINISHED，任何狀態都可刪除）
- DecisionStateMachine：隊伍每回合的決策紀錄（OPEN -> SUBMITTED）
"""
import enum
import logging

from sqlalchemy.orm import Session

from models import Room, RoomStatus, EventLog
from core.exceptions import (
    RoomNotFound,
    InvalidStateTransition,
    DecisionAlreadySubmitted,
    ApprovalsMissing
)
from services.game_state import RoundDecisions

logger = logging.getLogger(__name__)


class RoomStateMachine:
    """房間狀態轉換"""

    TRANSITIONS = {
        RoomStatus.WAITING: {RoomStatus.PLAYING, RoomStatus.DELETED},
        RoomStatus.PLAYING: {RoomStatus.FINISHED, RoomStatus.DELETED},
        RoomStatus.FINISHED: {RoomStatus.DELETED},
        RoomStatus.DELETED: set(),
    }

    @classmethod
    def can_transition(cls, current: RoomStatus, target: RoomStatus) -> bool:
        return target in cls.TRANSITIONS.get(current, set())

    @classmethod
    def transition(cls, room: Room, target: RoomStatus, db: Session) -> Room:
        """
        轉換房間狀態並記錄 ROOM_STATE_CHANGED 事件

        參數：
            room: 已鎖定的 Room
            target: 目標狀態
            db: SQLAlchemy Session

        返回：
            更新後的 Room

        異常：
            RoomNotFound: room 為 None
            InvalidStateTransition: 不允許的轉換
        """
        if room is None:
            raise RoomNotFound("unknown")

        current = room.status
        if not cls.can_transition(current, target):
            raise InvalidStateTransition(
                f"Room {room.code} cannot go from {current.value} to {target.value}"
            )

        room.status = target
        db.add(EventLog(
            room_id=room.id,
            event_type="ROOM_STATE_CHANGED",
            data={"from": current.value, "to": target.value}
        ))
        logger.info(f"Room {room.code}: {current.value} -> {target.value}")
        return room


class DecisionStatus(str, enum.Enum):
    OPEN = "OPEN"
    SUBMITTED = "SUBMITTED"


class DecisionStateMachine:
    """
    決策紀錄狀態機

    只定義預設內容與提交轉換；拒絕寫入由寫入路徑（RoundManager）呼叫 ensure_mutable 負責。
    """

    @staticmethod
    def open_payload() -> RoundDecisions:
        """
        新回合的 OPEN 預設決策

        所有數值為 0、所有布林為 False，製程目標等級為 1。
        上一回合的決策不會被帶入。
        """
        return RoundDecisions()

    @staticmethod
    def status(decisions: RoundDecisions) -> DecisionStatus:
        return DecisionStatus.SUBMITTED if decisions.is_submitted else DecisionStatus.OPEN

    @staticmethod
    def submit(decisions: RoundDecisions) -> RoundDecisions:
        """
        OPEN -> SUBMITTED

        保留最後儲存的欄位值；對已提交的紀錄重複呼叫不會改變任何東西（冪等）。
        """
        if decisions.is_submitted:
            return decisions
        return decisions.model_copy(update={"is_submitted": True})

    @staticmethod
    def ensure_mutable(decisions: RoundDecisions) -> None:
        """
        異常：
            DecisionAlreadySubmitted: 決策已提交
        """
        if decisions.is_submitted:
            raise DecisionAlreadySubmitted("Decisions for this round are already submitted")

    @staticmethod
    def ensure_approved(decisions: RoundDecisions) -> None:
        """
        CEO 主動提交前，CFO / CPO / CRO / CMO / CHO 必須全部核准

        回合結算時的強制提交不經過這個檢查。

        異常：
            ApprovalsMissing: 還有職務未核准
        """
        missing = decisions.approvals.missing
        if missing:
            raise ApprovalsMissing([role.value for role in missing])
