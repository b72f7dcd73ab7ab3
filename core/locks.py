"""
並發控制工具

提供 Database-level 的鎖定機制，防止競態條件（Race Condition）

主要使用 PostgreSQL 的 SELECT ... FOR UPDATE 來實現悲觀鎖（Pessimistic Locking）
（SQLite 會忽略 FOR UPDATE，單一寫入者本身就是序列化的）
"""
from sqlalchemy.orm import Session, Query

from models import Room, TeamRound


def with_room_lock(room_code: str, db: Session) -> Query:
    """
    鎖定一個 Room（行級鎖）

    使用場景：
    - 開始回合、結算回合時
    - 確保結算期間房間的回合數不被其他請求修改

    範例：
        room = with_room_lock(room_code, db).first()
        if not room:
            raise RoomNotFound(room_code)

    參數：
        room_code: 4 位房間代碼
        db: SQLAlchemy Session

    返回：
        Query object（需要呼叫 .first() 或 .one() 來取得結果）
    """
    return db.query(Room).filter(
        Room.code == room_code
    ).with_for_update(nowait=False)


def with_team_round_lock(team_id: str, round_number: int, db: Session) -> Query:
    """
    鎖定一個隊伍的回合決策紀錄

    使用場景：
    - 修改決策或提交時，避免與結算時的強制提交互相覆蓋

    參數：
        team_id: Team UUID
        round_number: 回合數
        db: SQLAlchemy Session

    返回：
        Query object（需要呼叫 .first() 取得結果）
    """
    return db.query(TeamRound).filter(
        TeamRound.team_id == team_id,
        TeamRound.round_number == round_number
    ).with_for_update(nowait=False)
