"""
Room Manager：管理 Room 的生命週期

職責：
1. 建立 Room（含所有隊伍與第 1 回合的預設決策）
2. 刪除 Room（標記為 DELETED）
3. 查詢 Room / Team 資訊

原則：
- 單一職責：只管 Room 與 Team，不管回合流程（交給 RoundManager）
- 所有狀態變更經過 StateMachine
- 資料結構優先：先檢查資料是否符合要求，再執行操作
"""
from sqlalchemy.orm import Session
from typing import List, Tuple
import logging

from models import Room, Team, TeamRound, RoomStatus, EventLog
from core.state_machine import DecisionStateMachine, RoomStateMachine
from core.locks import with_room_lock
from core.exceptions import RoomNotFound, TeamNotFound, InvalidTeamCount
from services.market_config import INITIAL_ASSETS, FIRST_ROUND
from services.naming_service import generate_room_code, generate_team_name
from database import transactional

logger = logging.getLogger(__name__)

MIN_TEAMS = 2
MAX_TEAMS = 12


class RoomManager:
    """Room 生命週期管理器"""

    @staticmethod
    @transactional
    def create_room(db: Session, name: str, total_teams: int) -> Tuple[Room, List[Team]]:
        """
        建立新房間（含所有隊伍）

        流程：
        1. 驗證隊伍數量
        2. 生成唯一的房間代碼
        3. 建立 Room
        4. 建立 Team 1..N（初始資產）與第 1 回合的 OPEN 決策
        5. 記錄事件

        參數：
            db: SQLAlchemy Session
            name: 房間名稱
            total_teams: 隊伍數量（2 ~ 12）

        返回：
            (Room, Teams) tuple

        異常：
            InvalidTeamCount: 隊伍數量不符合要求
        """
        # 1. 驗證隊伍數量
        if not MIN_TEAMS <= total_teams <= MAX_TEAMS:
            raise InvalidTeamCount(
                f"Team count must be between {MIN_TEAMS} and {MAX_TEAMS}, got {total_teams}"
            )

        # 2. 生成唯一的房間代碼
        code = generate_room_code()
        while db.query(Room).filter(Room.code == code).first():
            code = generate_room_code()
            logger.warning(f"Room code collision detected, regenerating: {code}")

        # 3. 建立 Room
        room = Room(
            code=code,
            name=name,
            status=RoomStatus.WAITING,
            current_round=FIRST_ROUND,
            total_teams=total_teams
        )
        db.add(room)
        db.flush()  # 取得 room.id

        logger.info(f"Created room {room.id} with code {code} ({total_teams} teams)")

        # 4. 建立隊伍
        opening_assets = INITIAL_ASSETS.model_dump(mode="json")
        open_payload = DecisionStateMachine.open_payload().model_dump(mode="json")
        teams = []
        for position in range(1, total_teams + 1):
            team = Team(
                room_id=room.id,
                position=position,
                name=generate_team_name(position),
                assets=opening_assets,
                cumulative_net_profit=0
            )
            db.add(team)
            db.flush()  # 取得 team.id

            db.add(TeamRound(
                team_id=team.id,
                round_number=FIRST_ROUND,
                decisions=open_payload,
                is_submitted=False,
                opening_assets=opening_assets,
                opening_cumulative_net_profit=0
            ))
            teams.append(team)

        # 5. 記錄事件
        db.add(EventLog(
            room_id=room.id,
            event_type="ROOM_CREATED",
            data={"code": code, "total_teams": total_teams}
        ))

        # transactional decorator 會自動 commit
        return room, teams

    @staticmethod
    @transactional
    def delete_room(db: Session, code: str) -> Room:
        """
        刪除房間（Admin endpoint）

        只把狀態標成 DELETED，隊伍與回合紀錄保留。
        之後所有以房間代碼查詢的操作都會得到 RoomNotFound。

        異常：
            RoomNotFound: 房間不存在或已刪除
        """
        room = with_room_lock(code, db).first()
        if not room or room.status == RoomStatus.DELETED:
            raise RoomNotFound(code)

        RoomStateMachine.transition(room, RoomStatus.DELETED, db)
        logger.info(f"Room {code} deleted")
        return room

    @staticmethod
    def get_room_by_code(db: Session, code: str) -> Room:
        """
        透過房間代碼取得 Room

        異常：
            RoomNotFound: Room 不存在
        """
        room = db.query(Room).filter(Room.code == code).first()
        if not room or room.status == RoomStatus.DELETED:
            raise RoomNotFound(code)
        return room

    @staticmethod
    def get_teams(db: Session, room_id: str) -> List[Team]:
        """取得房間內所有隊伍（依建立順序）"""
        return db.query(Team).filter(
            Team.room_id == room_id
        ).order_by(Team.position).all()

    @staticmethod
    def get_team(db: Session, room_id: str, team_id: str) -> Team:
        """
        取得房間內的單一隊伍

        異常：
            TeamNotFound: 隊伍不存在或不屬於此房間
        """
        team = db.query(Team).filter(
            Team.id == team_id,
            Team.room_id == room_id
        ).first()
        if not team:
            raise TeamNotFound(team_id)
        return team
