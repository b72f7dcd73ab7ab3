"""
Round Manager：管理回合的完整流程

職責：
1. 開始回合（重設所有隊伍的決策為 OPEN 預設值）
2. 決策寫入路徑（已提交就拒絕）
3. 提交決策
4. 結算回合：collect -> freeze -> compute -> persist

結算是明確的兩階段批次：
- 先把所有隊伍的決策讀齊並凍結（未提交的強制提交，使用最後儲存的值）
- 再一次性交給 settlement_service 計算，最後在同一個 transaction 內寫回
任何一步失敗都會整個 rollback，不會公布只算一半的排行榜。
"""
from sqlalchemy.orm import Session
from typing import Dict, Any
import logging

from models import Room, Team, TeamRound, RoomStatus, EventLog
from core.state_machine import RoomStateMachine, DecisionStateMachine
from core.locks import with_room_lock, with_team_round_lock
from core.room_manager import RoomManager
from core.exceptions import (
    RoomNotFound,
    InvalidRoundNumber,
    InvalidStateTransition,
    TechLevelLocked
)
from services.game_state import RoundDecisions, RoundSettlement, TeamAssets, TeamSnapshot, round2
from services.market_config import LAST_ROUND, get_market_config, is_valid_round
from services.settlement_service import settle_round
from database import transactional

logger = logging.getLogger(__name__)


def _load_decisions(team_round: TeamRound) -> RoundDecisions:
    return RoundDecisions.model_validate(team_round.decisions)


def _save_decisions(team_round: TeamRound, decisions: RoundDecisions) -> None:
    # JSON 欄位整個重新指定，讓 SQLAlchemy 偵測到變更
    team_round.decisions = decisions.model_dump(mode="json")
    team_round.is_submitted = decisions.is_submitted


def _open_team_round(team: Team, round_number: int) -> TeamRound:
    """以隊伍目前的資產作為回合開始快照，建立 OPEN 決策紀錄"""
    return TeamRound(
        team_id=team.id,
        round_number=round_number,
        decisions=DecisionStateMachine.open_payload().model_dump(mode="json"),
        is_submitted=False,
        opening_assets=team.assets,
        opening_cumulative_net_profit=team.cumulative_net_profit
    )


class RoundManager:
    """回合流程管理器"""

    @staticmethod
    def get_team_round(db: Session, team: Team, round_number: int) -> TeamRound:
        """
        取得隊伍在某回合的決策紀錄

        如果還沒有紀錄（例如回合開始後才補建的隊伍），建立 OPEN 預設紀錄。
        呼叫者負責 commit。
        """
        team_round = with_team_round_lock(team.id, round_number, db).first()
        if team_round is None:
            logger.warning(
                f"No round {round_number} record for team {team.id}, creating default"
            )
            team_round = _open_team_round(team, round_number)
            db.add(team_round)
            db.flush()
        return team_round

    @staticmethod
    @transactional
    def start_round(db: Session, room_code: str, round_number: int) -> Room:
        """
        開始回合

        流程：
        1. 驗證回合數（1 ~ 4）
        2. 鎖定房間，WAITING 的房間轉為 PLAYING
        3. 套用該回合的 MarketConfig
        4. 所有隊伍的決策重設為 OPEN 預設值，並記錄回合開始快照
        5. 記錄事件

        參數：
            db: SQLAlchemy Session
            room_code: 房間代碼
            round_number: 回合數

        返回：
            更新後的 Room

        異常：
            InvalidRoundNumber: 回合數不在 1 ~ 4
            RoomNotFound: 房間不存在
            InvalidStateTransition: 房間已結束或已刪除
        """
        # 1. 驗證回合數
        if not is_valid_round(round_number):
            raise InvalidRoundNumber(round_number)

        # 2. 鎖定房間
        room = with_room_lock(room_code, db).first()
        if not room or room.status == RoomStatus.DELETED:
            raise RoomNotFound(room_code)

        if room.status == RoomStatus.WAITING:
            RoomStateMachine.transition(room, RoomStatus.PLAYING, db)
        elif room.status != RoomStatus.PLAYING:
            raise InvalidStateTransition(
                f"Cannot start a round in room {room_code} (status: {room.status.value})"
            )

        # 3. 切換回合
        room.current_round = round_number
        config = get_market_config(round_number)

        # 4. 重設決策（上一回合的決策不會被帶入）
        open_payload = DecisionStateMachine.open_payload().model_dump(mode="json")
        teams = RoomManager.get_teams(db, room.id)
        for team in teams:
            team_round = with_team_round_lock(team.id, round_number, db).first()
            if team_round is None:
                db.add(_open_team_round(team, round_number))
                continue
            team_round.decisions = open_payload
            team_round.is_submitted = False
            team_round.opening_assets = team.assets
            team_round.opening_cumulative_net_profit = team.cumulative_net_profit
            team_round.results = None

        # 5. 記錄事件
        db.add(EventLog(
            room_id=room.id,
            event_type="ROUND_STARTED",
            data={"round": round_number, "cycle": config.cycle.value}
        ))

        logger.info(f"Room {room_code}: round {round_number} started for {len(teams)} teams")
        return room

    @staticmethod
    @transactional
    def update_decisions(db: Session, room_code: str, team_id: str, changes: Dict[str, Any]) -> RoundDecisions:
        """
        修改當前回合的決策（逐區塊整個替換）

        參數：
            db: SQLAlchemy Session
            room_code: 房間代碼
            team_id: Team UUID
            changes: {區塊名稱: 新內容}，區塊為 finance / production / rnd /
                     marketing / hr / approvals / ceo_strategy

        返回：
            更新後的 RoundDecisions

        異常：
            RoomNotFound / TeamNotFound
            DecisionAlreadySubmitted: 決策已提交
            TechLevelLocked: 製程目標等級本回合尚未開放
        """
        room = RoomManager.get_room_by_code(db, room_code)
        team = RoomManager.get_team(db, room.id, team_id)
        team_round = RoundManager.get_team_round(db, team, room.current_round)

        decisions = _load_decisions(team_round)
        DecisionStateMachine.ensure_mutable(decisions)

        production = changes.get("production")
        if production is not None:
            config = get_market_config(room.current_round)
            if production.process_tech_level not in config.unlocked_tech:
                raise TechLevelLocked(
                    f"Process level {production.process_tech_level} is not available "
                    f"in round {room.current_round}"
                )

        updated = decisions.model_copy(update=changes)
        _save_decisions(team_round, updated)

        logger.info(
            f"Team {team_id} updated {sorted(changes)} for round {room.current_round} (room={room_code})"
        )
        return updated

    @staticmethod
    @transactional
    def submit_decisions(db: Session, room_code: str, team_id: str) -> RoundDecisions:
        """
        提交當前回合的決策（OPEN -> SUBMITTED，冪等）

        異常：
            RoomNotFound / TeamNotFound
            ApprovalsMissing: 尚未提交且其他職務未全部核准
        """
        room = RoomManager.get_room_by_code(db, room_code)
        team = RoomManager.get_team(db, room.id, team_id)
        team_round = RoundManager.get_team_round(db, team, room.current_round)

        decisions = _load_decisions(team_round)
        if not decisions.is_submitted:
            DecisionStateMachine.ensure_approved(decisions)

        submitted = DecisionStateMachine.submit(decisions)
        _save_decisions(team_round, submitted)

        logger.info(f"Team {team_id} submitted round {room.current_round} (room={room_code})")
        return submitted

    @staticmethod
    @transactional
    def end_round(db: Session, room_code: str) -> RoundSettlement:
        """
        結算當前回合

        流程：
        1. 鎖定房間，取得 MarketConfig
        2. collect：讀取所有隊伍本回合的決策（沒有紀錄就用 OPEN 預設值）
        3. freeze：仍為 OPEN 的決策強制提交（保留最後儲存的值）
        4. compute：以回合開始快照交給 settle_round 一次算完
        5. persist：寫回結算結果、資產、累計淨利與排行榜

        冪等：輸入是回合開始快照與凍結後的決策，重跑會得到相同結果。

        參數：
            db: SQLAlchemy Session
            room_code: 房間代碼

        返回：
            RoundSettlement

        異常：
            RoomNotFound: 房間不存在
        """
        # 1. 鎖定房間
        room = with_room_lock(room_code, db).first()
        if not room or room.status == RoomStatus.DELETED:
            raise RoomNotFound(room_code)

        round_number = room.current_round
        config = get_market_config(round_number)
        teams = RoomManager.get_teams(db, room.id)

        # 2 + 3. collect & freeze
        team_rounds: Dict[str, TeamRound] = {}
        snapshots = []
        for team in teams:
            team_round = RoundManager.get_team_round(db, team, round_number)
            decisions = _load_decisions(team_round)
            if not decisions.is_submitted:
                logger.info(f"Force-submitting team {team.id} in round {round_number}")
                decisions = DecisionStateMachine.submit(decisions)
                _save_decisions(team_round, decisions)

            team_rounds[team.id] = team_round
            snapshots.append(TeamSnapshot(
                team_id=team.id,
                team_name=team.name,
                assets=TeamAssets.model_validate(team_round.opening_assets),
                decisions=decisions,
                cumulative_net_profit=team_round.opening_cumulative_net_profit
            ))

        # 4. compute
        settlement = settle_round(snapshots, config, team_count=room.total_teams)

        # 5. persist
        for team in teams:
            team_round = team_rounds[team.id]
            results = settlement.team_results[team.id]
            team_round.results = results.model_dump(mode="json")
            team.assets = results.updated_assets.model_dump(mode="json")
            team.cumulative_net_profit = round2(
                team_round.opening_cumulative_net_profit + results.net_profit
            )

        room.leaderboard = [entry.model_dump(mode="json") for entry in settlement.leaderboard]

        db.add(EventLog(
            room_id=room.id,
            event_type="ROUND_SETTLED",
            data={
                "round": round_number,
                "total_demand": settlement.total_demand,
                "leader": settlement.leaderboard[0].team_id if settlement.leaderboard else None
            }
        ))

        if round_number == LAST_ROUND and room.status == RoomStatus.PLAYING:
            RoomStateMachine.transition(room, RoomStatus.FINISHED, db)

        logger.info(f"Room {room_code}: round {round_number} settled for {len(teams)} teams")
        return settlement
