"""
結算服務：一次結算房間內所有隊伍的回合

需求 -> 各車種市佔分配 -> 各隊損益 -> 排行榜

純計算邏輯：輸入是凍結後的快照，輸出 RoundSettlement。
讀取快照與寫回結果由 RoundManager 負責。
"""
import logging
from typing import Dict, Optional, Sequence

from services.demand_service import calculate_demand_per_vehicle, calculate_total_demand
from services.financial_service import calculate_round_results
from services.game_state import (
    VEHICLE_TYPES,
    MarketConfig,
    RoundResults,
    RoundSettlement,
    TeamSnapshot,
    TeamStanding,
    VehicleType,
    per_vehicle,
    round2,
)
from services.market_share_service import allocate_market_share, build_team_bid
from services.valuation_service import calculate_leaderboard

logger = logging.getLogger(__name__)


def allocate_all_vehicles(
    teams: Sequence[TeamSnapshot],
    demand_by_vehicle: Dict[VehicleType, float],
) -> Dict[str, Dict[VehicleType, float]]:
    """
    每個車種各跑一次市佔分配，所有隊伍都參與出價

    沒分到的隊伍該車種記為 0（每隊都會有完整的車種 map）。
    """
    allocations = {team.team_id: per_vehicle(0) for team in teams}

    for vehicle in VEHICLE_TYPES:
        bids = [
            build_team_bid(team.team_id, team.assets, team.decisions, vehicle)
            for team in teams
        ]
        for share in allocate_market_share(bids, demand_by_vehicle[vehicle]):
            allocations[share.team_id][vehicle] = share.allocated_demand

    return allocations


def settle_round(
    teams: Sequence[TeamSnapshot],
    config: MarketConfig,
    team_count: Optional[int] = None,
) -> RoundSettlement:
    """
    結算一個回合

    流程：
    1. 依房間隊伍數計算總需求，再分到各車種
    2. 各車種市佔分配
    3. 各隊損益與資產結轉
    4. 以更新後的累計淨利與資產計算排行榜

    冪等：相同的快照一定得到相同的結果。

    參數：
        teams: 每隊一份凍結快照（回合開始資產 + 已提交決策）
        config: 該回合的 MarketConfig
        team_count: 計算需求用的隊伍數，預設為 len(teams)

    返回：
        RoundSettlement（分配結果、各隊損益、排行榜）
    """
    if team_count is None:
        team_count = len(teams)

    total_demand = calculate_total_demand(team_count, config)
    demand_by_vehicle = calculate_demand_per_vehicle(total_demand, config)
    logger.info(
        f"Settling round {config.round} for {len(teams)} teams, total demand {total_demand}"
    )

    allocations = allocate_all_vehicles(teams, demand_by_vehicle)

    team_results: Dict[str, RoundResults] = {}
    standings = []
    for team in teams:
        results = calculate_round_results(
            team.assets, team.decisions, allocations[team.team_id], config
        )
        team_results[team.team_id] = results
        standings.append(TeamStanding(
            team_id=team.team_id,
            team_name=team.team_name,
            cumulative_net_profit=round2(team.cumulative_net_profit + results.net_profit),
            assets=results.updated_assets,
        ))
        logger.debug(
            "Team %s: revenue=%s net_profit=%s",
            team.team_id, results.revenue, results.net_profit
        )

    leaderboard = calculate_leaderboard(standings)

    return RoundSettlement(
        total_demand=total_demand,
        demand_by_vehicle=demand_by_vehicle,
        allocations=allocations,
        team_results=team_results,
        leaderboard=leaderboard,
    )
