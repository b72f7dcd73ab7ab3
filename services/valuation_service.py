"""
估值服務：隊伍資產總值與排行榜

純計算邏輯，每次都從頭重算，不保留任何狀態
"""
from typing import List, Sequence

from services.game_state import LeaderboardEntry, TeamAssets, TeamStanding, round2
from services.market_config import (
    DESIGN_LEVEL_VALUE,
    FACILITY_BUILD_COST,
    FACILITY_SALVAGE_RATIO,
    MASTER_GROUP_VALUE,
    PROCESS_LEVEL_VALUE,
    SAFETY_LEVEL_VALUE,
    SKILLED_GROUP_VALUE,
)


def calculate_total_asset_value(assets: TeamAssets) -> float:
    """
    計算隊伍的資產總值

    資產總值 = 現金
             + 產線數 * 建置成本 * 殘值比例
             + 技術等級超過 1 的部分（設計、安全、製程各自計價）
             + 熟練工與師傅的人力資本（一般工不計）

    範例（初始資產）：
        6820 + 4 * 500 * 0.5 = 7820

    參數：
        assets: 隊伍資產

    返回：
        資產總值（小數 2 位）
    """
    facility_value = assets.total_lines * FACILITY_BUILD_COST * FACILITY_SALVAGE_RATIO

    level = assets.tech_level
    tech_value = (
        (level.design - 1) * DESIGN_LEVEL_VALUE
        + (level.safety - 1) * SAFETY_LEVEL_VALUE
        + (level.process - 1) * PROCESS_LEVEL_VALUE
    )

    human_capital_value = (
        assets.employees.skilled * SKILLED_GROUP_VALUE
        + assets.employees.master * MASTER_GROUP_VALUE
    )

    return round2(assets.cash + facility_value + tech_value + human_capital_value)


def calculate_leaderboard(standings: Sequence[TeamStanding]) -> List[LeaderboardEntry]:
    """
    計算排行榜

    分數 = 累計淨利 + 資產總值，由高到低排序，名次從 1 開始。
    同分的隊伍維持傳入的順序（排序是穩定的）。

    參數：
        standings: 結算後每隊的累計淨利與資產

    返回：
        LeaderboardEntry list（rank 1 為第一名）
    """
    scored = []
    for standing in standings:
        asset_value = calculate_total_asset_value(standing.assets)
        scored.append((standing, asset_value, standing.cumulative_net_profit + asset_value))

    scored.sort(key=lambda item: item[2], reverse=True)

    return [
        LeaderboardEntry(
            team_id=standing.team_id,
            team_name=standing.team_name,
            cumulative_net_profit=standing.cumulative_net_profit,
            total_asset_value=asset_value,
            score=score,
            rank=index + 1,
        )
        for index, (standing, asset_value, score) in enumerate(scored)
    ]
