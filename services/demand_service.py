"""
需求服務：計算一個回合的市場規模

純計算邏輯，只依賴隊伍數量與該回合的 MarketConfig
"""
from typing import Dict

from services.game_state import VEHICLE_TYPES, MarketConfig, VehicleType
from services.market_config import BASE_DEMAND_PER_TEAM


def calculate_total_demand(team_count: int, config: MarketConfig) -> float:
    """
    計算本回合市場的總需求量

    公式：BASE_DEMAND_PER_TEAM * 隊伍數 * demand_multiplier

    參數：
        team_count: 房間的隊伍數（不是有出價的隊伍數）
        config: 該回合的 MarketConfig

    返回：
        總需求量（可能帶小數）
    """
    return BASE_DEMAND_PER_TEAM * team_count * config.demand_multiplier


def calculate_demand_per_vehicle(total_demand: float, config: MarketConfig) -> Dict[VehicleType, float]:
    """
    把總需求平均分給本回合已開放的車種

    規則：
    - 未開放的車種需求為 0
    - 柴油車在平均分配後再乘上 diesel_demand_multiplier
      （所以只有倍率為 1 時，各車種加總才會等於總需求）

    範例（第 2 回合，4 隊）：
        總需求 = 2 * 4 * 1.75 = 14
        汽油 = 7，柴油 = 7 * 2.0 = 14

    參數：
        total_demand: calculate_total_demand 的結果
        config: 該回合的 MarketConfig

    返回：
        {車種: 需求量}，包含所有車種
    """
    unlocked = config.unlocked_vehicles
    base_share = total_demand / len(unlocked)

    demand: Dict[VehicleType, float] = {}
    for vehicle in VEHICLE_TYPES:
        if vehicle not in unlocked:
            demand[vehicle] = 0
        elif vehicle == VehicleType.DIESEL:
            demand[vehicle] = base_share * config.diesel_demand_multiplier
        else:
            demand[vehicle] = base_share
    return demand
