"""
市佔服務：同一車種的需求依出價競爭分配

出價越低排名越前、分到越多；每隊分到的量不會超過自己的產能。
純計算邏輯，不讀寫資料庫。
"""
from typing import List, Sequence

from services.game_state import MarketAllocation, RoundDecisions, TeamAssets, TeamBid, VehicleType, round2
from services.market_config import MARKET_SHARE_BONUS, MARKET_SHARE_PENALTY, PRODUCTION_PER_LINE


def production_capacity(assets: TeamAssets, decisions: RoundDecisions, vehicle: VehicleType) -> int:
    """產能 = min(產線數 * 每條產線產量, 購買的材料組數)，產線數含本回合擴建"""
    lines = assets.facilities[vehicle] + decisions.production.facility_expansion[vehicle]
    return min(lines * PRODUCTION_PER_LINE, decisions.production.material_purchase[vehicle])


def build_team_bid(team_id: str, assets: TeamAssets, decisions: RoundDecisions, vehicle: VehicleType) -> TeamBid:
    return TeamBid(
        team_id=team_id,
        bid_price=decisions.marketing.bid_prices[vehicle],
        production_capacity=production_capacity(assets, decisions, vehicle),
    )


def rank_ratio(index: int, bidder_count: int) -> float:
    """
    依價格排名決定市佔倍率

    最便宜的拿 MARKET_SHARE_BONUS，最貴的拿 MARKET_SHARE_PENALTY，
    中間線性內插；只有一隊出價時為 1.0。

    範例（3 隊）：
        rank_ratio(0, 3) -> 1.2
        rank_ratio(1, 3) -> 1.0
        rank_ratio(2, 3) -> 0.8
    """
    if bidder_count <= 1:
        return 1.0
    spread = MARKET_SHARE_BONUS - MARKET_SHARE_PENALTY
    return MARKET_SHARE_BONUS - (index / (bidder_count - 1)) * spread


def allocate_market_share(bids: Sequence[TeamBid], total_demand: float) -> List[MarketAllocation]:
    """
    分配單一車種的需求

    規則：
    - 出價 <= 0 或產能 <= 0 的隊伍不參與，結果中不會出現
    - 沒有有效出價或需求為 0：回傳空 list
    - 有效出價依價格由低到高排序（同價維持原本順序）
    - 分配量 = (需求 / 有效隊數) * 排名倍率，先四捨五入到小數 2 位，再以產能為上限

    注意：
    - 先四捨五入再加總，總分配量可能比需求多出最多 0.005 * 有效隊數

    範例（需求 10，出價 100 與 200，產能都是 10）：
        100 -> 5 * 1.2 = 6.0
        200 -> 5 * 0.8 = 4.0

    參數：
        bids: 每隊一筆 TeamBid
        total_demand: 該車種的需求量

    返回：
        依價格排序的 MarketAllocation list
    """
    if not bids or total_demand <= 0:
        return []

    eligible = [bid for bid in bids if bid.bid_price > 0 and bid.production_capacity > 0]
    if not eligible:
        return []

    ranked = sorted(eligible, key=lambda bid: bid.bid_price)
    base_share = total_demand / len(ranked)

    allocations = []
    for index, bid in enumerate(ranked):
        provisional = round2(base_share * rank_ratio(index, len(ranked)))
        allocations.append(MarketAllocation(
            team_id=bid.team_id,
            allocated_demand=min(provisional, bid.production_capacity),
        ))
    return allocations
