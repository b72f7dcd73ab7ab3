"""Tests for competitive market share allocation."""

import pytest

from services.game_state import (
    ProductionDecision,
    MarketingDecision,
    RoundDecisions,
    TeamAssets,
    TeamBid,
    VehicleType,
)
from services.market_config import MARKET_SHARE_BONUS, MARKET_SHARE_PENALTY
from services.market_share_service import (
    allocate_market_share,
    build_team_bid,
    production_capacity,
    rank_ratio,
)


# ── Helpers ──────────────────────────────────────────────────────────

def _bid(team_id, price, capacity=10):
    return TeamBid(team_id=team_id, bid_price=price, production_capacity=capacity)


def _by_team(allocations):
    return {a.team_id: a.allocated_demand for a in allocations}


# ── Rank ratio ───────────────────────────────────────────────────────

class TestRankRatio:
    def test_single_bidder_is_neutral(self):
        assert rank_ratio(0, 1) == 1.0

    def test_cheapest_gets_bonus(self):
        assert rank_ratio(0, 3) == pytest.approx(MARKET_SHARE_BONUS)

    def test_most_expensive_gets_penalty(self):
        assert rank_ratio(2, 3) == pytest.approx(MARKET_SHARE_PENALTY)

    def test_middle_is_interpolated(self):
        assert rank_ratio(1, 3) == pytest.approx(1.0)


# ── Allocation ───────────────────────────────────────────────────────

class TestAllocateMarketShare:
    def test_single_bidder_limited_by_demand(self):
        result = allocate_market_share([_bid("a", 500, capacity=20)], 10)
        assert _by_team(result) == {"a": 10}

    def test_single_bidder_limited_by_capacity(self):
        result = allocate_market_share([_bid("a", 500, capacity=4)], 10)
        assert _by_team(result) == {"a": 4}

    def test_two_bidders_bonus_and_penalty(self):
        result = _by_team(allocate_market_share([_bid("high", 200), _bid("low", 100)], 10))
        assert result["low"] == pytest.approx(5 * MARKET_SHARE_BONUS)
        assert result["high"] == pytest.approx(5 * MARKET_SHARE_PENALTY)

    def test_result_ordered_by_price(self):
        result = allocate_market_share([_bid("c", 300), _bid("a", 100), _bid("b", 200)], 9)
        assert [a.team_id for a in result] == ["a", "b", "c"]

    def test_capacity_caps_winner(self):
        result = _by_team(allocate_market_share([_bid("low", 100, capacity=5), _bid("high", 200)], 10))
        assert result["low"] == 5
        assert result["high"] == pytest.approx(4.0)

    def test_equal_prices_keep_input_order(self):
        result = _by_team(allocate_market_share([_bid("first", 100), _bid("second", 100)], 10))
        assert result["first"] == pytest.approx(6.0)
        assert result["second"] == pytest.approx(4.0)

    def test_ineligible_bids_are_absent(self):
        bids = [_bid("free", 0), _bid("empty", 100, capacity=0), _bid("ok", 150)]
        result = _by_team(allocate_market_share(bids, 10))
        assert result == {"ok": 10}

    def test_no_bids(self):
        assert allocate_market_share([], 10) == []

    def test_no_demand(self):
        assert allocate_market_share([_bid("a", 100)], 0) == []

    def test_all_ineligible(self):
        assert allocate_market_share([_bid("a", 0), _bid("b", -5)], 10) == []

    def test_provisional_share_rounded_to_cents(self):
        result = _by_team(allocate_market_share([_bid("a", 100), _bid("b", 200), _bid("c", 300)], 10))
        assert result["a"] == 4.0
        assert result["b"] == 3.33
        assert result["c"] == 2.67

    def test_total_within_half_a_cent_per_bidder_of_demand(self):
        bids = [_bid(str(i), 100 + i * 10) for i in range(4)]
        result = allocate_market_share(bids, 12)
        assert sum(a.allocated_demand for a in result) <= 12 + 0.005 * len(result)

    def test_rounding_can_overshoot_fractional_demand(self):
        # round 3 with 2 teams: 2 * 2 * 0.67 / 3 vehicles per type
        demand = 2 * 2 * 0.67 / 3
        result = _by_team(allocate_market_share([_bid("a", 100), _bid("b", 200)], demand))
        assert result == {"a": 0.54, "b": 0.36}
        assert sum(result.values()) > demand
        assert sum(result.values()) <= demand + 0.005 * 2


# ── Bid construction ─────────────────────────────────────────────────

class TestBuildTeamBid:
    def test_capacity_is_min_of_lines_and_materials(self):
        assets = TeamAssets(facilities={"gasoline": 2})
        decisions = RoundDecisions(
            production=ProductionDecision(
                material_purchase={"gasoline": 5},
                facility_expansion={"gasoline": 1},
            ),
            marketing=MarketingDecision(bid_prices={"gasoline": 900}),
        )
        assert production_capacity(assets, decisions, VehicleType.GASOLINE) == 3

        bid = build_team_bid("t1", assets, decisions, VehicleType.GASOLINE)
        assert bid.bid_price == 900
        assert bid.production_capacity == 3

    def test_materials_limit_capacity(self):
        assets = TeamAssets(facilities={"diesel": 4})
        decisions = RoundDecisions(
            production=ProductionDecision(material_purchase={"diesel": 1}),
        )
        assert production_capacity(assets, decisions, VehicleType.DIESEL) == 1
