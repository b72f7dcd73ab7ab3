"""
Static game balance tables.

Per-round market conditions and per-action cost tables. Every mapping is
wrapped in MappingProxyType so nothing can mutate it at runtime.
"""
from types import MappingProxyType

from services.game_state import (
    EconomicCycle,
    EmployeeTier,
    Employees,
    MarketConfig,
    TeamAssets,
    TechLevel,
    VehicleType,
)

FIRST_ROUND = 1
LAST_ROUND = 4

INITIAL_ASSETS = TeamAssets(
    cash=6820,
    loan=2820,
    capital=4000,
    facilities={VehicleType.GASOLINE: 2, VehicleType.DIESEL: 2},
    tech_level=TechLevel(process=1, design=1, safety=1),
    employees=Employees(unskilled=4, skilled=0, master=0),
)

# Unit cost of one material set per vehicle
MATERIAL_COST = MappingProxyType({
    VehicleType.GASOLINE: 900,
    VehicleType.DIESEL: 1200,
    VehicleType.HYBRID: 1500,
    VehicleType.EV: 2000,
    VehicleType.HYDROGEN: 2500,
})

# R&D cost keyed by (from_level, to_level)
DESIGN_RND_COST = MappingProxyType({
    (1, 2): 400,
    (2, 3): 600,
    (3, 4): 800,
    (4, 5): 1000,
})

SAFETY_RND_COST = MappingProxyType({
    (1, 2): 200,
    (2, 3): 300,
    (3, 4): 400,
    (4, 5): 500,
})

# Share of revenue lost to recalls, by current safety level
SAFETY_FAILURE_RATE = MappingProxyType({
    1: 0.20,
    2: 0.15,
    3: 0.10,
    4: 0.03,
    5: 0.00,
})

MAX_DESIGN_LEVEL = 5
MAX_SAFETY_LEVEL = 5

# One-off cost of reaching a process level
PROCESS_TECH_COST = MappingProxyType({
    2: 300,
    3: 500,
    4: 700,
})

# Full automation: no labor cost at this process level
AUTOMATION_TECH_LEVEL = 4

HIRE_COST_PER_GROUP = 60
MAINTENANCE_COST = MappingProxyType({
    EmployeeTier.UNSKILLED: 50,
    EmployeeTier.SKILLED: 60,
    EmployeeTier.MASTER: 80,
})
TRAINING_COST_UNSKILLED_TO_SKILLED = 20
TRAINING_COST_SKILLED_TO_MASTER = 30

FACILITY_BUILD_COST = 500
FACILITY_MAINTENANCE_RATE = 50
FACILITY_DEPRECIATION_RATE = 50

PRODUCTION_PER_LINE = 1
BASE_DEMAND_PER_TEAM = 2

MARKET_SHARE_BONUS = 1.2
MARKET_SHARE_PENALTY = 0.8

TAX_RATE = 0.10
SALES_ADMIN_RATE = 0.05
GENERAL_ADMIN_RATE = 0.10

# Asset valuation credits
FACILITY_SALVAGE_RATIO = 0.5
DESIGN_LEVEL_VALUE = 300
SAFETY_LEVEL_VALUE = 200
PROCESS_LEVEL_VALUE = 250
SKILLED_GROUP_VALUE = 100
MASTER_GROUP_VALUE = 200

ROUND_CONFIGS = MappingProxyType({
    1: MarketConfig(
        round=1,
        cycle=EconomicCycle.RECOVERY,
        interest_rate=0.07,
        demand_multiplier=1.0,
        diesel_demand_multiplier=1.0,
        unlocked_vehicles=(VehicleType.GASOLINE, VehicleType.DIESEL),
        unlocked_tech=(1, 2),
        news_headline="Round 1: Recovery - a balanced market",
        news_details="Interest 7%. Gasoline and diesel demand are balanced. Build steady growth.",
    ),
    2: MarketConfig(
        round=2,
        cycle=EconomicCycle.BOOM,
        interest_rate=0.05,
        demand_multiplier=1.75,
        diesel_demand_multiplier=2.0,
        unlocked_vehicles=(VehicleType.GASOLINE, VehicleType.DIESEL),
        unlocked_tech=(1, 2, 3),
        news_headline="Round 2: Boom - demand explodes",
        news_details="Interest 5%. Overall demand +75%, diesel demand +100%. Expand capacity aggressively.",
    ),
    3: MarketConfig(
        round=3,
        cycle=EconomicCycle.RECESSION,
        interest_rate=0.15,
        demand_multiplier=0.67,
        diesel_demand_multiplier=0.25,
        unlocked_vehicles=(VehicleType.GASOLINE, VehicleType.DIESEL, VehicleType.HYBRID),
        unlocked_tech=(1, 2, 3),
        news_headline="Round 3: Recession - manage the crisis",
        news_details="Interest 15%. Overall demand -33%, diesel demand -75%. The hybrid market opens.",
    ),
    4: MarketConfig(
        round=4,
        cycle=EconomicCycle.GREEN_GROWTH,
        interest_rate=0.07,
        demand_multiplier=1.55,
        diesel_demand_multiplier=1.0,
        unlocked_vehicles=(
            VehicleType.GASOLINE,
            VehicleType.DIESEL,
            VehicleType.HYBRID,
            VehicleType.EV,
        ),
        unlocked_tech=(1, 2, 3, 4),
        news_headline="Round 4: Green growth - toward the future",
        news_details="Interest 7%. Demand +55%. Electric vehicles and AI automation (Lv4) become available.",
    ),
})


def is_valid_round(round_number: int) -> bool:
    return round_number in ROUND_CONFIGS


def get_market_config(round_number: int) -> MarketConfig:
    """
    Look up the market configuration of a round.

    Raises:
        ValueError: round_number is outside 1-4
    """
    if not is_valid_round(round_number):
        raise ValueError(
            f"Round must be between {FIRST_ROUND} and {LAST_ROUND}, got {round_number}"
        )
    return ROUND_CONFIGS[round_number]
