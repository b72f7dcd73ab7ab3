"""
Game state value types.

Immutable pydantic models shared by the settlement services. They hold
data only; every computation lives in the service modules.
"""
import math
from enum import Enum
from typing import Annotated, Dict, List, Tuple

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, NonNegativeFloat, NonNegativeInt


# Limits enforced when a team writes its decisions
MAX_LOAN_REQUEST = 10000
MAX_NEW_HIRES = 20


class VehicleType(str, Enum):
    GASOLINE = "gasoline"
    DIESEL = "diesel"
    HYBRID = "hybrid"
    EV = "ev"
    HYDROGEN = "hydrogen"


class EmployeeTier(str, Enum):
    UNSKILLED = "unskilled"
    SKILLED = "skilled"
    MASTER = "master"


class Role(str, Enum):
    CEO = "ceo"
    CFO = "cfo"
    CPO = "cpo"
    CRO = "cro"
    CMO = "cmo"
    CHO = "cho"


class EconomicCycle(str, Enum):
    RECOVERY = "recovery"
    BOOM = "boom"
    RECESSION = "recession"
    GREEN_GROWTH = "green_growth"


VEHICLE_TYPES: Tuple[VehicleType, ...] = tuple(VehicleType)


def round2(value: float) -> float:
    """Round half up to 2 decimals (currency precision)."""
    return math.floor(value * 100 + 0.5) / 100


def per_vehicle(default) -> Dict[VehicleType, object]:
    """Map with every vehicle type set to ``default``."""
    return {vehicle: default for vehicle in VEHICLE_TYPES}


def _fill_vehicles(default):
    def fill(value):
        if value is None:
            return per_vehicle(default)
        if not isinstance(value, dict):
            return value
        given = {VehicleType(key): amount for key, amount in value.items()}
        return {vehicle: given.get(vehicle, default) for vehicle in VEHICLE_TYPES}
    return fill


VehicleCounts = Annotated[Dict[VehicleType, NonNegativeInt], BeforeValidator(_fill_vehicles(0))]
VehicleAmounts = Annotated[Dict[VehicleType, float], BeforeValidator(_fill_vehicles(0))]
VehiclePrices = Annotated[Dict[VehicleType, NonNegativeFloat], BeforeValidator(_fill_vehicles(0))]
VehicleFlags = Annotated[Dict[VehicleType, bool], BeforeValidator(_fill_vehicles(False))]


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


# ============ Team assets ============

class TechLevel(FrozenModel):
    process: int = Field(1, ge=1, le=4)
    design: int = Field(1, ge=1, le=5)
    safety: int = Field(1, ge=1, le=5)


class Employees(FrozenModel):
    """Headcount per tier, counted in groups of 20."""
    unskilled: NonNegativeInt = 0
    skilled: NonNegativeInt = 0
    master: NonNegativeInt = 0

    def count(self, tier: EmployeeTier) -> int:
        return getattr(self, tier.value)


class TeamAssets(FrozenModel):
    cash: float = 0
    loan: NonNegativeFloat = 0
    capital: float = 0
    facilities: VehicleCounts = Field(default_factory=lambda: per_vehicle(0))
    tech_level: TechLevel = Field(default_factory=TechLevel)
    employees: Employees = Field(default_factory=Employees)

    @property
    def total_lines(self) -> int:
        return sum(self.facilities.values())


# ============ Round decisions ============

class Approvals(FrozenModel):
    """Sign-off flags of the five non-CEO roles."""
    cfo: bool = False
    cpo: bool = False
    cro: bool = False
    cmo: bool = False
    cho: bool = False

    @property
    def missing(self) -> List[Role]:
        return [Role(name) for name, approved in self.model_dump().items() if not approved]


class FinanceDecision(FrozenModel):
    loan_request: float = Field(0, ge=0, le=MAX_LOAN_REQUEST)
    loan_repay: NonNegativeFloat = 0


class ProductionDecision(FrozenModel):
    material_purchase: VehicleCounts = Field(default_factory=lambda: per_vehicle(0))
    facility_expansion: VehicleCounts = Field(default_factory=lambda: per_vehicle(0))
    process_tech_level: int = Field(1, ge=1, le=4)


class RndDecision(FrozenModel):
    design_investments: VehicleFlags = Field(default_factory=lambda: per_vehicle(False))
    safety_investment: bool = False

    @property
    def invests_in_design(self) -> bool:
        return any(self.design_investments.values())


class MarketingDecision(FrozenModel):
    bid_prices: VehiclePrices = Field(default_factory=lambda: per_vehicle(0))


class HrDecision(FrozenModel):
    new_hires: int = Field(0, ge=0, le=MAX_NEW_HIRES)
    training_unskilled_to_skilled: NonNegativeInt = 0
    training_skilled_to_master: NonNegativeInt = 0


class RoundDecisions(FrozenModel):
    is_submitted: bool = False
    approvals: Approvals = Field(default_factory=Approvals)
    finance: FinanceDecision = Field(default_factory=FinanceDecision)
    production: ProductionDecision = Field(default_factory=ProductionDecision)
    rnd: RndDecision = Field(default_factory=RndDecision)
    marketing: MarketingDecision = Field(default_factory=MarketingDecision)
    hr: HrDecision = Field(default_factory=HrDecision)
    ceo_strategy: str = ""


# ============ Market ============

class MarketConfig(FrozenModel):
    round: int
    cycle: EconomicCycle
    interest_rate: float
    demand_multiplier: float
    diesel_demand_multiplier: float
    unlocked_vehicles: Tuple[VehicleType, ...]
    unlocked_tech: Tuple[int, ...]
    news_headline: str = ""
    news_details: str = ""


class TeamBid(FrozenModel):
    team_id: str
    bid_price: float
    production_capacity: float


class MarketAllocation(FrozenModel):
    team_id: str
    allocated_demand: float


# ============ Results ============

class RoundResults(FrozenModel):
    revenue: float
    revenue_by_vehicle: VehicleAmounts
    production: VehicleAmounts
    sales_volume: VehicleAmounts
    variable_cost: float
    material_cost: float
    sales_admin_cost: float
    failure_cost: float
    fixed_cost: float
    labor_cost: float
    maintenance_cost: float
    depreciation_cost: float
    interest_cost: float
    general_admin_cost: float
    operating_profit: float
    non_operating_income: float = 0
    tax_amount: float
    net_profit: float
    facility_investment: float = 0
    rnd_investment: float = 0
    process_tech_cost: float = 0
    updated_assets: TeamAssets


class LeaderboardEntry(FrozenModel):
    team_id: str
    team_name: str
    cumulative_net_profit: float
    total_asset_value: float
    score: float
    rank: int


class TeamStanding(FrozenModel):
    """Leaderboard input for one team after settlement."""
    team_id: str
    team_name: str
    cumulative_net_profit: float
    assets: TeamAssets


class TeamSnapshot(FrozenModel):
    """Frozen settlement input for one team."""
    team_id: str
    team_name: str
    assets: TeamAssets
    decisions: RoundDecisions
    cumulative_net_profit: float = 0


class RoundSettlement(FrozenModel):
    total_demand: float
    demand_by_vehicle: VehicleAmounts
    allocations: Dict[str, VehicleAmounts]
    team_results: Dict[str, RoundResults]
    leaderboard: List[LeaderboardEntry]
