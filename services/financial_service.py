"""
財務服務：單一隊伍一個回合的損益表與資產負債結轉

純計算邏輯。輸入是回合開始資產、凍結後的決策、分到的各車種需求與
該回合的 MarketConfig；輸出 RoundResults，其中帶有下一回合的資產。

計算順序：
1. 產能      產線 = 既有 + 擴建，產量 = min(產線 * 每線產量, 材料)
2. 銷售      銷量 = min(產量, 分配需求)，營收 = 銷量 * 出價
3. 變動成本  材料 + 銷管費 + 安全事故損失
4. 固定成本  人力 + 維護 + 折舊 + 利息 + 一般管理費
5. 損益      營業利益為正才課稅
6. 現金      借還款、資本支出、營收、現金成本與稅
7. 資產負債  借款、資本、產線、人力、技術等級
"""
from typing import Dict, Mapping

from services.game_state import (
    VEHICLE_TYPES,
    EmployeeTier,
    Employees,
    MarketConfig,
    RoundDecisions,
    RoundResults,
    TeamAssets,
    TechLevel,
    VehicleType,
    round2,
)
from services.market_config import (
    AUTOMATION_TECH_LEVEL,
    DESIGN_RND_COST,
    FACILITY_BUILD_COST,
    FACILITY_DEPRECIATION_RATE,
    FACILITY_MAINTENANCE_RATE,
    GENERAL_ADMIN_RATE,
    HIRE_COST_PER_GROUP,
    MAINTENANCE_COST,
    MATERIAL_COST,
    MAX_DESIGN_LEVEL,
    MAX_SAFETY_LEVEL,
    PROCESS_TECH_COST,
    PRODUCTION_PER_LINE,
    SAFETY_FAILURE_RATE,
    SAFETY_RND_COST,
    SALES_ADMIN_RATE,
    TAX_RATE,
    TRAINING_COST_SKILLED_TO_MASTER,
    TRAINING_COST_UNSKILLED_TO_SKILLED,
)


# ============ 成本項目 ============
# 與現金流預覽共用

def material_cost(decisions: RoundDecisions, config: MarketConfig) -> float:
    """材料支出；柴油車的單價乘上該回合的 diesel_demand_multiplier"""
    total = 0.0
    for vehicle in VEHICLE_TYPES:
        unit_cost = MATERIAL_COST[vehicle]
        if vehicle == VehicleType.DIESEL:
            unit_cost = unit_cost * config.diesel_demand_multiplier
        total += decisions.production.material_purchase[vehicle] * unit_cost
    return total


def facility_investment(decisions: RoundDecisions) -> float:
    return sum(
        decisions.production.facility_expansion[vehicle] * FACILITY_BUILD_COST
        for vehicle in VEHICLE_TYPES
    )


def hr_activity_cost(decisions: RoundDecisions) -> float:
    """本回合招募與培訓支出"""
    hr = decisions.hr
    return (
        hr.new_hires * HIRE_COST_PER_GROUP
        + hr.training_unskilled_to_skilled * TRAINING_COST_UNSKILLED_TO_SKILLED
        + hr.training_skilled_to_master * TRAINING_COST_SKILLED_TO_MASTER
    )


def labor_cost(assets: TeamAssets, decisions: RoundDecisions) -> float:
    """
    人力成本 = 現有員工維持費 + 招募 + 培訓

    製程達到自動化等級（Lv4）時為 0，不論人數或招募多少。
    """
    if decisions.production.process_tech_level >= AUTOMATION_TECH_LEVEL:
        return 0.0
    upkeep = sum(
        assets.employees.count(tier) * MAINTENANCE_COST[tier]
        for tier in EmployeeTier
    )
    return upkeep + hr_activity_cost(decisions)


def rnd_investment(assets: TeamAssets, decisions: RoundDecisions) -> float:
    """設計與安全研發各升一級的成本（有投資才計）"""
    level = assets.tech_level
    total = 0.0
    if decisions.rnd.invests_in_design:
        total += DESIGN_RND_COST.get((level.design, level.design + 1), 0)
    if decisions.rnd.safety_investment:
        total += SAFETY_RND_COST.get((level.safety, level.safety + 1), 0)
    return total


def process_tech_cost(assets: TeamAssets, decisions: RoundDecisions) -> float:
    target = decisions.production.process_tech_level
    if target > assets.tech_level.process:
        return PROCESS_TECH_COST.get(target, 0)
    return 0.0


# ============ 資產負債結轉 ============

def _next_employees(assets: TeamAssets, decisions: RoundDecisions) -> Employees:
    current = assets.employees
    hr = decisions.hr
    return Employees(
        unskilled=max(0, current.unskilled + hr.new_hires - hr.training_unskilled_to_skilled),
        skilled=max(0, current.skilled + hr.training_unskilled_to_skilled - hr.training_skilled_to_master),
        master=max(0, current.master + hr.training_skilled_to_master),
    )


def _next_tech_level(assets: TeamAssets, decisions: RoundDecisions) -> TechLevel:
    design = assets.tech_level.design
    if decisions.rnd.invests_in_design and design < MAX_DESIGN_LEVEL:
        design += 1

    safety = assets.tech_level.safety
    if decisions.rnd.safety_investment and safety < MAX_SAFETY_LEVEL:
        safety += 1

    return TechLevel(
        process=decisions.production.process_tech_level,
        design=design,
        safety=safety,
    )


# ============ 結算 ============

def calculate_round_results(
    assets: TeamAssets,
    decisions: RoundDecisions,
    allocated_demand: Mapping[VehicleType, float],
    config: MarketConfig,
) -> RoundResults:
    """
    結算單一隊伍的一個回合

    範例（現金 1000、汽油產線 2、買 2 組材料、出價 900、分到 2 台）：
        營收 1800，變動成本 2250，固定成本 380
        營業利益 -830，不課稅，期末現金 170

    參數：
        assets: 回合開始的資產
        decisions: 凍結後的決策（唯讀）
        allocated_demand: 各車種可賣的數量，沒有的車種視為 0
        config: 該回合的 MarketConfig

    返回：
        RoundResults，所有金額欄位四捨五入到小數 2 位
    """
    finance = decisions.finance
    production_plan = decisions.production

    # 1. 產能
    total_facilities: Dict[VehicleType, int] = {
        vehicle: assets.facilities[vehicle] + production_plan.facility_expansion[vehicle]
        for vehicle in VEHICLE_TYPES
    }
    production = {
        vehicle: min(
            total_facilities[vehicle] * PRODUCTION_PER_LINE,
            production_plan.material_purchase[vehicle],
        )
        for vehicle in VEHICLE_TYPES
    }

    # 2. 銷售
    sales_volume = {
        vehicle: min(production[vehicle], allocated_demand.get(vehicle, 0))
        for vehicle in VEHICLE_TYPES
    }
    revenue_by_vehicle = {
        vehicle: sales_volume[vehicle] * decisions.marketing.bid_prices[vehicle]
        for vehicle in VEHICLE_TYPES
    }
    revenue = sum(revenue_by_vehicle.values())

    # 3. 變動成本（事故率用回合開始時的安全等級）
    materials = material_cost(decisions, config)
    sales_admin = revenue * SALES_ADMIN_RATE
    failure = revenue * SAFETY_FAILURE_RATE[assets.tech_level.safety]
    variable_cost = materials + sales_admin + failure

    # 4. 固定成本
    labor = labor_cost(assets, decisions)
    line_count = sum(total_facilities.values())
    maintenance = line_count * FACILITY_MAINTENANCE_RATE
    depreciation = line_count * FACILITY_DEPRECIATION_RATE
    loan_after = assets.loan + finance.loan_request - finance.loan_repay
    interest = max(0, loan_after) * config.interest_rate
    general_admin = revenue * GENERAL_ADMIN_RATE
    fixed_cost = labor + maintenance + depreciation + interest + general_admin

    # 5. 損益
    operating_profit = revenue - (variable_cost + fixed_cost)
    tax = operating_profit * TAX_RATE if operating_profit > 0 else 0.0
    net_profit = operating_profit - tax

    # 6. 現金
    facilities_spend = facility_investment(decisions)
    rnd_spend = rnd_investment(assets, decisions)
    process_spend = process_tech_cost(assets, decisions)
    capital_spend = materials + facilities_spend + rnd_spend + process_spend + labor
    cash = (
        assets.cash
        + finance.loan_request
        - finance.loan_repay
        - capital_spend
        + revenue
        - sales_admin
        - failure
        - maintenance
        - depreciation
        - interest
        - general_admin
        - tax
    )

    # 7. 資產負債
    updated_assets = TeamAssets(
        cash=round2(cash),
        loan=round2(max(0, loan_after)),
        capital=round2(assets.capital + net_profit),
        facilities=total_facilities,
        tech_level=_next_tech_level(assets, decisions),
        employees=_next_employees(assets, decisions),
    )

    return RoundResults(
        revenue=round2(revenue),
        revenue_by_vehicle={vehicle: round2(amount) for vehicle, amount in revenue_by_vehicle.items()},
        production=production,
        sales_volume=sales_volume,
        variable_cost=round2(variable_cost),
        material_cost=round2(materials),
        sales_admin_cost=round2(sales_admin),
        failure_cost=round2(failure),
        fixed_cost=round2(fixed_cost),
        labor_cost=round2(labor),
        maintenance_cost=round2(maintenance),
        depreciation_cost=round2(depreciation),
        interest_cost=round2(interest),
        general_admin_cost=round2(general_admin),
        operating_profit=round2(operating_profit),
        non_operating_income=0,
        tax_amount=round2(tax),
        net_profit=round2(net_profit),
        facility_investment=round2(facilities_spend),
        rnd_investment=round2(rnd_spend),
        process_tech_cost=round2(process_spend),
        updated_assets=updated_assets,
    )
