"""
現金流預覽：CFO 在回合結算前檢查本回合的預計支出是否超過手上現金

與結算共用同一組成本項目，預覽與實際結算的定價一致。
"""
from services.financial_service import (
    facility_investment,
    hr_activity_cost,
    material_cost,
    process_tech_cost,
    rnd_investment,
)
from services.game_state import FrozenModel, MarketConfig, RoundDecisions, TeamAssets, round2


class CashFlowPreview(FrozenModel):
    current_cash: float
    planned_expenses: float
    available_cash: float


def preview_cash_flow(assets: TeamAssets, decisions: RoundDecisions, config: MarketConfig) -> CashFlowPreview:
    planned = (
        material_cost(decisions, config)
        + facility_investment(decisions)
        + hr_activity_cost(decisions)
        + rnd_investment(assets, decisions)
        + process_tech_cost(assets, decisions)
    )
    current = assets.cash + decisions.finance.loan_request - decisions.finance.loan_repay
    return CashFlowPreview(
        current_cash=round2(current),
        planned_expenses=round2(planned),
        available_cash=round2(current - planned),
    )
