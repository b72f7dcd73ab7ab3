"""Tests for the per-team profit and loss and balance-sheet roll-forward."""

import pytest

from services.financial_service import calculate_round_results, labor_cost
from services.game_state import (
    Employees,
    FinanceDecision,
    HrDecision,
    MarketingDecision,
    ProductionDecision,
    RndDecision,
    RoundDecisions,
    TeamAssets,
    TechLevel,
    VehicleType,
)
from services.market_config import INITIAL_ASSETS, ROUND_CONFIGS

GAS = VehicleType.GASOLINE
DIESEL = VehicleType.DIESEL


# ── Helpers ──────────────────────────────────────────────────────────

def _make_assets(**overrides):
    defaults = {
        "cash": 1000,
        "loan": 0,
        "capital": 0,
        "facilities": {"gasoline": 2},
    }
    defaults.update(overrides)
    return TeamAssets(**defaults)


def _make_decisions(materials=None, bids=None, expansion=None, process_level=1, **sections):
    return RoundDecisions(
        production=ProductionDecision(
            material_purchase=materials or {},
            facility_expansion=expansion or {},
            process_tech_level=process_level,
        ),
        marketing=MarketingDecision(bid_prices=bids or {}),
        **sections,
    )


def _settle(assets, decisions, allocated=None, round_number=1):
    return calculate_round_results(assets, decisions, allocated or {}, ROUND_CONFIGS[round_number])


# ── Reference scenario ───────────────────────────────────────────────

class TestGasolineScenario:
    """Two gasoline lines, two material sets, sells both at 900."""

    @pytest.fixture
    def results(self):
        decisions = _make_decisions(materials={"gasoline": 2}, bids={"gasoline": 900})
        return _settle(_make_assets(), decisions, {GAS: 2})

    def test_production_and_sales(self, results):
        assert results.production[GAS] == 2
        assert results.sales_volume[GAS] == 2
        assert results.revenue == 1800
        assert results.revenue_by_vehicle[GAS] == 1800

    def test_variable_costs(self, results):
        assert results.material_cost == 1800
        assert results.sales_admin_cost == 90
        assert results.failure_cost == 360
        assert results.variable_cost == 2250

    def test_fixed_costs(self, results):
        assert results.labor_cost == 0
        assert results.maintenance_cost == 100
        assert results.depreciation_cost == 100
        assert results.interest_cost == 0
        assert results.general_admin_cost == 180
        assert results.fixed_cost == 380

    def test_profit(self, results):
        assert results.operating_profit == -830
        assert results.tax_amount == 0
        assert results.net_profit == -830

    def test_balance_sheet(self, results):
        assets = results.updated_assets
        assert assets.cash == 170
        assert assets.capital == -830
        assert assets.loan == 0
        assert assets.facilities[GAS] == 2


class TestInitialAssetsScenario:
    def test_first_round_with_starting_company(self):
        decisions = _make_decisions(materials={"gasoline": 2}, bids={"gasoline": 900})
        results = _settle(INITIAL_ASSETS, decisions, {GAS: 2})

        assert results.labor_cost == 200
        assert results.maintenance_cost == 200
        assert results.interest_cost == pytest.approx(197.4)
        assert results.fixed_cost == pytest.approx(977.4)
        assert results.net_profit == pytest.approx(-1427.4)
        assert results.updated_assets.cash == pytest.approx(5392.6)
        assert results.updated_assets.capital == pytest.approx(2572.6)


# ── Production and sales limits ──────────────────────────────────────

class TestCapacity:
    def test_lines_cap_production(self):
        decisions = _make_decisions(materials={"gasoline": 5}, bids={"gasoline": 900})
        results = _settle(_make_assets(), decisions, {GAS: 10})
        assert results.production[GAS] == 2
        assert results.sales_volume[GAS] == 2

    def test_allocation_caps_sales(self):
        decisions = _make_decisions(materials={"gasoline": 2}, bids={"gasoline": 900})
        results = _settle(_make_assets(), decisions, {GAS: 1})
        assert results.sales_volume[GAS] == 1
        assert results.revenue == 900

    def test_no_allocation_no_sales(self):
        decisions = _make_decisions(materials={"gasoline": 2}, bids={"gasoline": 900})
        results = _settle(_make_assets(), decisions)
        assert results.sales_volume[GAS] == 0
        assert results.revenue == 0

    def test_sold_never_exceeds_production(self):
        decisions = _make_decisions(
            materials={"gasoline": 1, "diesel": 3},
            expansion={"diesel": 2},
            bids={"gasoline": 900, "diesel": 1500},
        )
        results = _settle(_make_assets(), decisions, {GAS: 5, DIESEL: 5})
        for vehicle in VehicleType:
            assert results.sales_volume[vehicle] <= results.production[vehicle]
        assert results.production[DIESEL] == 2

    def test_expansion_adds_lines_and_spend(self):
        decisions = _make_decisions(expansion={"gasoline": 1})
        results = _settle(_make_assets(), decisions)
        assert results.updated_assets.facilities[GAS] == 3
        assert results.facility_investment == 500
        assert results.maintenance_cost == 150
        assert results.depreciation_cost == 150


# ── Costs ────────────────────────────────────────────────────────────

class TestCosts:
    def test_diesel_material_follows_round_multiplier(self):
        decisions = _make_decisions(materials={"diesel": 1})
        results = _settle(_make_assets(), decisions, round_number=2)
        assert results.material_cost == 2400

    def test_failure_rate_uses_pre_round_safety_level(self):
        decisions = _make_decisions(
            materials={"gasoline": 2},
            bids={"gasoline": 1000},
            rnd=RndDecision(safety_investment=True),
        )
        assets = _make_assets(tech_level=TechLevel(safety=2))
        results = _settle(assets, decisions, {GAS: 2})
        assert results.failure_cost == 300
        assert results.updated_assets.tech_level.safety == 3

    def test_interest_on_loan_after_request_and_repay(self):
        decisions = _make_decisions(finance=FinanceDecision(loan_request=1000, loan_repay=500))
        results = _settle(_make_assets(loan=2820), decisions)
        assert results.interest_cost == pytest.approx(232.4)
        assert results.updated_assets.loan == 3320

    def test_over_repayment_clamps_loan(self):
        decisions = _make_decisions(finance=FinanceDecision(loan_repay=5000))
        results = _settle(_make_assets(loan=1000, cash=10000), decisions)
        assert results.updated_assets.loan == 0
        assert results.interest_cost == 0


class TestLabor:
    @pytest.fixture
    def assets(self):
        return _make_assets(employees=Employees(unskilled=4, skilled=2))

    @pytest.fixture
    def hr(self):
        return HrDecision(new_hires=3, training_unskilled_to_skilled=1, training_skilled_to_master=1)

    def test_labor_includes_upkeep_hiring_and_training(self, assets, hr):
        decisions = _make_decisions(process_level=3, hr=hr)
        assert labor_cost(assets, decisions) == 200 + 120 + 180 + 20 + 30

    def test_automation_forces_labor_to_zero(self, assets, hr):
        decisions = _make_decisions(process_level=4, hr=hr)
        results = _settle(assets, decisions, round_number=4)
        assert results.labor_cost == 0
        assert results.process_tech_cost == 700
        assert results.updated_assets.tech_level.process == 4

    def test_headcount_roll_forward(self):
        assets = _make_assets(employees=Employees(unskilled=4))
        decisions = _make_decisions(hr=HrDecision(
            new_hires=2, training_unskilled_to_skilled=3, training_skilled_to_master=1
        ))
        employees = _settle(assets, decisions).updated_assets.employees
        assert employees.unskilled == 3
        assert employees.skilled == 2
        assert employees.master == 1


# ── Profit and tax ───────────────────────────────────────────────────

class TestProfit:
    def test_positive_profit_is_taxed(self):
        decisions = _make_decisions(materials={"gasoline": 2}, bids={"gasoline": 3000})
        assets = _make_assets(tech_level=TechLevel(safety=5))
        results = _settle(assets, decisions, {GAS: 2})
        assert results.operating_profit == 3100
        assert results.tax_amount == 310
        assert results.net_profit == 2790
        assert results.net_profit == results.operating_profit - results.tax_amount

    def test_loss_is_not_taxed(self):
        results = _settle(_make_assets(), _make_decisions())
        assert results.operating_profit < 0
        assert results.tax_amount == 0
        assert results.net_profit == results.operating_profit


# ── Technology ───────────────────────────────────────────────────────

class TestTechnology:
    def test_any_design_flag_advances_one_level(self):
        decisions = _make_decisions(rnd=RndDecision(design_investments={"gasoline": True, "diesel": True}))
        results = _settle(_make_assets(), decisions)
        assert results.updated_assets.tech_level.design == 2
        assert results.rnd_investment == 400

    def test_design_capped_at_max(self):
        decisions = _make_decisions(rnd=RndDecision(design_investments={"ev": True}))
        results = _settle(_make_assets(tech_level=TechLevel(design=5)), decisions)
        assert results.updated_assets.tech_level.design == 5
        assert results.rnd_investment == 0

    def test_process_level_set_directly(self):
        decisions = _make_decisions(process_level=3)
        results = _settle(_make_assets(), decisions, round_number=2)
        assert results.updated_assets.tech_level.process == 3
        assert results.process_tech_cost == 500

    def test_no_upgrade_cost_when_level_unchanged(self):
        decisions = _make_decisions(process_level=2)
        results = _settle(_make_assets(tech_level=TechLevel(process=2)), decisions)
        assert results.process_tech_cost == 0

    def test_capital_spend_reduces_cash(self):
        decisions = _make_decisions(
            process_level=2,
            rnd=RndDecision(safety_investment=True),
        )
        baseline = _settle(_make_assets(), _make_decisions()).updated_assets.cash
        results = _settle(_make_assets(), decisions)
        assert results.updated_assets.cash == pytest.approx(baseline - 300 - 200)


# ── Purity ───────────────────────────────────────────────────────────

class TestDeterminism:
    def test_identical_inputs_identical_outputs(self):
        assets = INITIAL_ASSETS
        decisions = _make_decisions(
            materials={"gasoline": 2, "diesel": 1},
            bids={"gasoline": 950, "diesel": 1333.33},
            finance=FinanceDecision(loan_request=777.77),
        )
        first = _settle(assets, decisions, {GAS: 1.67, DIESEL: 1})
        second = _settle(assets, decisions, {GAS: 1.67, DIESEL: 1})
        assert first.model_dump() == second.model_dump()

    def test_inputs_not_modified(self):
        assets = _make_assets()
        decisions = _make_decisions(materials={"gasoline": 2}, expansion={"gasoline": 1})
        before = (assets.model_dump(), decisions.model_dump())
        _settle(assets, decisions, {GAS: 2})
        assert (assets.model_dump(), decisions.model_dump()) == before

    def test_currency_fields_rounded_to_cents(self):
        decisions = _make_decisions(
            materials={"gasoline": 2},
            bids={"gasoline": 333.333},
            finance=FinanceDecision(loan_request=123.456),
        )
        results = _settle(_make_assets(), decisions, {GAS: 2})
        for value in (results.revenue, results.interest_cost, results.net_profit,
                      results.updated_assets.cash, results.updated_assets.capital):
            assert round(value, 2) == pytest.approx(value)
