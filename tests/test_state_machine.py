"""Tests for room and decision state transitions."""

import pytest

from core.exceptions import ApprovalsMissing, DecisionAlreadySubmitted
from core.state_machine import DecisionStateMachine, DecisionStatus, RoomStateMachine
from models import RoomStatus
from services.game_state import (
    Approvals,
    FinanceDecision,
    MarketingDecision,
    RoundDecisions,
    VehicleType,
)


class TestOpenPayload:
    def test_everything_zeroed(self):
        payload = DecisionStateMachine.open_payload()
        assert payload.is_submitted is False
        assert payload.finance.loan_request == 0
        assert payload.finance.loan_repay == 0
        assert all(v == 0 for v in payload.production.material_purchase.values())
        assert all(v == 0 for v in payload.production.facility_expansion.values())
        assert payload.production.process_tech_level == 1
        assert not any(payload.rnd.design_investments.values())
        assert payload.rnd.safety_investment is False
        assert all(v == 0 for v in payload.marketing.bid_prices.values())
        assert payload.hr.new_hires == 0
        assert not any(payload.approvals.model_dump().values())
        assert payload.ceo_strategy == ""

    def test_every_vehicle_present(self):
        payload = DecisionStateMachine.open_payload()
        assert set(payload.marketing.bid_prices) == set(VehicleType)

    def test_fresh_payload_each_call(self):
        assert DecisionStateMachine.open_payload() is not DecisionStateMachine.open_payload()


class TestSubmit:
    def test_submit_keeps_saved_values(self):
        decisions = RoundDecisions(
            finance=FinanceDecision(loan_request=500),
            marketing=MarketingDecision(bid_prices={"gasoline": 900}),
            ceo_strategy="undercut on gasoline",
        )
        submitted = DecisionStateMachine.submit(decisions)
        assert submitted.is_submitted is True
        assert submitted.finance.loan_request == 500
        assert submitted.marketing.bid_prices[VehicleType.GASOLINE] == 900
        assert submitted.ceo_strategy == "undercut on gasoline"
        assert decisions.is_submitted is False

    def test_submit_is_idempotent(self):
        submitted = DecisionStateMachine.submit(RoundDecisions())
        assert DecisionStateMachine.submit(submitted) == submitted

    def test_status(self):
        decisions = RoundDecisions()
        assert DecisionStateMachine.status(decisions) == DecisionStatus.OPEN
        assert DecisionStateMachine.status(DecisionStateMachine.submit(decisions)) == DecisionStatus.SUBMITTED


class TestEnsureMutable:
    def test_open_is_mutable(self):
        DecisionStateMachine.ensure_mutable(RoundDecisions())

    def test_submitted_rejected(self):
        with pytest.raises(DecisionAlreadySubmitted):
            DecisionStateMachine.ensure_mutable(RoundDecisions(is_submitted=True))


class TestEnsureApproved:
    def test_all_roles_approved(self):
        approvals = Approvals(cfo=True, cpo=True, cro=True, cmo=True, cho=True)
        DecisionStateMachine.ensure_approved(RoundDecisions(approvals=approvals))

    def test_missing_roles_listed(self):
        approvals = Approvals(cfo=True, cmo=True)
        with pytest.raises(ApprovalsMissing) as exc_info:
            DecisionStateMachine.ensure_approved(RoundDecisions(approvals=approvals))
        assert exc_info.value.missing == ["cpo", "cro", "cho"]

    def test_force_submit_ignores_approvals(self):
        submitted = DecisionStateMachine.submit(RoundDecisions())
        assert submitted.is_submitted is True
        assert submitted.approvals.missing


class TestRoomTransitions:
    @pytest.mark.parametrize("current,target", [
        (RoomStatus.WAITING, RoomStatus.PLAYING),
        (RoomStatus.PLAYING, RoomStatus.FINISHED),
        (RoomStatus.FINISHED, RoomStatus.DELETED),
    ])
    def test_allowed(self, current, target):
        assert RoomStateMachine.can_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        (RoomStatus.FINISHED, RoomStatus.PLAYING),
        (RoomStatus.DELETED, RoomStatus.WAITING),
        (RoomStatus.WAITING, RoomStatus.FINISHED),
    ])
    def test_rejected(self, current, target):
        assert not RoomStateMachine.can_transition(current, target)
