"""Tests for the presentation adapter."""

from datetime import datetime

import pytest

from apwf.application.decision_protocol import ApprovalSession
from apwf.application.presentation.presenter import (
    ApprovalPresenter,
    format_timestamp,
    unique_participant_ids,
)
from apwf.application.presentation.view_models import StageAction
from apwf.application.stage_aggregator import aggregate
from apwf.domain.directory.user_directory import StaticUserDirectory
from apwf.domain.errors import TransportError
from apwf.domain.models.stage import StageStatus

from tests.fakes.builders import approver, make_approval, observer


@pytest.fixture
def presenter(directory_users) -> ApprovalPresenter:
    return ApprovalPresenter(StaticUserDirectory(directory_users))


async def _opened(store) -> ApprovalSession:
    session = ApprovalSession(store=store, approval_id=1)
    await session.open()
    return session


class TestDetail:
    @pytest.mark.asyncio
    async def test_detail_for_undecided_approver(self, presenter, two_stage_store) -> None:
        session = await _opened(two_stage_store)

        view = presenter.detail(session, viewer_id=10)

        assert view.status_label == "In review"
        assert view.initiator == "Iris Initiator"
        assert view.participants == ["Alice Approver", "bob", "Olga Observer", "Carol Second"]
        assert view.actionable_stage == 1

        first, second = view.stages
        assert first.label == "Stage 1"
        assert first.name == "Legal"
        assert first.message == "Check the contract terms"
        assert first.is_current is True
        assert first.actions == [StageAction.APPROVE, StageAction.REJECT]
        assert first.approvers == ["Alice Approver", "bob"]
        assert first.observers == ["Olga Observer"]
        assert second.status == StageStatus.LOCKED
        assert second.status_label == "Locked"
        assert second.actions == []

    @pytest.mark.asyncio
    async def test_observer_sees_no_actions(self, presenter, two_stage_store) -> None:
        session = await _opened(two_stage_store)
        view = presenter.detail(session, viewer_id=30)
        assert view.actionable_stage is None
        assert all(not s.actions for s in view.stages)

    @pytest.mark.asyncio
    async def test_decided_viewer_sees_read_only_decision(self, presenter, two_stage_store) -> None:
        session = await _opened(two_stage_store)
        await session.submit_decision(1, "approve", "fine")

        view = presenter.detail(session, viewer_id=10)

        assert view.stages[0].actions == []
        assert view.stages[0].viewer_decision == "Approved"

    @pytest.mark.asyncio
    async def test_busy_session_hides_actions(self, presenter, two_stage_store) -> None:
        session = await _opened(two_stage_store)
        session._in_flight = 1
        view = presenter.detail(session, viewer_id=10)
        assert view.actionable_stage is None

    @pytest.mark.asyncio
    async def test_comment_author_falls_back_to_directory(self, presenter, two_stage_store) -> None:
        session = await _opened(two_stage_store)
        await session.submit_comment("from alice")

        view = presenter.detail(session, viewer_id=10)

        assert [c.author for c in view.comments] == ["Iris Initiator", "Alice Approver"]

    def test_detail_requires_loaded_session(self, presenter, two_stage_store) -> None:
        session = ApprovalSession(store=two_stage_store, approval_id=1)
        with pytest.raises(ValueError):
            presenter.detail(session, viewer_id=10)

    def test_unknown_users_render_as_ids(self) -> None:
        presenter = ApprovalPresenter(StaticUserDirectory())
        approval = make_approval()
        stage = aggregate(approval, [approver(42, 1)])[0]

        view = presenter.stage_view(approval, stage, viewer_id=None)

        assert view.approvers == ["#42"]
        assert view.actions == []


class TestActions:
    @pytest.mark.asyncio
    async def test_decide_success(self, presenter, two_stage_store) -> None:
        session = await _opened(two_stage_store)
        outcome = await presenter.decide(session, 1, StageAction.APPROVE, "ok")
        assert outcome.ok is True
        assert outcome.error is None

    @pytest.mark.asyncio
    async def test_decide_validation_failure_is_reported_not_raised(
        self, presenter, two_stage_store
    ) -> None:
        session = await _opened(two_stage_store)
        outcome = await presenter.decide(session, 1, StageAction.REJECT, "")
        assert outcome.ok is False
        assert outcome.kind == "ValidationError"
        assert "comment" in outcome.error

    @pytest.mark.asyncio
    async def test_comment_transport_failure_is_reported(self, presenter, two_stage_store) -> None:
        session = await _opened(two_stage_store)
        two_stage_store.failures["submit_comment"] = TransportError("denied", status_code=403)
        outcome = await presenter.comment(session, "hello")
        assert outcome.ok is False
        assert outcome.kind == "TransportError"
        assert outcome.error == "denied (HTTP 403)"


class TestHelpers:
    def test_format_timestamp(self) -> None:
        assert format_timestamp(None) == "-"
        assert format_timestamp(datetime(2025, 1, 2, 3, 4)) == "02.01.2025 03:04"

    def test_unique_participant_ids_keeps_first_seen_order(self) -> None:
        participants = [approver(2, 1), observer(1, 1), approver(2, 2), approver(3, 2)]
        assert unique_participant_ids(participants) == [2, 1, 3]

    def test_summary(self, presenter) -> None:
        summary = presenter.summary(make_approval(message="Contract v2"))
        assert summary.status == "review"
        assert summary.status_label == "In review"
        assert summary.updated_at == "01.03.2025 09:00"
