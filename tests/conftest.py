import pytest

from apwf.domain.models.approval import ApprovalStatus
from apwf.domain.models.user import DirectoryUser

from tests.fakes.builders import approver, make_approval, make_comment, observer
from tests.fakes.fake_approval_store import FakeApprovalStore


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Prevent unit tests from picking up developer machine configuration.

    If a test needs an env var, it should set it explicitly via monkeypatch.
    """
    monkeypatch.delenv("APWF_BASE_URL", raising=False)
    monkeypatch.delenv("APWF_TOKEN", raising=False)


@pytest.fixture
def directory_users() -> list[DirectoryUser]:
    return [
        DirectoryUser(id=1, username="initiator", full_name="Iris Initiator"),
        DirectoryUser(id=10, username="alice", full_name="Alice Approver"),
        DirectoryUser(id=11, username="bob"),
        DirectoryUser(id=20, username="carol", full_name="Carol Second"),
        DirectoryUser(id=30, username="olga", full_name="Olga Observer"),
    ]


@pytest.fixture
def two_stage_store(directory_users: list[DirectoryUser]) -> FakeApprovalStore:
    """Approval in review at stage 1; users 10 and 11 approve stage 1, 20 stage 2."""
    return FakeApprovalStore(
        make_approval(status=ApprovalStatus.REVIEW, current_stage=1),
        [
            approver(10, 1, stage_name="Legal", stage_message="Check the contract terms"),
            approver(11, 1),
            observer(30, 1),
            approver(20, 2, stage_name="Security"),
        ],
        comments=[make_comment(1, "Ready for review", author="Iris Initiator")],
        users=directory_users,
        me=directory_users[1],
        acting_user=10,
    )
