from types import SimpleNamespace

import pytest
from common.approvals import ApprovalError, check_transition
from common.choices import ApprovalStatus, Role
from common.numbering import financial_year_code, next_document_number

PENDING = ApprovalStatus.PENDING_APPROVAL
APPROVED = ApprovalStatus.APPROVED
REJECTED = ApprovalStatus.REJECTED


def _user(role, superuser=False):
    return SimpleNamespace(id=1, role=role, is_authenticated=True, is_superuser=superuser)


@pytest.mark.parametrize("role", [Role.ADMIN, Role.MANAGER])
def test_approvers_may_approve_pending(role):
    check_transition(PENDING, APPROVED, _user(role))


@pytest.mark.parametrize("role", [Role.SALES, Role.WAREHOUSE, Role.ACCOUNTS])
def test_other_roles_are_forbidden(role):
    with pytest.raises(ApprovalError) as exc:
        check_transition(PENDING, APPROVED, _user(role))
    assert exc.value.status_code == 403


def test_superuser_passes_role_gate():
    check_transition(PENDING, APPROVED, _user(Role.SALES, superuser=True))


def test_rejection_requires_reason():
    with pytest.raises(ApprovalError, match="rejection reason"):
        check_transition(PENDING, REJECTED, _user(Role.MANAGER), reason="   ")
    check_transition(PENDING, REJECTED, _user(Role.MANAGER), reason="Wrong batch")


@pytest.mark.parametrize("current", [APPROVED, REJECTED])
@pytest.mark.parametrize("target", [APPROVED, REJECTED])
def test_terminal_states_cannot_transition(current, target):
    with pytest.raises(ApprovalError, match="already"):
        check_transition(current, target, _user(Role.ADMIN), reason="x")


def test_next_document_number_follows_highest():
    assert next_document_number([], "DO", "25") == "DO-25-0001"
    assert next_document_number(["DO-25-0009", "DC-25-0012", None], "DO", "25") == "DO-25-0013"


def test_financial_year_code(settings):
    import datetime

    settings.FINANCIAL_YEAR_START = ""
    assert financial_year_code(datetime.date(2025, 6, 1)) == "25"
    settings.FINANCIAL_YEAR_START = "2024-04-01"
    assert financial_year_code(datetime.date(2025, 2, 1)) == "24"
