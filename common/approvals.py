"""Approval workflow shared by delivery challans and material returns.

pending_approval -> approved | rejected. Both outcomes are terminal; a
correction needs a new compensating document.
"""

import logging

from django.utils import timezone

from .choices import ApprovalStatus
from .errors import DomainError
from .permissions import APPROVER_ROLES, user_has_role

logger = logging.getLogger("audit")

_ALLOWED = {
    ApprovalStatus.PENDING_APPROVAL: {ApprovalStatus.APPROVED, ApprovalStatus.REJECTED},
    ApprovalStatus.APPROVED: set(),
    ApprovalStatus.REJECTED: set(),
}


class ApprovalError(DomainError):
    pass


def check_transition(current: str, target: str, user, reason: str = "") -> None:
    """Raise ApprovalError unless ``user`` may move a document from current to target."""
    if target not in _ALLOWED:
        raise ApprovalError(f"Unknown approval status: {target}")
    if not user_has_role(user, APPROVER_ROLES):
        raise ApprovalError("Only an admin or manager can approve or reject documents.", status_code=403)
    if target not in _ALLOWED.get(current, set()):
        raise ApprovalError(f"Document is already {ApprovalStatus(current).label.lower()}.")
    if target == ApprovalStatus.REJECTED and not (reason or "").strip():
        raise ApprovalError("Please enter a rejection reason")


def transition(document, target: str, user, reason: str = "", status_field: str = "approval_status"):
    """Apply an approval transition to ``document`` and save it.

    The document model must carry ``approved_by``/``approved_at``,
    ``rejected_by``/``rejected_at`` and ``rejection_reason`` fields.
    """
    current = getattr(document, status_field)
    check_transition(current, target, user, reason)

    now = timezone.now()
    setattr(document, status_field, target)
    fields = [status_field, "updated_at"]
    if target == ApprovalStatus.APPROVED:
        document.approved_by = user
        document.approved_at = now
        fields += ["approved_by", "approved_at"]
    else:
        document.rejected_by = user
        document.rejected_at = now
        document.rejection_reason = reason.strip()
        fields += ["rejected_by", "rejected_at", "rejection_reason"]
    document.save(update_fields=fields)

    try:
        logger.info(
            "approval.status_changed",
            extra={
                "event": "approval.status_changed",
                "document": document._meta.label,
                "document_id": document.pk,
                "status_from": current,
                "status_to": target,
                "user_id": getattr(user, "id", None),
            },
        )
    except Exception:
        pass
    return document
