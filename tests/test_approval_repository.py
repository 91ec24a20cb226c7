from datetime import datetime, timedelta

import pytest

from autoflow.core.errors import ApprovalError, ApprovalNotFoundError
from autoflow.domain.approval import (
    ApprovalFilters,
    ApprovalRequestRepository,
    ApprovalStatus,
    Pagination,
    Sorting,
)

T0 = datetime(2026, 3, 20, 12, 0, 0)


def _create(repo: ApprovalRequestRepository, automation_id: str = "flow_1", timeout_ms: int = 60_000):
    return repo.create_pending(
        automation_id=automation_id,
        user_id="user_1",
        trigger_data={"amount": 100},
        actions_preview=[{"type": "slack.send_message"}],
        timeout_ms=timeout_ms,
        now=T0,
    )


def test_create_pending_sets_deadlines_and_history(db) -> None:
    repo = ApprovalRequestRepository(db)

    request = _create(repo)

    assert request.status == ApprovalStatus.PENDING
    assert request.requested_by_user_id == "user_1"
    assert request.expires_at == T0 + timedelta(seconds=60)
    assert request.auto_execute_at == request.expires_at
    assert request.automation_run_id
    assert [h.action for h in repo.history(request.id)] == ["requested"]


def test_create_pending_rejects_non_positive_timeout(db) -> None:
    with pytest.raises(ApprovalError):
        _create(ApprovalRequestRepository(db), timeout_ms=0)


def test_get_unknown_request(db) -> None:
    with pytest.raises(ApprovalNotFoundError):
        ApprovalRequestRepository(db).get("missing")


def test_get_all_filters_sorts_and_paginates(db) -> None:
    repo = ApprovalRequestRepository(db)
    late = _create(repo, "flow_1", timeout_ms=120_000)
    early = _create(repo, "flow_2", timeout_ms=30_000)
    decided = _create(repo, "flow_3")
    repo.mark_rejected(decided.id, "user_1", "nope")

    page = repo.get_all(
        ApprovalFilters(status=ApprovalStatus.PENDING),
        Pagination(limit=1, offset=0),
        Sorting(sort_by="expires_at", sort_order="asc"),
    )

    assert [r.id for r in page.data] == [early.id]
    assert page.meta.total == 2
    assert page.meta.has_next is True
    assert page.meta.has_previous is False

    second = repo.get_all(
        ApprovalFilters(status=ApprovalStatus.PENDING),
        Pagination(limit=1, offset=1),
        Sorting(sort_by="expires_at", sort_order="asc"),
    )
    assert [r.id for r in second.data] == [late.id]
    assert second.meta.has_next is False


def test_decision_only_applies_to_pending_requests(db) -> None:
    repo = ApprovalRequestRepository(db)
    request = _create(repo)

    approved = repo.mark_approved(request.id, "user_1")
    assert approved.status == ApprovalStatus.APPROVED
    assert approved.approval_method == "manual"
    assert approved.approved_by_user_id == "user_1"

    with pytest.raises(ApprovalError) as info:
        repo.mark_rejected(request.id, "user_1", "too late")
    assert info.value.status_code == 409
    assert repo.get(request.id).status == ApprovalStatus.APPROVED


def test_rejection_keeps_reason(db) -> None:
    repo = ApprovalRequestRepository(db)
    request = _create(repo)

    rejected = repo.mark_rejected(request.id, "user_1", "Wrong channel")

    assert rejected.rejection_reason == "Wrong channel"
    history = repo.history(request.id)
    assert [h.action for h in history] == ["requested", "rejected"]
    assert history[-1].reason == "Wrong channel"
    assert history[-1].actor_user_id == "user_1"


def test_claim_expired_only_takes_due_requests(db) -> None:
    repo = ApprovalRequestRepository(db)
    due = _create(repo, timeout_ms=1_000)
    not_due = _create(repo, timeout_ms=600_000)

    claimed = repo.claim_expired(now=T0 + timedelta(seconds=5))

    assert [r.id for r in claimed] == [due.id]
    assert claimed[0].status == ApprovalStatus.AUTO_EXECUTED
    assert claimed[0].approval_method == "auto"
    assert repo.get(not_due.id).status == ApprovalStatus.PENDING


def test_claim_expired_claims_each_request_once(session_factory) -> None:
    with session_factory() as first_db, session_factory() as second_db:
        first = ApprovalRequestRepository(first_db)
        second = ApprovalRequestRepository(second_db)
        request = _create(first, timeout_ms=1_000)

        later = T0 + timedelta(minutes=1)
        assert [r.id for r in first.claim_expired(now=later)] == [request.id]
        assert second.claim_expired(now=later) == []
        assert [h.action for h in first.history(request.id)] == ["requested", "auto_executed"]
