from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.core import config
from app.core.errors import NotFoundError, ValidationError
from app.core.timeutil import utcnow
from app.db.models.report import MeetingReport
from app.services import feedback, moderation


@pytest.fixture
def report_against(db, make_user, make_offer):
    """File a report against ``target`` from a fresh reporter on a fresh completed meeting."""

    def _report(target, category="hard", reason="Abusive language"):
        reporter = make_user()
        meeting = make_offer(target, reporter, status="completed")
        return feedback.submit_report(db, reporter.id, meeting.id, target.id, category, reason)

    return _report


def test_violation_counts_by_category(db, make_user, report_against):
    target = make_user()
    report_against(target, "easy")
    report_against(target, "hard")
    report_against(target, "hard")

    assert moderation.get_violation_counts(db, target.id) == {"easy": 1, "medium": 0, "hard": 2, "total": 3}


def test_dismissed_reports_do_not_count(db, make_user, report_against):
    target = make_user()
    moderator = make_user(role="moderator")
    report = report_against(target, "hard")
    report_against(target, "hard")

    moderation.apply_report_action(db, report.id, moderator.id, "dismiss", "Not a violation")

    assert moderation.get_violation_counts(db, target.id)["hard"] == 1


def test_hard_threshold_marks_user_ban_eligible(client, make_user, report_against, auth_headers):
    target = make_user()
    for _ in range(3):
        report_against(target, "hard")

    resp = client.get(f"/user/ban-status?user_id={target.id}", headers=auth_headers(target))

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["violation_counts"]["hard"] == 3
    assert data["thresholds"] == {"easy": 15, "medium": 10, "hard": 3}
    assert data["thresholds_reached"] == {"easy": False, "medium": False, "hard": True}
    assert data["ban_eligible"] is True
    assert data["is_banned"] is False


def test_auto_ban_when_enabled(db, make_user, report_against, monkeypatch):
    monkeypatch.setattr(config, "AUTO_BAN_ENABLED", True)
    target = make_user()
    report_against(target, "hard")
    report_against(target, "hard")
    assert moderation.get_ban_status(db, target.id)["is_banned"] is False

    report_against(target, "hard")

    status = moderation.get_ban_status(db, target.id)
    assert status["is_banned"] is True
    assert "hard" in status["ban_reason"]


def test_report_survives_auto_ban_failure(db, make_user, report_against, monkeypatch):
    monkeypatch.setattr(config, "AUTO_BAN_ENABLED", True)
    target = make_user()
    report_against(target, "hard")
    report_against(target, "hard")

    def broken(*args, **kwargs):
        raise OperationalError("UPDATE user_ban_status", {}, Exception("db down"))

    monkeypatch.setattr(moderation, "set_ban_status", broken)
    report = report_against(target, "hard")

    assert report.status == "pending"
    assert db.query(MeetingReport).filter(MeetingReport.id == report.id).count() == 1
    assert moderation.get_violation_counts(db, target.id)["hard"] == 3
    assert moderation.get_ban_status(db, target.id)["is_banned"] is False


def test_enforce_thresholds_below_limit(db, make_user, report_against):
    target = make_user()
    report_against(target, "medium")

    assert moderation.enforce_thresholds(db, target.id) is False
    assert moderation.get_ban_status(db, target.id)["is_banned"] is False


def test_ban_status_defaults_to_caller(client, make_user, auth_headers):
    user = make_user()

    data = client.get("/user/ban-status", headers=auth_headers(user)).json()["data"]

    assert data["user_id"] == user.id
    assert data["is_banned"] is False
    assert data["violation_counts"]["total"] == 0


def test_ban_status_unknown_user(db):
    with pytest.raises(NotFoundError):
        moderation.get_ban_status(db, 9999)


def test_expired_ban_reads_as_not_banned(db, make_user):
    user = make_user()
    moderation.set_ban_status(db, user.id, True, "Spam", expires_at=utcnow() - timedelta(minutes=1))

    assert moderation.get_ban_status(db, user.id)["is_banned"] is False

    moderation.set_ban_status(db, user.id, True, "Spam", expires_at=utcnow() + timedelta(days=7))
    status = moderation.get_ban_status(db, user.id)
    assert status["is_banned"] is True
    assert status["ban_reason"] == "Spam"


def test_unban_clears_record(db, make_user):
    user = make_user()
    moderation.set_ban_status(db, user.id, True, "Spam")

    ban = moderation.set_ban_status(db, user.id, False)

    assert ban.is_banned is False
    assert ban.ban_reason is None
    assert ban.banned_at is None


def test_patch_ban_status_requires_moderator(client, make_user, auth_headers):
    user = make_user()
    body = {"user_id": user.id, "is_banned": True, "ban_reason": "Harassment"}

    denied = client.patch("/user/ban-status", json=body, headers=auth_headers(make_user()))
    assert denied.status_code == 403

    resp = client.patch("/user/ban-status", json=body, headers=auth_headers(make_user(role="moderator")))
    assert resp.status_code == 200
    assert resp.json()["message"] == "Ban status updated successfully"
    assert resp.json()["data"]["is_banned"] is True
    assert resp.json()["data"]["ban_reason"] == "Harassment"


# --------------------------
# Moderator actions
# --------------------------
@pytest.mark.parametrize("action,expected", [("dismiss", "dismissed"), ("resolve", "resolved")])
def test_report_actions_update_status(db, make_user, report_against, action, expected):
    target = make_user()
    moderator = make_user(role="moderator")
    report = report_against(target)

    result = moderation.apply_report_action(db, report.id, moderator.id, action, "Reviewed")

    assert result == {"report_id": report.id, "action": action, "report_status": expected, "banned_user_id": None}
    db.expire_all()
    stored = db.query(MeetingReport).filter(MeetingReport.id == report.id).one()
    assert stored.moderator_id == moderator.id
    assert stored.moderator_notes == "Reviewed"
    assert stored.resolved_at is not None


def test_ban_action_bans_reported_user(db, make_user, report_against):
    target = make_user()
    moderator = make_user(role="admin")
    report = report_against(target)

    result = moderation.apply_report_action(db, report.id, moderator.id, "ban")

    assert result["report_status"] == "resolved"
    assert result["banned_user_id"] == target.id
    assert moderation.get_ban_status(db, target.id)["is_banned"] is True


def test_report_action_validation(db, make_user, report_against):
    moderator = make_user(role="moderator")
    report = report_against(make_user())

    with pytest.raises(ValidationError, match="Invalid moderation action"):
        moderation.apply_report_action(db, report.id, moderator.id, "delete")
    with pytest.raises(NotFoundError):
        moderation.apply_report_action(db, 9999, moderator.id, "dismiss")

    moderation.apply_report_action(db, report.id, moderator.id, "resolve")
    with pytest.raises(ValidationError, match="already been processed"):
        moderation.apply_report_action(db, report.id, moderator.id, "dismiss")


def test_every_action_has_a_handler():
    assert set(moderation.ACTION_HANDLERS) == set(moderation.ModerationAction)


def test_admin_report_queue(client, make_user, report_against, auth_headers):
    moderator = make_user(role="moderator")
    first = report_against(make_user())
    report_against(make_user())

    assert client.get("/admin/meeting-reports", headers=auth_headers(make_user())).status_code == 403

    queue = client.get("/admin/meeting-reports", headers=auth_headers(moderator)).json()["data"]
    assert len(queue) == 2

    resp = client.post(
        f"/admin/meeting-reports/{first.id}/action",
        json={"action": "dismiss", "reason": "Duplicate of a resolved case"},
        headers=auth_headers(moderator),
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Report dismissed"

    queue = client.get("/admin/meeting-reports", headers=auth_headers(moderator)).json()["data"]
    assert len(queue) == 1
