import pytest
from sqlalchemy.exc import IntegrityError

from app.core import config
from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.db.models.notification import Notification
from app.db.models.rating import MeetingRating
from app.db.models.report import MeetingReport
from app.services import feedback, notifications


@pytest.fixture
def completed(make_user, make_offer):
    a, b = make_user(), make_user()
    return a, b, make_offer(a, b, status="completed")


# --------------------------
# Ratings
# --------------------------
def test_rating_once_per_meeting(db, completed):
    a, b, meeting = completed

    row = feedback.submit_rating(db, b.id, meeting.id, a.id, 4, comment="  Great host ")
    assert row.rating == 4
    assert row.comment == "Great host"

    with pytest.raises(ValidationError, match="already exists"):
        feedback.submit_rating(db, b.id, meeting.id, a.id, 5)

    # the other direction is a separate rating
    assert feedback.submit_rating(db, a.id, meeting.id, b.id, 5).rated_user_id == b.id


def test_positive_rating_awards_xp(db, completed):
    a, b, meeting = completed

    feedback.submit_rating(db, b.id, meeting.id, a.id, 4)
    feedback.submit_rating(db, a.id, meeting.id, b.id, 3)

    db.expire_all()
    assert a.xp == config.XP_POSITIVE_FEEDBACK
    assert b.xp == 0


def test_rating_requires_completed_meeting(db, make_user, make_offer):
    a, b = make_user(), make_user()
    meeting = make_offer(a, b, status="accepted")

    with pytest.raises(ValidationError, match="Can only rate completed meetings"):
        feedback.submit_rating(db, b.id, meeting.id, a.id, 5)


@pytest.mark.parametrize("value", [0, 6, -1])
def test_rating_out_of_range(db, completed, value):
    a, b, meeting = completed

    with pytest.raises(ValidationError, match="between 1 and 5"):
        feedback.submit_rating(db, b.id, meeting.id, a.id, value)


def test_rating_missing_fields(db, completed):
    a, b, meeting = completed

    with pytest.raises(ValidationError, match="Missing required fields"):
        feedback.submit_rating(db, b.id, meeting.id, a.id, None)


def test_rating_wrong_counterpart(db, completed, make_user):
    a, b, meeting = completed

    with pytest.raises(ValidationError, match="Invalid rated user"):
        feedback.submit_rating(db, b.id, meeting.id, make_user().id, 5)
    with pytest.raises(ValidationError, match="Invalid rated user"):
        feedback.submit_rating(db, b.id, meeting.id, b.id, 5)


def test_rating_by_outsider_is_forbidden(db, completed, make_user):
    a, b, meeting = completed

    with pytest.raises(ForbiddenError):
        feedback.submit_rating(db, make_user().id, meeting.id, a.id, 5)


def test_rating_unknown_meeting(db, completed):
    a, b, _ = completed

    with pytest.raises(NotFoundError):
        feedback.submit_rating(db, b.id, 9999, a.id, 5)


def test_rating_uniqueness_enforced_by_table(db, completed):
    a, b, meeting = completed
    db.add(MeetingRating(meeting_id=meeting.id, rater_id=b.id, rated_user_id=a.id, rating=4))
    db.commit()

    db.add(MeetingRating(meeting_id=meeting.id, rater_id=b.id, rated_user_id=a.id, rating=2))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_rating_insert_conflict_maps_to_duplicate(db, completed, monkeypatch):
    a, b, meeting = completed
    feedback.submit_rating(db, b.id, meeting.id, a.id, 4)
    monkeypatch.setattr(feedback, "_rating_exists", lambda *args: False)

    with pytest.raises(ValidationError, match="Rating already exists"):
        feedback.submit_rating(db, b.id, meeting.id, a.id, 2)
    assert db.query(MeetingRating).count() == 1


def test_rating_summary(db, make_user, make_offer):
    mentor = make_user()
    for score in (5, 4, 3):
        learner = make_user()
        meeting = make_offer(mentor, learner, status="completed")
        feedback.submit_rating(db, learner.id, meeting.id, mentor.id, score)

    summary = feedback.get_rating_summary(db, mentor.id)

    assert summary["averageRating"] == 4.0
    assert summary["totalRatings"] == 3
    assert len(summary["recentRatings"]) == 3


def test_rating_endpoints(client, completed, auth_headers):
    a, b, meeting = completed

    resp = client.post(
        "/meetings/ratings",
        json={"meeting_id": meeting.id, "rated_user_id": a.id, "rating": 5, "comment": "Patient"},
        headers=auth_headers(b),
    )
    assert resp.status_code == 201
    assert resp.json()["message"] == "Rating submitted successfully"
    assert resp.json()["data"]["rater"]["id"] == b.id

    dup = client.post(
        "/meetings/ratings",
        json={"meeting_id": meeting.id, "rated_user_id": a.id, "rating": 5},
        headers=auth_headers(b),
    )
    assert dup.status_code == 400

    listed = client.get(f"/meetings/ratings?meeting_id={meeting.id}", headers=auth_headers(a))
    assert len(listed.json()["data"]) == 1

    summary = client.get(f"/user/ratings?user_id={a.id}", headers=auth_headers(b)).json()["data"]
    assert summary["averageRating"] == 5.0
    assert summary["totalRatings"] == 1
    assert summary["recentRatings"][0]["comment"] == "Patient"


# --------------------------
# Reports
# --------------------------
def test_report_once_per_meeting(db, completed):
    a, b, meeting = completed

    report = feedback.submit_report(db, b.id, meeting.id, a.id, "hard", "No-show and rude messages")
    assert report.status == "pending"
    assert report.report_category == "hard"

    with pytest.raises(ValidationError, match="already exists"):
        feedback.submit_report(db, b.id, meeting.id, a.id, "easy", "Again")


def test_report_insert_conflict_maps_to_duplicate(db, completed, monkeypatch):
    a, b, meeting = completed
    feedback.submit_report(db, b.id, meeting.id, a.id, "hard", "No-show")
    monkeypatch.setattr(feedback, "_report_exists", lambda *args: False)

    with pytest.raises(ValidationError, match="Report already exists"):
        feedback.submit_report(db, b.id, meeting.id, a.id, "easy", "Late again")
    assert db.query(MeetingReport).count() == 1


def test_report_list_status_filter(db, completed, client, auth_headers):
    a, b, meeting = completed
    report = feedback.submit_report(db, b.id, meeting.id, a.id, "medium", "Late")

    assert [r.id for r in feedback.list_reports(db, status="pending")] == [report.id]
    assert feedback.list_reports(db, status="resolved") == []
    assert len(feedback.list_reports(db, status="all")) == 1
    with pytest.raises(ValidationError, match="Invalid status"):
        feedback.list_reports(db, status="archived")

    resp = client.get("/meetings/reports?status=archived", headers=auth_headers(a))
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_report_validation(db, completed):
    a, b, meeting = completed

    with pytest.raises(ValidationError, match="Missing required fields"):
        feedback.submit_report(db, b.id, meeting.id, a.id, "hard", "   ")
    with pytest.raises(ValidationError, match="Invalid report category"):
        feedback.submit_report(db, b.id, meeting.id, a.id, "severe", "Rude")
    with pytest.raises(ValidationError, match="Cannot report yourself"):
        feedback.submit_report(db, b.id, meeting.id, b.id, "hard", "Rude")


def test_report_requires_completed_meeting(db, make_user, make_offer):
    a, b = make_user(), make_user()
    meeting = make_offer(a, b, status="started")

    with pytest.raises(ValidationError, match="Can only report on completed meetings"):
        feedback.submit_report(db, b.id, meeting.id, a.id, "medium", "Late")


def test_report_notifies_moderators(db, completed, make_user):
    a, b, meeting = completed
    moderator = make_user(role="moderator")
    admin = make_user(role="admin")

    report = feedback.submit_report(db, b.id, meeting.id, a.id, "medium", "Late twice")

    rows = db.query(Notification).order_by(Notification.user_id).all()
    assert [n.user_id for n in rows] == [moderator.id, admin.id]
    assert rows[0].type == "meeting_report"
    assert rows[0].data == {"target_type": "meeting", "target_id": meeting.id, "report_id": report.id}


def test_report_survives_notification_failure(db, completed, make_user, monkeypatch):
    a, b, meeting = completed
    make_user(role="moderator")

    def broken(**kwargs):
        raise RuntimeError("notification store down")

    monkeypatch.setattr(notifications, "Notification", broken)
    report = feedback.submit_report(db, b.id, meeting.id, a.id, "easy", "Forgot materials")

    assert db.query(MeetingReport).filter(MeetingReport.id == report.id).count() == 1
    assert db.query(Notification).count() == 0


def test_report_list_visibility(client, completed, make_user, make_offer, auth_headers):
    a, b, meeting = completed
    c, d = make_user(), make_user()
    other_meeting = make_offer(c, d, status="completed")
    feedback_headers = auth_headers(b)

    mine = client.post(
        "/meetings/reports",
        json={"meeting_id": meeting.id, "reported_user_id": a.id, "report_category": "easy", "report_reason": "Late"},
        headers=feedback_headers,
    )
    assert mine.status_code == 201
    client.post(
        "/meetings/reports",
        json={"meeting_id": other_meeting.id, "reported_user_id": c.id, "report_category": "hard", "report_reason": "Abusive"},
        headers=auth_headers(d),
    )

    as_reported = client.get("/meetings/reports", headers=auth_headers(a)).json()["data"]
    assert [r["id"] for r in as_reported] == [mine.json()["data"]["id"]]

    as_moderator = client.get("/meetings/reports", headers=auth_headers(make_user(role="moderator"))).json()["data"]
    assert len(as_moderator) == 2


def test_moderator_sees_report_notification(client, completed, make_user, auth_headers):
    a, b, meeting = completed
    moderator = make_user(role="moderator")

    client.post(
        "/meetings/reports",
        json={"meeting_id": meeting.id, "reported_user_id": a.id, "report_category": "hard", "report_reason": "Threats"},
        headers=auth_headers(b),
    )

    inbox = client.get("/notifications", headers=auth_headers(moderator)).json()["data"]
    assert len(inbox) == 1
    assert inbox[0]["title"] == "New Report"
    assert inbox[0]["status"] == "unread"
    assert client.get("/notifications", headers=auth_headers(a)).json()["data"] == []
