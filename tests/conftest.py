from datetime import timedelta
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core import config
from app.core.rate_limit import reset_rate_limiters
from app.core.security import create_access_token
from app.core.timeutil import utcnow
from app.db.base import Base, get_db
from app.db.init_db import init_db
from app.db.models.conversation import Conversation
from app.db.models.meeting import MeetingOffer
from app.db.models.skill import Skill
from app.db.models.user import User
from app.main import app

_seq = count(1)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _fresh_rate_limiters(monkeypatch):
    monkeypatch.setattr(config, "REDIS_URL", None)
    reset_rate_limiters()
    yield
    reset_rate_limiters()


@pytest.fixture
def make_user(db):
    def _make(role="user", full_name=None):
        n = next(_seq)
        user = User(
            email=f"user{n}@example.com",
            username=f"user{n}",
            full_name=full_name or f"User {n}",
            password_hash="not-a-real-hash",
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_skill(db):
    def _make(name="Guitar", hourly_rate=None):
        skill = Skill(name=name, category="music", hourly_rate=hourly_rate)
        db.add(skill)
        db.commit()
        db.refresh(skill)
        return skill

    return _make


@pytest.fixture
def make_conversation(db):
    def _make(user1, user2):
        conversation = Conversation(user1_id=user1.id, user2_id=user2.id)
        db.add(conversation)
        db.commit()
        db.refresh(conversation)
        return conversation

    return _make


@pytest.fixture
def make_offer(db, make_skill, make_conversation):
    """Insert an offer directly, bypassing the lifecycle checks."""

    def _make(inviter, invitee, status="pending", meeting_date=None, duration=60, skill=None):
        skill = skill or make_skill()
        conversation = make_conversation(inviter, invitee)
        offer = MeetingOffer(
            conversation_id=conversation.id,
            inviter_id=inviter.id,
            invitee_id=invitee.id,
            skill_id=skill.id,
            meeting_location="Library",
            meeting_date=meeting_date or utcnow() + timedelta(days=1),
            meeting_duration=duration,
            status=status,
        )
        db.add(offer)
        db.commit()
        db.refresh(offer)
        return offer

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}

    return _headers
