from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from nutribot import models  # noqa: F401
from nutribot.database import Base
from nutribot.models.meal_log import MealCategory
from nutribot.services.ai import AIServiceError, MealAnalysis
from nutribot.services.storage import Storage
from nutribot.services.transport import TransportError

# 12:00 in Europe/Istanbul (UTC+3)
FIXED_NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


class FakeTransport:
    def __init__(self):
        self.sent: list[tuple[str, str, list | None]] = []
        self.fail_for: set[str] = set()

    def send_text(self, recipient: str, body: str) -> None:
        if recipient in self.fail_for:
            raise TransportError(f"cannot reach {recipient}")
        self.sent.append((recipient, body, None))

    def send_choices(self, recipient: str, body: str, options) -> None:
        if recipient in self.fail_for:
            raise TransportError(f"cannot reach {recipient}")
        self.sent.append((recipient, body, list(options)))

    def bodies(self, recipient: str | None = None) -> list[str]:
        return [body for to, body, _ in self.sent if recipient is None or to == recipient]

    @property
    def last(self) -> str:
        return self.sent[-1][1]


class FakeAI:
    def __init__(self, calories: float = 450.0, description: str = "Izgara tavuk, pilav"):
        self.analysis = MealAnalysis(calories=calories, description=description)
        self.advice = "🎯 Harika gidiyorsun."
        self.error: Exception | None = None
        self.calls: list[tuple[str, object]] = []

    def _result(self, value):
        if self.error is not None:
            raise self.error
        return value

    def analyze_meal_image(self, path):
        self.calls.append(("image", path))
        return self._result(self.analysis)

    def analyze_meal_text(self, text):
        self.calls.append(("text", text))
        return self._result(self.analysis)

    def get_advice(self, totals, goals):
        self.calls.append(("advice", totals))
        return self._result(self.advice)

    def fail(self, message: str = "provider down") -> None:
        self.error = AIServiceError(message)


@pytest.fixture
def storage():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    yield Storage(factory)
    engine.dispose()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def ai():
    return FakeAI()


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def make_user(storage):
    """Create an onboarded user with the given meal times."""

    def _make(user_id="905551112233", breakfast="09:00", lunch="13:00", dinner="19:00",
              tz="Europe/Istanbul", **fields):
        storage.create_user(user_id, timezone=tz)
        storage.update_meal_time(user_id, MealCategory.BREAKFAST, breakfast)
        storage.update_meal_time(user_id, MealCategory.LUNCH, lunch)
        storage.update_meal_time(user_id, MealCategory.DINNER, dinner)
        storage.complete_onboarding(user_id)
        if fields:
            storage._update_user(user_id, fields)
        return storage.require_user(user_id)

    return _make
