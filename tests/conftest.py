"""Shared test configuration and fixtures for recurrence_engine tests."""

from datetime import datetime
from typing import Any

import pytest

from recurrence_engine.date_arithmetic import DateArithmetic
from recurrence_engine.generator import RecurrenceGenerator
from recurrence_engine.materializer import OccurrenceMaterializer
from recurrence_engine.models import EndsAfter, EventTemplate, RecurrencePattern
from recurrence_engine.settings import EngineSettings


@pytest.fixture
def test_settings() -> EngineSettings:
    """Engine settings isolated from any .env file."""
    return EngineSettings(_env_file=None)


@pytest.fixture
def date_arithmetic(test_settings: EngineSettings) -> DateArithmetic:
    """Sunday-start calendar primitives."""
    return DateArithmetic(week_start=test_settings.week_start)


@pytest.fixture
def generator(date_arithmetic: DateArithmetic, test_settings: EngineSettings) -> RecurrenceGenerator:
    """Recurrence generator with default limits."""
    return RecurrenceGenerator(date_arithmetic=date_arithmetic, settings=test_settings)


@pytest.fixture
def materializer(generator: RecurrenceGenerator) -> OccurrenceMaterializer:
    """Materializer sharing the test generator."""
    return OccurrenceMaterializer(generator=generator)


@pytest.fixture
def single_template() -> EventTemplate:
    """Non-recurring one hour event on 2025-01-15."""
    return EventTemplate(
        id="single-event",
        title="Dentist",
        description="Annual check-up",
        location="Main Street 1",
        organizer_ids=("alice",),
        attendee_ids=("bob",),
        start=datetime(2025, 1, 15, 14, 0),
        end=datetime(2025, 1, 15, 15, 0),
    )


@pytest.fixture
def daily_template() -> EventTemplate:
    """Daily 09:00-10:30 event starting 2025-01-01, five occurrences."""
    return EventTemplate(
        id="daily-standup",
        title="Standup",
        description="Team sync",
        organizer_ids=("alice",),
        attendee_ids=("bob", "carol"),
        start=datetime(2025, 1, 1, 9, 0),
        end=datetime(2025, 1, 1, 10, 30),
        recurrence=RecurrencePattern.daily(1, EndsAfter(count=5)),
    )


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
