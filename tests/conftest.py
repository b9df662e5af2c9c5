import os
from datetime import date, time

os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest

from dojo_schedule.schemas.entries import Assignment, AssignmentException, RealEntry
from dojo_schedule.schemas.overrides import CancelOverride, EventOverride, ExtraOverride
from dojo_schedule.schemas.templates import WeeklyTemplate

CLUB_ID = "club-1"


def make_template(id, weekday, start="18:00", end="19:30", active=True):
    return WeeklyTemplate(
        id=id,
        club_id=CLUB_ID,
        weekday=weekday,
        time_start=time.fromisoformat(start),
        time_end=time.fromisoformat(end) if end else None,
        active=active,
    )


def make_cancel(id, on_date, template_id=None, reason="Closed"):
    return CancelOverride(
        id=id, club_id=CLUB_ID, date=on_date, template_id=template_id, reason=reason
    )


def make_extra(id, on_date, start="10:00", end=None, reason=None):
    return ExtraOverride(
        id=id,
        club_id=CLUB_ID,
        date=on_date,
        time_start=time.fromisoformat(start) if start else None,
        time_end=time.fromisoformat(end) if end else None,
        reason=reason,
    )


def make_event(id, on_date, start="12:00", reason="Club meeting"):
    return EventOverride(
        id=id,
        club_id=CLUB_ID,
        date=on_date,
        time_start=time.fromisoformat(start),
        reason=reason,
    )


def make_entry(id, on_date, trainer_id="t1", template_id=None, override_id=None, name=None):
    return RealEntry(
        id=id,
        club_id=CLUB_ID,
        template_id=template_id,
        override_id=override_id,
        date=on_date,
        trainer_id=trainer_id,
        trainer_name=name or trainer_id.upper(),
    )


def make_assignment(
    id, template_id, trainer_id="t1", name="Anna", start=date(2024, 1, 1), end=None, active=True
):
    return Assignment(
        id=id,
        trainer_id=trainer_id,
        trainer_name=name,
        template_id=template_id,
        start_date=start,
        end_date=end,
        active=active,
    )


def make_exception(assignment_id, on_date):
    return AssignmentException(assignment_id=assignment_id, date=on_date)


@pytest.fixture
def monday_template():
    # 0 = Sunday, so 1 = Monday
    return make_template(1, 1)


@pytest.fixture
def march_2024():
    from dojo_schedule.services.calendar import Period

    return Period.for_month(2024, 3)
