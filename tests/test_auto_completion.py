"""
Tests for arming the auto-complete deadline and the system-submitted transition.
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from completion_monitor.models import Appointment, CleanerJobCompletion, Notification
from completion_monitor.schemas import AutoCompleteConfig
from completion_monitor.services.auto_completion import (
    auto_complete,
    calculate_auto_approval_expiration,
    is_auto_complete_due,
    schedule_auto_complete,
)
from completion_monitor.services.completion_targets import (
    MultiCleanerTarget,
    SingleCleanerTarget,
    find_first_cleaner,
)
from conftest import make_appointment, make_cleaner_completion, make_user

AUTO_COMPLETE_AT = datetime(2024, 8, 15, 22, 0)

CLEANER_NOTIFY = "completion_monitor.services.auto_completion.send_job_auto_completed_notification"
HOMEOWNER_NOTIFY = (
    "completion_monitor.services.auto_completion.send_job_auto_completed_homeowner_notification"
)


@pytest.fixture
def homeowner(db):
    return make_user(db, "Hana")


@pytest.fixture
def cleaner(db):
    return make_user(db, "Carlos")


@pytest.fixture
def appointment(db, homeowner, cleaner):
    return make_appointment(db, homeowner, cleaners=[cleaner])


@pytest.fixture
def single_target(db, appointment):
    return SingleCleanerTarget(appointment, find_first_cleaner(db, appointment))


class TestScheduleAutoComplete:
    def test_arms_deadline_from_window_end(self, db, homeowner, cleaner):
        appointment = make_appointment(
            db,
            homeowner,
            cleaners=[cleaner],
            time_window="10-3",
            scheduled_end_time=None,
            auto_complete_at=None,
            auto_complete_reminders_sent=3,
        )
        target = SingleCleanerTarget(appointment, cleaner)

        deadline = schedule_auto_complete(db, target, AutoCompleteConfig(hours_after_end=2))

        db.refresh(appointment)
        assert deadline == datetime(2024, 8, 15, 17, 0)
        assert appointment.scheduled_end_time == datetime(2024, 8, 15, 15, 0)
        assert appointment.auto_complete_at == deadline
        assert appointment.auto_complete_reminders_sent == 0
        assert appointment.last_reminder_sent_at is None

    def test_multi_cleaner_deadline_lives_on_completion_row(self, db, homeowner):
        team = [make_user(db, "Ada"), make_user(db, "Bo")]
        appointment = make_appointment(db, homeowner, cleaners=team)
        completion = make_cleaner_completion(db, appointment, team[1], auto_complete_at=None)

        deadline = schedule_auto_complete(db, MultiCleanerTarget(completion), AutoCompleteConfig())

        db.refresh(completion)
        db.refresh(appointment)
        assert completion.auto_complete_at == deadline == AUTO_COMPLETE_AT
        assert appointment.auto_complete_at is None


class TestIsAutoCompleteDue:
    def test_one_minute_before_deadline(self, single_target):
        assert is_auto_complete_due(single_target, AUTO_COMPLETE_AT - timedelta(minutes=1)) is False

    def test_exactly_at_deadline(self, single_target):
        assert is_auto_complete_due(single_target, AUTO_COMPLETE_AT) is True

    def test_not_due_without_deadline(self, db, single_target):
        single_target.record.auto_complete_at = None
        assert is_auto_complete_due(single_target, AUTO_COMPLETE_AT + timedelta(hours=1)) is False

    def test_not_due_once_submitted(self, single_target):
        single_target.record.completion_status = "submitted"
        assert is_auto_complete_due(single_target, AUTO_COMPLETE_AT + timedelta(hours=1)) is False


class TestCalculateAutoApprovalExpiration:
    def test_uses_configured_hours(self):
        now = datetime(2024, 8, 15, 22, 5)
        config = AutoCompleteConfig(auto_approval_hours=48)
        assert calculate_auto_approval_expiration(now, config) == datetime(2024, 8, 17, 22, 5)


class TestAutoComplete:
    """The transition is applied once and notifications follow it."""

    @pytest.mark.asyncio
    async def test_submits_single_cleaner_job(self, db, config, appointment, single_target):
        now = AUTO_COMPLETE_AT + timedelta(minutes=5)

        with patch(CLEANER_NOTIFY, new_callable=AsyncMock), patch(
            HOMEOWNER_NOTIFY, new_callable=AsyncMock
        ):
            assert await auto_complete(db, single_target, config, now) is True

        db.refresh(appointment)
        assert appointment.completion_status == "submitted"
        assert appointment.completion_submitted_at == now
        assert appointment.auto_completed_by_system is True
        assert appointment.auto_approval_expires_at == now + timedelta(hours=24)
        assert appointment.auto_complete_at is None

    @pytest.mark.asyncio
    async def test_notifies_cleaner_and_homeowner(
        self, db, config, cleaner, homeowner, single_target
    ):
        now = AUTO_COMPLETE_AT

        with patch(CLEANER_NOTIFY, new_callable=AsyncMock) as cleaner_notify, patch(
            HOMEOWNER_NOTIFY, new_callable=AsyncMock
        ) as homeowner_notify:
            await auto_complete(db, single_target, config, now)

        cleaner_kwargs = cleaner_notify.await_args.kwargs
        assert cleaner_kwargs["cleaner"].id == cleaner.id
        assert cleaner_kwargs["auto_approval_hours"] == 24
        assert "job on 2024-08-15 was auto-completed" in cleaner_kwargs["message"]

        homeowner_kwargs = homeowner_notify.await_args.kwargs
        assert homeowner_kwargs["homeowner"].id == homeowner.id
        assert homeowner_kwargs["cleaner_name"] == "Carlos"
        assert "within 24 hours" in homeowner_kwargs["message"]

    @pytest.mark.asyncio
    async def test_second_call_is_noop(self, db, config, single_target):
        now = AUTO_COMPLETE_AT

        with patch(CLEANER_NOTIFY, new_callable=AsyncMock) as cleaner_notify, patch(
            HOMEOWNER_NOTIFY, new_callable=AsyncMock
        ) as homeowner_notify:
            assert await auto_complete(db, single_target, config, now) is True
            assert await auto_complete(db, single_target, config, now + timedelta(minutes=5)) is False

        cleaner_notify.assert_awaited_once()
        homeowner_notify.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cleaner_submitted_first_is_left_alone(self, db, config, appointment, single_target):
        submitted_at = AUTO_COMPLETE_AT - timedelta(minutes=1)
        db.query(Appointment).filter(Appointment.id == appointment.id).update(
            {"completion_status": "submitted", "completion_submitted_at": submitted_at}
        )
        db.commit()

        with patch(CLEANER_NOTIFY, new_callable=AsyncMock) as cleaner_notify, patch(
            HOMEOWNER_NOTIFY, new_callable=AsyncMock
        ):
            assert await auto_complete(db, single_target, config, AUTO_COMPLETE_AT) is False

        cleaner_notify.assert_not_awaited()
        db.refresh(appointment)
        assert appointment.completion_submitted_at == submitted_at
        assert not appointment.auto_completed_by_system

    @pytest.mark.asyncio
    async def test_notification_failure_keeps_transition(self, db, config, appointment, single_target):
        with patch(
            CLEANER_NOTIFY, new_callable=AsyncMock, side_effect=RuntimeError("push down")
        ), patch(HOMEOWNER_NOTIFY, new_callable=AsyncMock) as homeowner_notify:
            assert await auto_complete(db, single_target, config, AUTO_COMPLETE_AT) is True

        homeowner_notify.assert_awaited_once()
        db.refresh(appointment)
        assert appointment.completion_status == "submitted"

    @pytest.mark.asyncio
    async def test_missing_cleaner_still_completes(self, db, config, appointment):
        target = SingleCleanerTarget(appointment, None)

        with patch(CLEANER_NOTIFY, new_callable=AsyncMock) as cleaner_notify, patch(
            HOMEOWNER_NOTIFY, new_callable=AsyncMock
        ) as homeowner_notify:
            assert await auto_complete(db, target, config, AUTO_COMPLETE_AT) is True

        cleaner_notify.assert_not_awaited()
        assert homeowner_notify.await_args.kwargs["cleaner_name"] == "Your cleaner"

    @pytest.mark.asyncio
    async def test_writes_in_app_notifications(self, db, config, appointment, single_target, mock_channels):
        await auto_complete(db, single_target, config, AUTO_COMPLETE_AT)

        notification_types = sorted(n.notification_type for n in db.query(Notification).all())
        assert notification_types == ["job_auto_completed", "job_auto_completed_homeowner"]
        mock_channels.completed_email.assert_awaited_once()
        mock_channels.homeowner_push.assert_awaited_once()


class TestMultiCleanerAutoComplete:
    @pytest.fixture
    def team(self, db):
        return [make_user(db, "Ada"), make_user(db, "Bo")]

    @pytest.fixture
    def team_job(self, db, homeowner, team):
        return make_appointment(db, homeowner, cleaners=team)

    @pytest.mark.asyncio
    async def test_completes_only_that_cleaner(self, db, config, team, team_job):
        first = make_cleaner_completion(db, team_job, team[0])
        second = make_cleaner_completion(db, team_job, team[1])
        now = AUTO_COMPLETE_AT + timedelta(minutes=5)

        with patch(CLEANER_NOTIFY, new_callable=AsyncMock), patch(
            HOMEOWNER_NOTIFY, new_callable=AsyncMock
        ) as homeowner_notify:
            assert await auto_complete(db, MultiCleanerTarget(first), config, now) is True

        db.refresh(first)
        db.refresh(second)
        assert first.completion_status == "submitted"
        assert first.status == "completed"
        assert first.completed_at == now
        assert first.auto_completed_by_system is True
        assert first.auto_approval_expires_at == now + timedelta(hours=24)
        assert first.auto_complete_at is None
        assert second.completion_status == "in_progress"
        assert second.status == "started"
        assert homeowner_notify.await_args.kwargs["cleaner_name"] == "Ada"
        assert "Ada's work on 2024-08-15" in homeowner_notify.await_args.kwargs["message"]

    @pytest.mark.asyncio
    async def test_same_fields_as_single_cleaner_job(self, db, config, homeowner, cleaner, team, team_job):
        solo = make_appointment(db, homeowner, cleaners=[cleaner])
        completion = make_cleaner_completion(db, team_job, team[0])
        now = AUTO_COMPLETE_AT

        with patch(CLEANER_NOTIFY, new_callable=AsyncMock), patch(
            HOMEOWNER_NOTIFY, new_callable=AsyncMock
        ):
            await auto_complete(db, SingleCleanerTarget(solo, cleaner), config, now)
            await auto_complete(db, MultiCleanerTarget(completion), config, now)

        db.refresh(solo)
        db.refresh(completion)
        fields = [
            "completion_status",
            "completion_submitted_at",
            "auto_completed_by_system",
            "auto_approval_expires_at",
            "auto_complete_at",
        ]
        assert {f: getattr(solo, f) for f in fields} == {f: getattr(completion, f) for f in fields}

    @pytest.mark.asyncio
    async def test_stale_copy_cannot_complete_twice(self, db, session_factory, config, team, team_job):
        completion = make_cleaner_completion(db, team_job, team[0])
        other_db = session_factory()
        try:
            stale = MultiCleanerTarget(other_db.get(CleanerJobCompletion, completion.id))

            with patch(CLEANER_NOTIFY, new_callable=AsyncMock) as cleaner_notify, patch(
                HOMEOWNER_NOTIFY, new_callable=AsyncMock
            ):
                assert await auto_complete(db, MultiCleanerTarget(completion), config, AUTO_COMPLETE_AT)
                assert not await auto_complete(other_db, stale, config, AUTO_COMPLETE_AT)

            cleaner_notify.assert_awaited_once()
        finally:
            other_db.close()
