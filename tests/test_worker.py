"""Tests for the arq worker wiring."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from vetbook import worker
from vetbook.models import Appointment


def test_reminder_sweep_is_a_unique_cron_job():
    assert worker.appointment_reminders_task in worker.WorkerSettings.functions
    [job] = worker.WorkerSettings.cron_jobs
    assert job.coroutine is worker.appointment_reminders_task
    assert job.unique is True


@pytest.mark.asyncio
async def test_task_runs_sweep_with_own_session(monkeypatch, engine, db, make_appointment, sent_emails):
    monkeypatch.setattr(worker, "SessionLocal", sessionmaker(autoflush=False, bind=engine))
    tomorrow = datetime.now().replace(hour=12, minute=0, second=0, microsecond=0) + timedelta(days=1)
    appointment = make_appointment(date=tomorrow)

    summary = await worker.appointment_reminders_task({})

    assert summary["one_day_sent"] == 1
    db.expire_all()
    assert db.get(Appointment, appointment.id).reminder_1day_sent is True


def test_main_runs_worker_with_settings(monkeypatch):
    started = []
    monkeypatch.setattr(worker, "run_worker", lambda settings: started.append(settings))

    worker.main()

    assert started == [worker.WorkerSettings]


def test_main_exits_nonzero_when_worker_crashes(monkeypatch):
    def crash(settings):
        raise RuntimeError("redis unreachable")

    monkeypatch.setattr(worker, "run_worker", crash)

    with pytest.raises(SystemExit) as exc_info:
        worker.main()
    assert exc_info.value.code == 1


def test_main_stops_quietly_on_interrupt(monkeypatch):
    def interrupt(settings):
        raise KeyboardInterrupt

    monkeypatch.setattr(worker, "run_worker", interrupt)

    worker.main()
