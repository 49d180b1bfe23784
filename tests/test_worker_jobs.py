from datetime import datetime, time, timedelta, timezone

from app.models.booking import Booking
from app.services.booking_service import create_booking
from app.tasks import jobs, worker_jobs
from app.tasks.celery_app import _redis_url_for_celery, celery


def test_expire_job_uses_its_own_session(session_factory, make_field, tomorrow, monkeypatch):
    field_id = make_field()
    with session_factory() as s:
        b = create_booking(s, field_id, "u1", tomorrow, time(10, 0), time(11, 0))
        b.payment_due = datetime.now(timezone.utc) - timedelta(minutes=1)
        s.commit()
        booking_id = b.id

    monkeypatch.setattr(worker_jobs, "SessionLocal", session_factory)
    assert worker_jobs.expire_bookings() == {"expired": 1}
    assert jobs.expire_bookings() == {"expired": 0}

    with session_factory() as s:
        assert s.get(Booking, booking_id).status == "expired"


def test_beat_schedule_registers_expiry_sweep():
    entry = celery.conf.beat_schedule["expire-bookings"]
    assert entry["task"] == "app.tasks.jobs.expire_bookings"
    assert jobs.expire_bookings.name in celery.tasks


def test_rediss_urls_get_cert_option():
    assert _redis_url_for_celery("redis://localhost:6379/0") == "redis://localhost:6379/0"
    assert "ssl_cert_reqs=CERT_NONE" in _redis_url_for_celery("rediss://default:pw@host:6379")
