from app.tasks.celery_app import celery
from app.tasks import worker_jobs

@celery.task(name="app.tasks.jobs.expire_bookings")
def expire_bookings():
    return worker_jobs.expire_bookings()
