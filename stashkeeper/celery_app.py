"""
Celery: conferência de estoque em background.

Worker: celery -A stashkeeper.celery_app worker --loglevel=info
"""
from celery import Celery
from stashkeeper.config import settings

celery_app = Celery(
    "stashkeeper",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["stashkeeper.tasks.stock_tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="America/Sao_Paulo",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=600,  # conferência de todos os produtos
    task_soft_time_limit=540,
)

if __name__ == "__main__":
    celery_app.start()
