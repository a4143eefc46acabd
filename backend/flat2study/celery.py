import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "flat2study.settings.base")
app = Celery("flat2study")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
