from celery import Celery


def create_celery(app=None):
    celery = Celery(__name__)

    if app:
        init_celery(celery, app)

    return celery


def init_celery(celery, app):
    celery.conf.update(
        broker_url=app.config["CELERY_BROKER_URL"],
        result_backend=app.config["CELERY_RESULT_BACKEND"],
        task_track_started=True,
        task_always_eager=app.config.get("CELERY_TASK_ALWAYS_EAGER", False),
        # A poll never outlives its own timeout by more than one interval
        task_time_limit=int(app.config["MOMO_POLL_TIMEOUT"] + app.config["MOMO_POLL_MAX_INTERVAL"]) + 60,
    )

    class ContextTask(celery.Task):
        def __call__(self, *args, **kwargs):
            with app.app_context():
                return super().__call__(*args, **kwargs)

    celery.Task = ContextTask


celery_app = create_celery()
