"""Run ARQ worker. Usage: python -m pawpaw.worker.run_worker"""

from arq import run_worker
from arq.cron import cron

from pawpaw.worker.tasks import end_idle_streams, get_redis_settings, reconcile_likes, shutdown, startup


class WorkerSettings:
    redis_settings = get_redis_settings()
    functions = [reconcile_likes, end_idle_streams]
    cron_jobs = [
        cron(reconcile_likes, minute=0),  # hourly
        cron(end_idle_streams, minute={0, 15, 30, 45}),
    ]
    on_startup = startup
    on_shutdown = shutdown


def main() -> None:
    run_worker(WorkerSettings)


if __name__ == "__main__":
    main()
