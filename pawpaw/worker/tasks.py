"""ARQ job definitions."""

import uuid
from typing import Any

from arq.connections import RedisSettings

from pawpaw.core.config import get_settings
from pawpaw.core.logging import configure_logging, get_logger
from pawpaw.db.init import init_db
from pawpaw.models.failed_job import FailedJob

log = get_logger(__name__)


async def _run_with_dlq(
    job_name: str,
    job_id: str | None,
    args: list[Any],
    kwargs: dict[str, Any],
    coro,
) -> Any:
    """Run coroutine; on exception persist to FailedJob then re-raise."""
    try:
        return await coro
    except Exception as e:
        fid = job_id or str(uuid.uuid4())
        await FailedJob(
            job_name=job_name,
            job_id=fid,
            args=args,
            kwargs=kwargs,
            reason=str(e)[:2000],
        ).insert()
        log.exception("job_failed", job=job_name, job_id=fid, reason=str(e))
        raise


def _job_id(ctx: dict[str, Any]) -> str | None:
    return ctx.get("job_id") if isinstance(ctx.get("job_id"), str) else None


async def reconcile_likes(ctx: dict[str, Any]) -> int:
    """Cron job: bring likes_count back in line with the swipe log."""
    from pawpaw.worker.reconcile import reconcile_likes_counts
    log.info("job_start", job="reconcile_likes")
    return await _run_with_dlq("reconcile_likes", _job_id(ctx), [], {}, reconcile_likes_counts())


async def end_idle_streams(ctx: dict[str, Any]) -> int:
    """Cron job: end streams left active past LIVE_STREAM_IDLE_HOURS."""
    from pawpaw.services.live import end_idle_streams as _end_idle
    log.info("job_start", job="end_idle_streams")
    return await _run_with_dlq("end_idle_streams", _job_id(ctx), [], {}, _end_idle())


async def startup(ctx: dict) -> None:
    configure_logging(debug=get_settings().debug)
    await init_db()


async def shutdown(ctx: dict) -> None:
    pass


def get_redis_settings() -> RedisSettings:
    from urllib.parse import urlparse
    s = get_settings()
    u = urlparse(s.redis_url)
    return RedisSettings(
        host=u.hostname or "localhost",
        port=u.port or 6379,
        password=u.password,
        database=int(u.path.lstrip("/")) if u.path.lstrip("/") else 0,
    )
