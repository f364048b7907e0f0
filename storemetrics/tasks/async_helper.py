import asyncio
from functools import wraps

from storemetrics.core.exceptions import FeedError
from storemetrics.tasks.celery_app import celery_app


def run_async(coro):
    """
    Runs a coroutine inside a valid or new event loop.
    """
    try:
        loop = asyncio.get_event_loop()
        # If the loop is closed, raise to create a new one
        if loop.is_closed():
            raise RuntimeError
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


def celery_async_task(bind=True, max_retries=3, default_retry_delay=60*5, retry_on=(FeedError,)):
    """
    Decorator to define a Celery task that runs a coroutine with retry support.

    Only exceptions listed in `retry_on` trigger a retry; anything else fails
    the task right away.

    Usage:
        @celery_async_task()
        async def full_sync_store(self, store_id: str):
            async with AsyncSessionLocal() as db:
                return await _full_sync_logic(UUID(store_id), db)
    """
    def decorator(async_func):
        task_decorator = celery_app.task(
            bind=bind,
            max_retries=max_retries,
            default_retry_delay=default_retry_delay,
        )

        @task_decorator
        @wraps(async_func)
        def wrapper(self, *args, **kwargs):
            try:
                # Invoke the coroutine via run_async
                return run_async(async_func(self, *args, **kwargs))
            except retry_on as exc:
                raise self.retry(exc=exc)

        return wrapper

    return decorator
