import logging
from concurrent.futures import Future, ThreadPoolExecutor

from flask import current_app, has_app_context

logger = logging.getLogger(__name__)


class BestEffortDispatcher:
    """Runs secondary writes that must never fail the primary response.

    Work is handed to a small thread pool; failures are logged and dropped.
    With run_inline=True the work runs on the calling thread instead, still
    without raising, which keeps tests deterministic.
    """

    def __init__(self, max_workers=4, run_inline=False):
        self.run_inline = run_inline
        self._executor = None if run_inline else ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix='best-effort'
        )

    def submit(self, description, fn, *args, **kwargs):
        # Worker threads get their own context of the submitting app
        app = current_app._get_current_object() if has_app_context() else None

        def run():
            try:
                if app is not None and not self.run_inline:
                    with app.app_context():
                        result = fn(*args, **kwargs)
                else:
                    result = fn(*args, **kwargs)
                logger.info(f"✅ {description} succeeded")
                return result
            except Exception as e:
                logger.warning(f"⚠️ {description} failed, continuing anyway: {e}")
                return None

        if self.run_inline:
            future = Future()
            future.set_result(run())
            return future
        return self._executor.submit(run)

    def shutdown(self, wait=True):
        if self._executor:
            self._executor.shutdown(wait=wait)


def get_dispatcher():
    return current_app.extensions['best_effort']
