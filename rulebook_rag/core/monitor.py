import time
from functools import wraps
from rulebook_rag.core.logger import logger


def track_latency(operation_name: str):
    """
    Decorator to track latency of critical pipeline operations.
    Logs success and failure alike, then re-raises.
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                resp = await func(*args, **kwargs)
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                logger.error(
                    f"{operation_name} | latency_ms={elapsed:.2f} | status=error | "
                    f"error={type(e).__name__}: {e}"
                )
                raise
            elapsed = (time.perf_counter() - start) * 1000
            logger.info(f"{operation_name} | latency_ms={elapsed:.2f} | status=success")
            return resp

        return wrapper

    return decorator
