import functools
import inspect
import time
import logging

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = {"api_key", "private_key", "authorization", "password", "token", "bearer", "secret"}

def _redact(value):
    """Recursively redact sensitive keys in nested structures."""
    if isinstance(value, dict):
        return {k: ("***" if str(k).lower() in SENSITIVE_KEYS else _redact(v)) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact(v) for v in value]
    if isinstance(value, tuple):
        return tuple(_redact(v) for v in value)
    return value


def lab_telemetry(func):
    qualname = func.__qualname__.split('.')[0]
    if not inspect.iscoroutinefunction(func):
        raise TypeError(f"Function {qualname} is not a coroutine function. "
                        f"lab_telemetry can only be applied to async functions.")

    @functools.wraps(func)
    async def wrapper(self, inputs, *args, **kwargs):
        debug = self.get_debug()
        start_time = time.monotonic()
        logger.info(f"Executing {qualname}:{self.node_id}...")
        if debug:
            logger.debug("Node %s:%s inputs: %s", qualname, self.node_id, _redact(inputs.to_dict()))
        try:
            return await func(self, inputs, *args, **kwargs)
        finally:
            execution_time = time.monotonic() - start_time
            logger.info(f"{qualname}:{self.node_id} execution time: {execution_time:.4f} seconds")
            if debug:
                logger.debug("Node %s:%s produced: %s", qualname, self.node_id, self.produced)

    return wrapper
