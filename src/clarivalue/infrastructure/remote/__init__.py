"""
Remote analysis service access: aiohttp transport and the retrying executor.
"""

from clarivalue.infrastructure.remote.client import AnalysisFunctionClient, decode_body
from clarivalue.infrastructure.remote.executor import (
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_RETRIES,
    RemoteCallExecutor,
    RetryPolicy,
    is_transient_error,
)

__all__ = [
    "AnalysisFunctionClient",
    "DEFAULT_BASE_DELAY",
    "DEFAULT_MAX_RETRIES",
    "RemoteCallExecutor",
    "RetryPolicy",
    "decode_body",
    "is_transient_error",
]
