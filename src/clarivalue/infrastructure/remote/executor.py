# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Remote Call Executor

Invokes a named analysis function and retries failures with linear back-off:
before retry n the executor waits ``n * base_delay`` seconds, up to
``max_retries`` retries. After the last attempt the last error is raised
unchanged so its message reaches the user verbatim.

Retry classification:
    transient  connection errors, timeouts, HTTP 5xx/429 and unclassified
               errors are retried; HTTP 4xx, malformed responses and
               ValueError/TypeError fail on the first attempt
    all        every error is retried
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from clarivalue.domain.exceptions import RemoteHTTPError, RemoteResponseError

logger = logging.getLogger(__name__)

Transport = Callable[[str, Dict[str, Any]], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0


class RetryPolicy(Enum):
    TRANSIENT = "transient"
    ALL = "all"


def is_transient_error(error: BaseException) -> bool:
    """True if a failed call is worth repeating."""
    if isinstance(error, RemoteResponseError):
        return False
    if isinstance(error, RemoteHTTPError):
        status = error.status_code
        return status is None or status == 429 or status >= 500
    if isinstance(error, (ValueError, TypeError)):
        return False
    return True


class RemoteCallExecutor:
    """Bounded retry loop around a remote analysis transport."""

    def __init__(
        self,
        transport: Transport,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        retry_policy: RetryPolicy = RetryPolicy.TRANSIENT,
        sleep: Optional[Sleep] = None,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if base_delay < 0:
            raise ValueError("base_delay must not be negative")

        self.transport = transport
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.retry_policy = retry_policy
        self._sleep = sleep or asyncio.sleep

        # Retry tracking
        self.retry_count = 0

    def should_retry(self, error: BaseException) -> bool:
        if self.retry_policy is RetryPolicy.ALL:
            return True
        return is_transient_error(error)

    async def invoke(self, function_name: str, payload: Dict[str, Any]) -> Any:
        """
        Call ``function_name`` with ``payload``.

        Returns:
            Decoded response body

        Raises:
            Exception: The last error from the transport, unchanged
        """
        total_attempts = self.max_retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(total_attempts):
            if attempt:
                delay = attempt * self.base_delay
                self.retry_count += 1
                logger.warning(f"Retrying {function_name} in {delay:.1f}s (retry {attempt}/{self.max_retries})")
                await self._sleep(delay)

            try:
                result = await self.transport(function_name, payload)
                if attempt:
                    logger.info(f"{function_name} succeeded on attempt {attempt + 1}/{total_attempts}")
                return result
            except Exception as e:
                last_error = e
                if not self.should_retry(e):
                    logger.error(f"{function_name} failed with non-retryable error: {e}")
                    raise
                logger.warning(f"{function_name} attempt {attempt + 1}/{total_attempts} failed: {e}")

        logger.error(f"{function_name} failed after {total_attempts} attempts: {last_error}")
        raise last_error
