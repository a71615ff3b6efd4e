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
Valuation error taxonomy.

Every failure a valuation session can surface maps to one of these classes.
Only RemoteCallError is retried (by RemoteCallExecutor); the others require
the caller to act: fix input, answer remaining questions, or start a new
session.
"""

from typing import Dict, Optional


class ValuationError(Exception):
    """Base exception for valuation pipeline errors"""

    pass


class InputValidationError(ValuationError):
    """Missing or malformed valuation input (manual figures, document)"""

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        self.field_errors = dict(field_errors or {})
        if self.field_errors:
            details = "; ".join(f"{field}: {error}" for field, error in self.field_errors.items())
            message = f"{message} ({details})"
        super().__init__(message)


class RemoteCallError(ValuationError):
    """Failure of a remote analysis function call"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        function_name: Optional[str] = None,
    ):
        self.status_code = status_code
        self.function_name = function_name

        parts = [message]
        if status_code:
            parts.append(f"status={status_code}")
        if function_name:
            parts.append(f"function={function_name}")

        super().__init__(f"{parts[0]} ({', '.join(parts[1:])})" if len(parts) > 1 else parts[0])


class RemoteHTTPError(RemoteCallError):
    """HTTP error from the analysis service (4xx/5xx responses)"""

    pass


class RemoteConnectionError(RemoteCallError):
    """Connection error to the analysis service"""

    pass


class RemoteTimeoutError(RemoteCallError):
    """Timeout waiting for the analysis service"""

    pass


class RemoteResponseError(RemoteCallError):
    """Response body could not be decoded or has an unexpected shape"""

    pass


class ClarificationIncompleteError(ValuationError):
    """finalize() called while clarification questions remain unanswered"""

    def __init__(self, field_errors: Dict[str, str]):
        self.field_errors = dict(field_errors)
        count = len(self.field_errors)
        noun = "question" if count == 1 else "questions"
        super().__init__(f"{count} clarification {noun} still unanswered: {', '.join(self.field_errors)}")


class AggregationError(ValuationError):
    """Final analysis payload cannot be turned into a valuation"""

    pass


class SessionStateError(ValuationError):
    """Operation is not allowed in the session's current state"""

    pass


class ProgressStoreError(ValuationError):
    """Saving or loading clarification progress failed"""

    pass
