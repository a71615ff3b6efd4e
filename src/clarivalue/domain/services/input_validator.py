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
Valuation input validation.

Manual figures arrive as user-typed strings in Nordic notation ("350 000",
"45 000,50"); they are parsed here before a session leaves
COLLECTING_INPUT. Documents only need content and a MIME type, the remote
analysis service does the actual reading.
"""

import logging
import math
import re
from typing import Dict, Optional, Union

from clarivalue.domain.exceptions import InputValidationError
from clarivalue.domain.models.valuation import DocumentInput, ManualFigures, ValuationInput

logger = logging.getLogger(__name__)

MANUAL_FIELDS = ("revenue", "profit", "assets", "liabilities")

_WHITESPACE = re.compile(r"\s+")

Number = Union[int, float, str, None]


def parse_locale_number(value: Number) -> float:
    """
    Parse a locale-formatted number.

    All whitespace (thousand separators, non-breaking spaces) is removed and
    the first comma is read as the decimal separator.

    Raises:
        ValueError: If the value is empty or not a finite number
    """
    if isinstance(value, bool):
        raise ValueError("not a number")
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = _WHITESPACE.sub("", value or "")
        if not text:
            raise ValueError("value is required")
        number = float(text.replace(",", ".", 1))

    if math.isnan(number) or math.isinf(number):
        raise ValueError("not a finite number")
    return number


def build_manual_input(
    company_name: str,
    revenue: Number,
    profit: Number,
    assets: Number,
    liabilities: Number,
    company_id: Optional[str] = None,
) -> ValuationInput:
    """Validate the four manual figures and build a ValuationInput."""
    raw = {"revenue": revenue, "profit": profit, "assets": assets, "liabilities": liabilities}
    errors: Dict[str, str] = {}
    parsed: Dict[str, float] = {}

    if not (company_name or "").strip():
        errors["company_name"] = "Company name is required"

    for name in MANUAL_FIELDS:
        try:
            parsed[name] = parse_locale_number(raw[name])
        except ValueError:
            errors[name] = f"Invalid number: {raw[name]!r}"

    if errors:
        logger.debug(f"Manual input rejected: {errors}")
        raise InputValidationError("Invalid manual figures", errors)

    return ValuationInput(
        company_name=company_name.strip(),
        manual_figures=ManualFigures(**parsed),
        company_id=company_id,
    )


def build_document_input(
    company_name: str,
    content: Optional[bytes],
    mime_type: Optional[str],
    filename: Optional[str] = None,
    company_id: Optional[str] = None,
) -> ValuationInput:
    """Validate an uploaded document and build a ValuationInput."""
    errors: Dict[str, str] = {}

    if not (company_name or "").strip():
        errors["company_name"] = "Company name is required"
    if not content:
        errors["document"] = "A financial statement file is required"
    if not (mime_type or "").strip():
        errors["mime_type"] = "File type is required"

    if errors:
        raise InputValidationError("Invalid document input", errors)

    return ValuationInput(
        company_name=company_name.strip(),
        document=DocumentInput(content=content, mime_type=mime_type.strip(), filename=filename),
        company_id=company_id,
    )


def validate_input(valuation_input: Optional[ValuationInput]) -> ValuationInput:
    """
    Check an already built input before submission.

    Guards against inputs constructed directly instead of through the
    builders above.
    """
    if valuation_input is None:
        raise InputValidationError("Valuation input is required")

    errors: Dict[str, str] = {}
    if not (valuation_input.company_name or "").strip():
        errors["company_name"] = "Company name is required"

    has_manual = valuation_input.manual_figures is not None
    has_document = valuation_input.document is not None
    if has_manual == has_document:
        errors["input"] = "Provide either manual figures or a document, not both or neither"
    elif has_manual:
        for name in MANUAL_FIELDS:
            value = getattr(valuation_input.manual_figures, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                errors[name] = f"Invalid number: {value!r}"
    else:
        document = valuation_input.document
        if not document.content:
            errors["document"] = "A financial statement file is required"
        if not (document.mime_type or "").strip():
            errors["mime_type"] = "File type is required"

    if errors:
        raise InputValidationError("Invalid valuation input", errors)
    return valuation_input
