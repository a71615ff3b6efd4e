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
Question categories, display labels and skip-all default answers.

A skipped question still gets an explicit answer so the finalization call
is told not to normalize that item instead of guessing.
"""

from typing import Dict

CATEGORY_LABELS: Dict[str, str] = {
    "owner_salary": "Owner's salary",
    "premises_costs": "Premises costs",
    "real_estate": "Real estate",
    "one_time_items": "One-time items",
    "inventory": "Inventory",
    "non_business_assets": "Non-business assets",
    "related_party": "Related-party transactions",
    "customer_concentration": "Customer concentration",
    "other": "Other",
}

DEFAULT_SKIP_ANSWER = "No additional information. Use the values as reported in the financial statements."

SKIP_ANSWER_TEMPLATES: Dict[str, str] = {
    "owner_salary": (
        "No information on market-rate salary. Use the personnel costs as reported in the financial statements."
    ),
    "one_time_items": "No identified one-time items.",
    "real_estate": "Use the values as reported in the financial statements.",
    "premises_costs": "Use the values as reported in the financial statements.",
    "inventory": "No information on the actual value of the inventory. Use the book values.",
    "non_business_assets": "No identified non-business items.",
}


def category_label(category: str) -> str:
    """Human-readable label; unknown categories are title-cased."""
    return CATEGORY_LABELS.get(category, category.replace("_", " ").capitalize())


def default_answer_for(category: str) -> str:
    return SKIP_ANSWER_TEMPLATES.get(category, DEFAULT_SKIP_ANSWER)
