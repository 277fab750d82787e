# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Recruitment domain: search engine and post service.

Exports:
    RecruitService: Search and post management.
    RecruitSearchCriteria: Optional search filters.
    RequesterProfile: Demographics used by same-gender/same-age filters.
    SortOption: Supported orderings.
"""

from tripfriend.domains.recruit.filters import (
    RecruitSearchCriteria,
    RequesterProfile,
    SortOption,
    build_conditions,
    build_search_statement,
)
from tripfriend.domains.recruit.service import (
    PlaceNotFoundError,
    RecruitNotFoundError,
    RecruitPermissionError,
    RecruitService,
    RecruitServiceError,
)

__all__ = [
    "RecruitService",
    "RecruitServiceError",
    "RecruitNotFoundError",
    "RecruitPermissionError",
    "PlaceNotFoundError",
    "RecruitSearchCriteria",
    "RequesterProfile",
    "SortOption",
    "build_conditions",
    "build_search_statement",
]
