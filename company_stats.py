"""Aggregate statistics over company records."""

import math
from typing import Iterable, Optional

from company_query import apply_filters
from schemas import Company, CompanyFilters, CompanyStats

GROUPED_FIELDS = (
    ("status", "by_status"),
    ("industry", "by_industry"),
    ("stage", "by_stage"),
    ("batch", "by_batch"),
)


def summarize(companies: Iterable[Company], filters: Optional[CompanyFilters] = None) -> CompanyStats:
    """Count, group and average *companies* in one pass.

    Records missing a grouping field are left out of that group's table
    but still count toward the total.
    """
    if filters is not None:
        companies = apply_filters(companies, filters)

    stats = CompanyStats()
    team_size_sum = 0
    team_size_count = 0

    for company in companies:
        stats.total_companies += 1

        for field, table_name in GROUPED_FIELDS:
            value = company.get(field)
            if value:
                table = getattr(stats, table_name)
                table[value] = table.get(value, 0) + 1

        team_size = company.get("team_size")
        if isinstance(team_size, (int, float)) and not isinstance(team_size, bool):
            team_size_sum += team_size
            team_size_count += 1

        if company.get("isHiring"):
            stats.hiring_companies += 1
        if company.get("top_company"):
            stats.top_companies += 1
        status = company.get("status")
        if status == "Public":
            stats.public_companies += 1
        elif status == "Acquired":
            stats.acquired_companies += 1

    if team_size_count:
        # half-up, not banker's rounding
        stats.average_team_size = math.floor(team_size_sum / team_size_count + 0.5)
    return stats
