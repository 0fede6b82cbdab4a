"""Request and response models for the company query tools.

Parameters arrive as camelCase JSON (``pageSize``, ``minTeamSize``) and are
exposed as snake_case attributes. Validation happens here, at the tool
boundary; the query engine assumes well-typed input.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 50

Company = Dict[str, Any]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
class CompanyFilters(CamelModel):
    """Structured filter; every present predicate must hold."""

    industry: Optional[str] = None
    stage: Optional[str] = None
    status: Optional[str] = None
    batch: Optional[str] = None
    min_team_size: Optional[int] = None
    max_team_size: Optional[int] = None
    tags: Optional[List[str]] = None
    regions: Optional[List[str]] = None
    is_hiring: Optional[bool] = None
    top_company: Optional[bool] = None
    nonprofit: Optional[bool] = None
    launched_after: Optional[int] = None
    launched_before: Optional[int] = None


class PageRequest(CamelModel):
    page: int = Field(DEFAULT_PAGE, ge=1)
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1)


class SearchRequest(PageRequest):
    query: Optional[str] = None
    filters: Optional[CompanyFilters] = None
    sort_by: Optional[str] = None
    sort_order: Literal["asc", "desc"] = "asc"


class BatchRequest(PageRequest):
    batch: str = Field(..., min_length=1)


class IndustryRequest(PageRequest):
    industry: str = Field(..., min_length=1)


class StatusRequest(PageRequest):
    status: str = Field(..., min_length=1)


class StageRequest(PageRequest):
    stage: str = Field(..., min_length=1)


class RegionRequest(PageRequest):
    region: str = Field(..., min_length=1)


class TagRequest(PageRequest):
    tag: str = Field(..., min_length=1)


class GetCompanyRequest(CamelModel):
    company_id: Union[int, str]

    @field_validator("company_id")
    @classmethod
    def _not_blank(cls, value):
        if isinstance(value, str) and not value.strip():
            raise ValueError("companyId must not be empty")
        return value


class StatsRequest(CompanyFilters):
    """Statistics take the filter predicates as top-level parameters."""


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class CompanyPage(CamelModel):
    companies: List[Company]
    total: int
    page: int
    page_size: int
    has_more: bool


class CompanyStats(CamelModel):
    total_companies: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_industry: Dict[str, int] = Field(default_factory=dict)
    by_stage: Dict[str, int] = Field(default_factory=dict)
    by_batch: Dict[str, int] = Field(default_factory=dict)
    average_team_size: int = 0
    hiring_companies: int = 0
    top_companies: int = 0
    public_companies: int = 0
    acquired_companies: int = 0
