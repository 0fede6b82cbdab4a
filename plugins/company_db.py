import logging

from fastapi import HTTPException
from pydantic import ValidationError

import company_query
from company_stats import summarize
from company_store import CompanyStore
from registry import ToolInput, mcp_tool
from schemas import (
    BatchRequest,
    GetCompanyRequest,
    IndustryRequest,
    PageRequest,
    RegionRequest,
    SearchRequest,
    StageRequest,
    StatsRequest,
    StatusRequest,
    TagRequest,
)
from settings import settings

logger = logging.getLogger("mcp.plugins")

store = CompanyStore.load(settings.DATA_PATH)
if not store.loaded:
    logger.warning("Company data unavailable; company tools will return empty results")

PAGE_INPUTS = [
    ToolInput(
        name="page",
        type="number",
        description="Page number for pagination",
        required=False,
        schema_extra={"default": 1},
    ),
    ToolInput(
        name="pageSize",
        type="number",
        description="Number of results per page",
        required=False,
        schema_extra={"default": 50},
    ),
]

FILTER_PROPERTIES = {
    "industry": {"type": "string", "description": "Industry, e.g. 'Fintech', 'Consumer', 'B2B'"},
    "stage": {"type": "string", "description": "Company stage, e.g. 'Early', 'Growth'"},
    "status": {"type": "string", "description": "Company status, e.g. 'Active', 'Public', 'Acquired'"},
    "batch": {"type": "string", "description": "YC batch, e.g. 'Summer 2013'"},
    "minTeamSize": {"type": "number", "description": "Minimum team size"},
    "maxTeamSize": {"type": "number", "description": "Maximum team size"},
    "tags": {"type": "array", "items": {"type": "string"}, "description": "Any of these tags"},
    "regions": {"type": "array", "items": {"type": "string"}, "description": "Any of these regions or locations"},
    "isHiring": {"type": "boolean", "description": "Hiring status"},
    "topCompany": {"type": "boolean", "description": "Top company status"},
    "nonprofit": {"type": "boolean", "description": "Nonprofit status"},
    "launchedAfter": {"type": "number", "description": "Launched at or after this Unix timestamp"},
    "launchedBefore": {"type": "number", "description": "Launched at or before this Unix timestamp"},
}


def _parse(model, params, tool: str):
    """Validate the raw parameter bag for *tool* or fail the request with 400."""
    try:
        return model.model_validate(params or {})
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'params'}: {err['msg']}" for err in e.errors()
        )
        raise HTTPException(400, f"Invalid arguments for {tool}: {problems}")


def _field_input(name: str, description: str) -> ToolInput:
    return ToolInput(name=name, type="string", description=description)


@mcp_tool(
    "yc_search_companies",
    "Search and filter YC companies by text, structured filters and sort order",
    [
        ToolInput(
            name="query",
            type="string",
            description="Text matched against name, description, website, location, tags and industries",
            required=False,
        ),
        ToolInput(
            name="filters",
            type="object",
            description="Structured filters; all given filters must match",
            required=False,
            schema_extra={"properties": FILTER_PROPERTIES},
        ),
        *PAGE_INPUTS,
        ToolInput(
            name="sortBy",
            type="string",
            description="Field to sort by",
            required=False,
            schema_extra={"enum": sorted(company_query.SORT_KEYS)},
        ),
        ToolInput(
            name="sortOrder",
            type="string",
            description="Sort direction",
            required=False,
            schema_extra={"enum": ["asc", "desc"], "default": "asc"},
        ),
    ],
)
async def search_companies_tool(params):
    req = _parse(SearchRequest, params, "yc_search_companies")
    return company_query.search_companies(store, req).model_dump(by_alias=True)


@mcp_tool(
    "yc_get_company",
    "Get a single YC company by ID",
    [_field_input("companyId", "Company ID, e.g. '531'")],
)
async def get_company_tool(params):
    req = _parse(GetCompanyRequest, params, "yc_get_company")
    company = company_query.get_company_by_id(store, req.company_id)
    if company is None:
        return {
            "found": False,
            "company": None,
            "message": f"Company with ID {req.company_id} not found.",
        }
    return {"found": True, "company": company}


@mcp_tool(
    "yc_get_companies_by_batch",
    "Get companies from a YC batch, e.g. 'Summer 2013'",
    [_field_input("batch", "YC batch name"), *PAGE_INPUTS],
)
async def companies_by_batch_tool(params):
    req = _parse(BatchRequest, params, "yc_get_companies_by_batch")
    return company_query.get_companies_by_batch(store, req.batch, req.page, req.page_size).model_dump(by_alias=True)


@mcp_tool(
    "yc_get_companies_by_industry",
    "Get companies in an industry, e.g. 'Fintech'",
    [_field_input("industry", "Industry name"), *PAGE_INPUTS],
)
async def companies_by_industry_tool(params):
    req = _parse(IndustryRequest, params, "yc_get_companies_by_industry")
    return company_query.get_companies_by_industry(store, req.industry, req.page, req.page_size).model_dump(
        by_alias=True
    )


@mcp_tool(
    "yc_get_companies_by_status",
    "Get companies with a status, e.g. 'Public', 'Acquired'",
    [_field_input("status", "Company status"), *PAGE_INPUTS],
)
async def companies_by_status_tool(params):
    req = _parse(StatusRequest, params, "yc_get_companies_by_status")
    return company_query.get_companies_by_status(store, req.status, req.page, req.page_size).model_dump(by_alias=True)


@mcp_tool(
    "yc_get_companies_by_stage",
    "Get companies at a stage, e.g. 'Early', 'Growth'",
    [_field_input("stage", "Company stage"), *PAGE_INPUTS],
)
async def companies_by_stage_tool(params):
    req = _parse(StageRequest, params, "yc_get_companies_by_stage")
    return company_query.get_companies_by_stage(store, req.stage, req.page, req.page_size).model_dump(by_alias=True)


@mcp_tool(
    "yc_get_companies_by_region",
    "Get companies in a region or location, e.g. 'San Francisco', 'Europe'",
    [_field_input("region", "Region or location"), *PAGE_INPUTS],
)
async def companies_by_region_tool(params):
    req = _parse(RegionRequest, params, "yc_get_companies_by_region")
    return company_query.get_companies_by_region(store, req.region, req.page, req.page_size).model_dump(by_alias=True)


@mcp_tool(
    "yc_get_companies_by_tag",
    "Get companies with a tag, e.g. 'Marketplace'",
    [_field_input("tag", "Tag name"), *PAGE_INPUTS],
)
async def companies_by_tag_tool(params):
    req = _parse(TagRequest, params, "yc_get_companies_by_tag")
    return company_query.get_companies_by_tag(store, req.tag, req.page, req.page_size).model_dump(by_alias=True)


@mcp_tool("yc_get_hiring_companies", "Get companies that are currently hiring", PAGE_INPUTS)
async def hiring_companies_tool(params):
    req = _parse(PageRequest, params, "yc_get_hiring_companies")
    return company_query.get_hiring_companies(store, req.page, req.page_size).model_dump(by_alias=True)


@mcp_tool("yc_get_top_companies", "Get companies marked as top companies", PAGE_INPUTS)
async def top_companies_tool(params):
    req = _parse(PageRequest, params, "yc_get_top_companies")
    return company_query.get_top_companies(store, req.page, req.page_size).model_dump(by_alias=True)


@mcp_tool(
    "yc_get_company_stats",
    "Statistics over YC companies, optionally filtered",
    [
        ToolInput(name=name, type=prop["type"], description=prop["description"], required=False)
        for name, prop in FILTER_PROPERTIES.items()
        if name in ("industry", "stage", "status", "batch")
    ],
)
async def company_stats_tool(params):
    req = _parse(StatsRequest, params, "yc_get_company_stats")
    return summarize(store.all(), req).model_dump(by_alias=True)


@mcp_tool("yc_get_all_companies", "Browse all companies page by page", PAGE_INPUTS)
async def all_companies_tool(params):
    req = _parse(PageRequest, params, "yc_get_all_companies")
    return company_query.get_all_companies(store, req.page, req.page_size).model_dump(by_alias=True)
