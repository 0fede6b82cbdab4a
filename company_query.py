"""Filtering, sorting and pagination over company records.

String comparisons are case-insensitive. A structured filter skips any
string or numeric predicate whose field the record does not carry (a
record without ``stage`` passes a ``stage`` filter), while the boolean
predicates treat a missing flag as ``False``.
"""

from typing import Callable, Iterable, List, Optional, Sequence, Union

from company_store import CompanyStore
from schemas import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    Company,
    CompanyFilters,
    CompanyPage,
    SearchRequest,
)

Predicate = Callable[[Company], bool]

TEXT_FIELDS = ("name", "one_liner", "long_description", "website", "all_locations")


def _text(company: Company, field: str) -> Optional[str]:
    """Lowercased string value of *field*, or ``None`` when absent or empty."""
    value = company.get(field)
    if not value or not isinstance(value, str):
        return None
    return value.lower()


def _strings(company: Company, field: str) -> List[str]:
    return [v.lower() for v in company.get(field) or () if isinstance(v, str)]


def _number(company: Company, field: str) -> Optional[Union[int, float]]:
    value = company.get(field)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _flag(company: Company, field: str) -> bool:
    return bool(company.get(field, False))


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------
def matches_query(company: Company, query: str) -> bool:
    """Free-text containment over descriptive fields, tags and industries."""
    term = query.lower()
    for field in TEXT_FIELDS:
        value = _text(company, field)
        if value is not None and term in value:
            return True
    if any(term in tag for tag in _strings(company, "tags")):
        return True
    return any(term in ind for ind in _strings(company, "industries"))


def _matches_industry(company: Company, industry: str) -> bool:
    primary = _text(company, "industry")
    industries = _strings(company, "industries")
    if primary is None and not industries:
        return True
    wanted = industry.lower()
    return primary == wanted or wanted in industries


def _matches_exact(company: Company, field: str, wanted: str) -> bool:
    value = _text(company, field)
    return value is None or value == wanted.lower()


def _matches_any_tag(company: Company, tags: Sequence[str]) -> bool:
    own = set(_strings(company, "tags"))
    return any(tag.lower() in own for tag in tags)


def _matches_any_region(company: Company, regions: Sequence[str]) -> bool:
    return any(in_region(company, region) for region in regions)


def matches_filters(company: Company, filters: CompanyFilters) -> bool:
    """True iff *company* satisfies every predicate present in *filters*."""
    if filters.industry and not _matches_industry(company, filters.industry):
        return False
    for field in ("stage", "status", "batch"):
        wanted = getattr(filters, field)
        if wanted and not _matches_exact(company, field, wanted):
            return False

    team_size = _number(company, "team_size")
    if team_size is not None:
        if filters.min_team_size is not None and team_size < filters.min_team_size:
            return False
        if filters.max_team_size is not None and team_size > filters.max_team_size:
            return False

    if filters.tags and not _matches_any_tag(company, filters.tags):
        return False
    if filters.regions and not _matches_any_region(company, filters.regions):
        return False

    if filters.is_hiring is not None and _flag(company, "isHiring") != filters.is_hiring:
        return False
    if filters.top_company is not None and _flag(company, "top_company") != filters.top_company:
        return False
    if filters.nonprofit is not None and _flag(company, "nonprofit") != filters.nonprofit:
        return False

    launched_at = _number(company, "launched_at")
    if launched_at is not None:
        if filters.launched_after is not None and launched_at < filters.launched_after:
            return False
        if filters.launched_before is not None and launched_at > filters.launched_before:
            return False
    return True


def apply_filters(companies: Iterable[Company], filters: CompanyFilters) -> List[Company]:
    return [c for c in companies if matches_filters(c, filters)]


# Single-field lookups used by the get-by-field tools. Unlike the structured
# filter these require the field to be present and matching.
def in_batch(company: Company, batch: str) -> bool:
    return _text(company, "batch") == batch.lower()


def in_status(company: Company, status: str) -> bool:
    return _text(company, "status") == status.lower()


def in_stage(company: Company, stage: str) -> bool:
    return _text(company, "stage") == stage.lower()


def in_industry(company: Company, industry: str) -> bool:
    wanted = industry.lower()
    return _text(company, "industry") == wanted or wanted in _strings(company, "industries")


def in_region(company: Company, region: str) -> bool:
    wanted = region.lower()
    locations = _text(company, "all_locations")
    if locations is not None and wanted in locations:
        return True
    return any(wanted in r for r in _strings(company, "regions"))


def has_tag(company: Company, tag: str) -> bool:
    wanted = tag.lower()
    return wanted in _strings(company, "tags") or wanted in _strings(company, "tags_highlighted")


# ---------------------------------------------------------------------------
# Sorting & pagination
# ---------------------------------------------------------------------------
SORT_KEYS = {
    "name": lambda c: (c.get("name") or "").lower(),
    "team_size": lambda c: _number(c, "team_size") or 0,
    "launched_at": lambda c: _number(c, "launched_at") or 0,
    "batch": lambda c: c.get("batch") or "",
}


def sort_companies(companies: Sequence[Company], sort_by: Optional[str], sort_order: str = "asc") -> List[Company]:
    """Return a new list ordered by *sort_by*; unknown keys keep input order.

    ``sorted`` is stable in both directions, so ties keep their relative order.
    """
    key = SORT_KEYS.get(sort_by or "")
    if key is None:
        return list(companies)
    return sorted(companies, key=key, reverse=sort_order == "desc")


def paginate(companies: Sequence[Company], page: int = DEFAULT_PAGE, page_size: int = DEFAULT_PAGE_SIZE) -> CompanyPage:
    total = len(companies)
    start = (page - 1) * page_size
    end = start + page_size
    return CompanyPage(
        companies=list(companies[start:end]),
        total=total,
        page=page,
        page_size=page_size,
        has_more=end < total,
    )


def _page_where(store: CompanyStore, predicate: Optional[Predicate], page: int, page_size: int) -> CompanyPage:
    companies = store.all()
    if predicate is not None:
        companies = [c for c in companies if predicate(c)]
    return paginate(companies, page, page_size)


# ---------------------------------------------------------------------------
# Query operations
# ---------------------------------------------------------------------------
def search_companies(store: CompanyStore, request: SearchRequest) -> CompanyPage:
    """Text query AND structured filters, then optional sort, then a page."""
    companies: Sequence[Company] = store.all()
    if request.query:
        companies = [c for c in companies if matches_query(c, request.query)]
    if request.filters is not None:
        companies = apply_filters(companies, request.filters)
    if request.sort_by:
        companies = sort_companies(companies, request.sort_by, request.sort_order)
    return paginate(companies, request.page, request.page_size)


def get_company_by_id(store: CompanyStore, company_id: Union[int, str]) -> Optional[Company]:
    return store.by_id(company_id)


def get_companies_by_batch(store, batch, page=DEFAULT_PAGE, page_size=DEFAULT_PAGE_SIZE):
    return _page_where(store, lambda c: in_batch(c, batch), page, page_size)


def get_companies_by_industry(store, industry, page=DEFAULT_PAGE, page_size=DEFAULT_PAGE_SIZE):
    return _page_where(store, lambda c: in_industry(c, industry), page, page_size)


def get_companies_by_status(store, status, page=DEFAULT_PAGE, page_size=DEFAULT_PAGE_SIZE):
    return _page_where(store, lambda c: in_status(c, status), page, page_size)


def get_companies_by_stage(store, stage, page=DEFAULT_PAGE, page_size=DEFAULT_PAGE_SIZE):
    return _page_where(store, lambda c: in_stage(c, stage), page, page_size)


def get_companies_by_region(store, region, page=DEFAULT_PAGE, page_size=DEFAULT_PAGE_SIZE):
    return _page_where(store, lambda c: in_region(c, region), page, page_size)


def get_companies_by_tag(store, tag, page=DEFAULT_PAGE, page_size=DEFAULT_PAGE_SIZE):
    return _page_where(store, lambda c: has_tag(c, tag), page, page_size)


def get_hiring_companies(store, page=DEFAULT_PAGE, page_size=DEFAULT_PAGE_SIZE):
    return _page_where(store, lambda c: _flag(c, "isHiring"), page, page_size)


def get_top_companies(store, page=DEFAULT_PAGE, page_size=DEFAULT_PAGE_SIZE):
    return _page_where(store, lambda c: _flag(c, "top_company"), page, page_size)


def get_all_companies(store, page=DEFAULT_PAGE, page_size=DEFAULT_PAGE_SIZE):
    return _page_where(store, None, page, page_size)
