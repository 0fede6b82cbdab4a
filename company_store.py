"""Read-only in-memory store of company records."""

import json
import logging
import os
from typing import Any, Iterable, Optional, Tuple, Union

from schemas import Company

logger = logging.getLogger("mcp.store")


class CompanyStore:
    """Immutable collection of company dicts in source order.

    Populated once; nothing in the query layer mutates it, so concurrent
    readers need no locking.
    """

    def __init__(self, companies: Iterable[Company] = (), loaded: bool = True):
        self._companies: Tuple[Company, ...] = tuple(companies)
        self.loaded = loaded

    @classmethod
    def load(cls, path: str) -> "CompanyStore":
        """Read *path* and return a store; degrade to empty on any failure.

        The file holds either ``{"companies": [...]}`` or a bare list of
        records. Failures are logged for the operator and never raised.
        """
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            logger.error("Error loading company data from %s: %s", path, e)
            return cls(loaded=False)

        companies: Any = data.get("companies", []) if isinstance(data, dict) else data
        if not isinstance(companies, list):
            logger.error(
                "Error loading company data from %s: expected a list of companies, got %s",
                path,
                type(companies).__name__,
            )
            return cls(loaded=False)

        store = cls(c for c in companies if isinstance(c, dict))
        skipped = len(companies) - store.count()
        if skipped:
            logger.warning("Skipped %d non-object entries in %s", skipped, path)
        logger.info("Loaded %d companies from %s", store.count(), os.path.abspath(path))
        return store

    def all(self) -> Tuple[Company, ...]:
        return self._companies

    def by_id(self, company_id: Union[int, str]) -> Optional[Company]:
        """Return the record with *company_id*, or ``None`` if absent."""
        if isinstance(company_id, str):
            try:
                company_id = int(company_id.strip())
            except ValueError:
                return None
        return next((c for c in self._companies if c.get("id") == company_id), None)

    def count(self) -> int:
        return len(self._companies)
