"""Page/limit arithmetic shared by every list endpoint."""

import math
from dataclasses import dataclass
from typing import Any, Dict, List

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_envelope(data: List[Any], total: int, request: PageRequest) -> Dict[str, Any]:
    """The `{data, total, page, limit, pages}` body returned by list endpoints."""
    return {
        "data": data,
        "total": total,
        "page": request.page,
        "limit": request.limit,
        "pages": math.ceil(total / request.limit) if total else 0,
    }
