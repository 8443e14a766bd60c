"""Page of query results plus the metadata list endpoints return."""

import math
from dataclasses import dataclass, field


@dataclass
class Page:
    items: list = field(default_factory=list)
    page: int = 1
    limit: int = 10
    total: int = 0

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def meta(self) -> dict:
        return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}


def offset_for(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit
