# product_scout/crawler/models.py
"""
Data models shared by the discovery, scoring and extraction stages.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Tuple


@dataclass(slots=True)
class PageData:
    """Holds the requested URL, decoded body and HTTP status of a fetched resource."""

    url: str
    content: str
    status: int = 200


@dataclass(slots=True)
class CandidateURL:
    """One discovery cache entry."""

    url: str
    discovered_at: int
    last_score: int = 0


@dataclass(frozen=True, slots=True)
class ExtractedFields:
    description: str = ""
    short_description: str = ""
    images: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class ProductRecord:
    """A qualified product page: it passed the score threshold and matched a model."""

    model: str
    url: str
    description: str
    short_description: str
    images: Tuple[str, ...] = field(default_factory=tuple)

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["images"] = list(self.images)
        return data
