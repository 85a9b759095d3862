# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


DEFAULT_NUM_RESULTS = 5
MAX_NUM_RESULTS = 10

# Optional filters forwarded to the Custom Search API under the same name
PASSTHROUGH_FIELDS = (
    "lr",
    "dateRestrict",
    "fileType",
    "siteSearch",
    "siteSearchFilter",
    "cr",
    "exactTerms",
    "excludeTerms",
    "orTerms",
    "rights",
    "sort",
    "searchType",
)


class SearchParams(BaseModel):
    query: str = Field(description="Google search query")
    num: Optional[int] = Field(
        default=None, ge=1, le=MAX_NUM_RESULTS, description="Number of results to return (1-10)"
    )
    start: Optional[int] = Field(default=None, ge=1, description="Starting index of results")
    safe: Optional[Literal["off", "active"]] = Field(default=None, description="SafeSearch level")
    lr: Optional[str] = Field(default=None, description="Results language (ex: lang_fr, lang_en)")
    gl: Optional[str] = Field(
        default=None, description="Geolocation (country code: fr, us, uk, etc.)"
    )
    dateRestrict: Optional[str] = Field(
        default=None, description="Time filter (ex: d1=24h, w1=week, m1=month, y1=year)"
    )
    fileType: Optional[str] = Field(default=None, description="File type (ex: pdf, doc, ppt)")
    siteSearch: Optional[str] = Field(
        default=None, description="Search specific site (ex: reddit.com)"
    )
    siteSearchFilter: Optional[Literal["i", "e"]] = Field(
        default=None, description="Include (i) or exclude (e) the site"
    )
    cr: Optional[str] = Field(
        default=None, description="Country restriction (ex: countryFR, countryUS)"
    )
    exactTerms: Optional[str] = Field(default=None, description="Exact phrase required")
    excludeTerms: Optional[str] = Field(default=None, description="Words to exclude from search")
    orTerms: Optional[str] = Field(default=None, description="Alternative terms (OR)")
    rights: Optional[str] = Field(
        default=None, description="License filters (ex: cc_publicdomain)"
    )
    sort: Optional[str] = Field(default=None, description="Sort by date (value: date)")
    searchType: Optional[str] = Field(default=None, description="Search type (value: image)")

    def to_query_params(self) -> Dict[str, Any]:
        """Custom Search API parameters, without credentials."""
        params: Dict[str, Any] = {
            "q": self.query,
            "num": min(self.num or DEFAULT_NUM_RESULTS, MAX_NUM_RESULTS),
            "start": self.start or 1,
            "safe": self.safe or "off",
        }
        if self.gl:
            params["gl"] = self.gl
            params["hl"] = self.gl
        for name in PASSTHROUGH_FIELDS:
            value = getattr(self, name)
            if value:
                params[name] = value
        return params


class SearchResult(BaseModel):
    title: str = ""
    link: str = ""
    snippet: str = ""
    displayLink: str = ""

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "SearchResult":
        return cls(
            title=item.get("title") or "",
            link=item.get("link") or "",
            snippet=item.get("snippet") or "",
            displayLink=item.get("displayLink") or "",
        )


class SearchResponse(BaseModel):
    results: List[SearchResult]
    total_results: str = "0"
    search_time: str = "0"
