"""Pydantic schemas for article input and output."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Mapping, Optional

ENRICHMENT_FIELDS = ("favicon", "excerpt", "content")


class ArticleStub(BaseModel):
    """An article as scraped from a results listing.

    Unknown keys (source, datetime, ...) are kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    title: str = Field(default="", description="Article headline")
    link: str = Field(description="URL of the article page")
    image: Optional[str] = Field(default=None, description="Thumbnail URL, if any")


class EnrichedArticle(ArticleStub):
    favicon: Optional[str] = Field(default=None, description="Favicon of the resolved site")
    excerpt: Optional[str] = Field(default=None, description="Short summary from the page")
    content: Optional[str] = Field(default=None, description="Cleaned article text")

    @classmethod
    def from_stub(cls, stub: ArticleStub) -> "EnrichedArticle":
        return cls.model_validate(stub.model_dump(exclude_unset=True))

    @classmethod
    def passthrough(cls, data: Mapping[str, Any]) -> "EnrichedArticle":
        """Wrap an input record that failed validation, without changing it."""
        return cls.model_construct(_fields_set=set(data), **data)

    def to_dict(self) -> dict:
        """Dump the input keys as given plus the enrichment fields that were filled in."""
        data = self.model_dump(exclude_unset=True, warnings=False)
        for key in ENRICHMENT_FIELDS:
            if data.get(key) is None:
                data.pop(key, None)
        return data
