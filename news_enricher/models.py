from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from news_enricher.errors import FetchFailed, ProxyTransientFailure


@dataclass(frozen=True)
class ExtractionResult:
    title: str | None = None
    excerpt: str | None = None
    text_content: str | None = None


class ExtractionStatus(Enum):
    EXTRACTED = "extracted"
    NO_ARTICLE = "no_article"
    UNPARSABLE = "unparsable"
    VERIFICATION_REQUIRED = "verification_required"
    TOO_SHORT = "too_short"


@dataclass(frozen=True)
class Success:
    html: str
    resolved_url: str
    favicon: str | None = None

    def raise_for_failure(self) -> "Success":
        return self


@dataclass(frozen=True)
class Blocked:
    resolved_url: str

    def raise_for_failure(self) -> "Blocked":
        return self


@dataclass(frozen=True)
class TransientFailure:
    reason: str

    def raise_for_failure(self):
        raise ProxyTransientFailure(self.reason)


@dataclass(frozen=True)
class FatalFailure:
    reason: str

    def raise_for_failure(self):
        raise FetchFailed(self.reason)


FetchOutcome = Union[Success, Blocked, TransientFailure, FatalFailure]
