"""Article text extraction, verification-wall detection and cleaning.

The policy for a fetched page is a short chain of early returns:

1. readability finds no article body        -> NO_ARTICLE
2. the article has no text                  -> UNPARSABLE
3. the raw text asks the reader to verify   -> VERIFICATION_REQUIRED
4. the cleaned text is under ``min_words``  -> TOO_SHORT
5. otherwise                                -> EXTRACTED (excerpt + cleaned text)

Only the last outcome attaches anything to the article.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from news_enricher.models import ExtractionResult, ExtractionStatus
from news_enricher.readability import parse_article

logger = logging.getLogger(__name__)

# Phrases that identify a human-verification prompt in page text
VERIFY_MESSAGES = (
    "you are human",
    "are you human",
    "i'm not a robot",
    "recaptcha",
)

# Lines containing any of these (case-insensitive) are promotional or boilerplate
UNWANTED_PHRASES = (
    "subscribe now",
    "sign up",
    "newsletter",
    "sign up for our newsletter",
    "exclusive offer",
    "limited time offer",
    "free trial",
    "download now",
    "join now",
    "register today",
    "special promotion",
    "promotional offer",
    "discount code",
    "early access",
    "sneak peek",
    "save now",
    "don't miss out",
    "act now",
    "last chance",
    "expires soon",
    "giveaway",
    "free access",
    "premium access",
    "unlock full access",
    "buy now",
    "learn more",
    "click here",
    "follow us on",
    "share this article",
    "connect with us",
    "advertisement",
    "sponsored content",
    "partner content",
    "affiliate links",
    "for more information",
    "you may also like",
    "we think you'll like",
    "from our network",
)

MIN_LINE_WORDS = 5
DEFAULT_MIN_WORDS = 100

ParseFn = Callable[[str, str], Optional[ExtractionResult]]


def word_count(text: str) -> int:
    return len(text.split())


class ContentExtractor:
    """Turns page markup into cleaned article text."""

    def __init__(
        self,
        filter_words: Iterable[str] = (),
        min_words: int = DEFAULT_MIN_WORDS,
        parser: ParseFn = parse_article,
    ):
        extra = [w.strip().lower() for w in filter_words if w and w.strip()]
        # dict.fromkeys dedupes while keeping order
        self.unwanted_phrases = tuple(dict.fromkeys([*UNWANTED_PHRASES, *extra]))
        self.min_words = min_words
        self._parser = parser

    def extract(self, html: str, base_url: str) -> Optional[ExtractionResult]:
        return self._parser(html, base_url)

    @staticmethod
    def has_verification_challenge(text: str) -> bool:
        lower = text.lower()
        return any(message in lower for message in VERIFY_MESSAGES)

    def _is_wanted(self, line: str) -> bool:
        if len(line.split()) < MIN_LINE_WORDS:
            return False
        lower = line.lower()
        return not any(phrase in lower for phrase in self.unwanted_phrases)

    def clean(self, text: str) -> str:
        """Drop short and promotional lines, keeping the rest in order."""
        lines = (line.strip() for line in text.splitlines())
        return "\n".join(line for line in lines if self._is_wanted(line))

    def is_too_short(self, text: str) -> bool:
        return word_count(text) < self.min_words

    def process(
        self, html: str, base_url: str
    ) -> tuple[ExtractionStatus, Optional[str], Optional[str]]:
        """Run the extraction policy on a fetched page.

        Returns:
            (status, excerpt, content); excerpt and content are only set
            when status is EXTRACTED.
        """
        result = self.extract(html, base_url)
        if result is None:
            logger.warning("No article body found at %s", base_url)
            return ExtractionStatus.NO_ARTICLE, None, None

        if not result.text_content:
            logger.warning("Article content could not be parsed or is empty: %s", base_url)
            return ExtractionStatus.UNPARSABLE, None, None

        if self.has_verification_challenge(result.text_content):
            logger.warning("Article requires human verification: %s", base_url)
            return ExtractionStatus.VERIFICATION_REQUIRED, None, None

        cleaned = self.clean(result.text_content)
        if self.is_too_short(cleaned):
            logger.warning(
                "Article content is too short (%d words) and likely not valuable: %s",
                word_count(cleaned), base_url,
            )
            return ExtractionStatus.TOO_SHORT, None, None

        logger.info("Extracted %d words from %s", word_count(cleaned), base_url)
        return ExtractionStatus.EXTRACTED, result.excerpt or None, cleaned
