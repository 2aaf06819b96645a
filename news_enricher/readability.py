"""Readability-style article extraction with BeautifulSoup.

Given raw page markup, finds the container most likely to hold the article
body and returns its text with one paragraph per line, plus the page title
and a short excerpt. Returns ``None`` when no plausible body exists.

Scoring heuristics:
- class/id patterns (positive: article, story, content; negative: sidebar,
  comment, promo, ...)
- paragraph count, text density and link density
- semantic landmarks (``itemprop=articleBody``, ``<article>``, ``<main>``)
"""

from __future__ import annotations

import logging
import math
import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from news_enricher.models import ExtractionResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Scoring patterns
# ---------------------------------------------------------------------------

_POSITIVE_PATTERNS = re.compile(
    r"article|body|content|entry|hentry|h-entry|main|page|post|text|blog|story|paragraph|prose",
    re.IGNORECASE,
)

# Short terms use \b so "navigate" does not count as "nav"
_NEGATIVE_PATTERNS = re.compile(
    r"combx|comment|contact|foot|footer|footnote|masthead|outbrain|promo|related|"
    r"shoutbox|sidebar|sponsor|shopping|\bnav\b|\bmenu\b|breadcrumb|crumb|pager|"
    r"popup|modal|overlay|cookie|consent|newsletter|subscribe|signup",
    re.IGNORECASE,
)

_AD_WORD_PATTERNS = re.compile(
    r"\b(?:ad|ads|advert|advertisement|adsense|ad-slot|ad-wrapper|banner-ad|"
    r"sponsored|tracking|social-share|share-buttons|cookie-banner|cookie-notice)\b",
    re.IGNORECASE,
)

_BOILERPLATE_TAGS = ["script", "style", "noscript", "iframe", "svg", "form", "button"]
_STRUCTURAL_NOISE_TAGS = {"footer", "nav", "aside"}
_CANDIDATE_TAGS = ["div", "section", "td", "article", "main", "blockquote"]
_BLOCK_TAGS = [
    "p", "div", "br", "hr", "h1", "h2", "h3", "h4", "h5", "h6",
    "li", "tr", "blockquote", "pre", "table", "section", "article", "figcaption",
]

_MIN_CONTENT_LENGTH = 50     # chars for a candidate to be considered
_MIN_PARAGRAPH_LENGTH = 20   # chars for a block to count as a paragraph
_MIN_ARTICLE_LENGTH = 140    # chars for the winner to count as an article
_MAX_EXCERPT_LENGTH = 300


def _class_id(tag: Tag) -> str:
    parts = list(tag.get("class") or [])
    if tag.get("id"):
        parts.append(tag["id"])
    return " ".join(parts)


def _text_length(tag: Tag) -> int:
    return len(tag.get_text(strip=True))


def _count_paragraphs(tag: Tag) -> int:
    return sum(
        1 for el in tag.find_all(["p", "li", "blockquote", "dd"])
        if len(el.get_text(strip=True)) >= _MIN_PARAGRAPH_LENGTH
    )


def _link_density(tag: Tag) -> float:
    text_length = _text_length(tag)
    if text_length == 0:
        return 1.0
    link_text = sum(len(a.get_text(strip=True)) for a in tag.find_all("a"))
    return link_text / text_length


def _score_candidate(tag: Tag) -> float:
    score = {"article": 10, "main": 10, "section": 3, "blockquote": 3, "td": 1}.get(tag.name, 0)

    class_id = _class_id(tag)
    if _POSITIVE_PATTERNS.search(class_id):
        score += 25
    if _NEGATIVE_PATTERNS.search(class_id):
        score -= 25
    if (tag.get("itemprop") or "").lower() == "articlebody":
        score += 15
    if (tag.get("role") or "").lower() in ("main", "article"):
        score += 20

    score += _count_paragraphs(tag) * 3

    link_density = _link_density(tag)
    if link_density > 0.5:
        score -= 30 * link_density

    text_length = _text_length(tag)
    if text_length > _MIN_CONTENT_LENGTH:
        score += math.log(text_length) * 2
    return score


def _is_noise(tag: Tag) -> bool:
    if tag.name in ("html", "head", "body"):
        return False
    if tag.name in _STRUCTURAL_NOISE_TAGS:
        return True

    # Page-level headers go, headers inside the article (byline, date) stay
    if tag.name == "header":
        return tag.find_parent(["article", "main"]) is None

    class_id = _class_id(tag)
    if class_id and _AD_WORD_PATTERNS.search(class_id):
        return True
    if class_id and _NEGATIVE_PATTERNS.search(class_id) and _link_density(tag) > 0.3:
        return True

    style = (tag.get("style") or "").replace(" ", "")
    if "display:none" in style or "visibility:hidden" in style:
        return True
    return tag.get("aria-hidden") == "true" and _text_length(tag) <= 80


def _clean_soup(soup: BeautifulSoup) -> BeautifulSoup:
    for tag in soup.find_all(_BOILERPLATE_TAGS):
        if not tag.decomposed:
            tag.decompose()

    # Collect first, a removed parent takes its children with it
    to_remove = [tag for tag in soup.find_all(True) if _is_noise(tag)]
    for tag in to_remove:
        if not tag.decomposed:
            tag.decompose()
    return soup


def _find_article_body(soup: BeautifulSoup) -> Optional[Tag]:
    landmark = None
    for finder in (
        lambda: soup.find(attrs={"itemprop": "articleBody"}),
        lambda: soup.find("article"),
        lambda: soup.find(attrs={"role": "main"}),
        lambda: soup.find("main"),
    ):
        found = finder()
        if found is not None and _text_length(found) >= _MIN_CONTENT_LENGTH:
            landmark = found
            break

    scored = None
    best_score = 0.0
    for tag in soup.find_all(_CANDIDATE_TAGS):
        if _text_length(tag) < _MIN_CONTENT_LENGTH:
            continue
        score = _score_candidate(tag)
        if score > best_score:
            scored, best_score = tag, score

    # Prefer the landmark unless scoring found noticeably more text
    if landmark is not None and scored is not None:
        best = scored if _text_length(scored) > _text_length(landmark) * 1.3 else landmark
    else:
        best = landmark or scored

    if best is None or _text_length(best) < _MIN_ARTICLE_LENGTH:
        return None
    return best


def _node_text(node: Tag) -> str:
    """Text of ``node`` with one block element per line."""
    for tag in node.find_all(_BLOCK_TAGS):
        tag.insert_before("\n")
        tag.insert_after("\n")

    text = re.sub(r"[^\S\n]+", " ", node.get_text())
    lines = (line.strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def _meta_content(soup: BeautifulSoup, **attrs) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def _extract_title(soup: BeautifulSoup) -> Optional[str]:
    title = _meta_content(soup, property="og:title")
    if title:
        return title
    if soup.title and soup.title.string:
        return soup.title.string.strip() or None
    h1 = soup.find("h1")
    return h1.get_text(strip=True) if h1 else None


def _extract_excerpt(soup: BeautifulSoup, body: Tag) -> Optional[str]:
    excerpt = (
        _meta_content(soup, name="description")
        or _meta_content(soup, property="og:description")
    )
    if excerpt:
        return excerpt
    first = next(
        (p.get_text(" ", strip=True) for p in body.find_all("p")
         if len(p.get_text(strip=True)) >= _MIN_PARAGRAPH_LENGTH),
        None,
    )
    if first and len(first) > _MAX_EXCERPT_LENGTH:
        first = first[:_MAX_EXCERPT_LENGTH].rsplit(" ", 1)[0] + "..."
    return first


def parse_article(html: str, base_url: str) -> Optional[ExtractionResult]:
    """Extract title, excerpt and body text from ``html``.

    Args:
        html: raw page markup
        base_url: URL the markup was loaded from (used for diagnostics)

    Returns:
        ExtractionResult, or None if no article body could be identified.
    """
    if not html or not html.strip():
        return None

    soup = _clean_soup(BeautifulSoup(html, "lxml"))
    body = _find_article_body(soup)
    if body is None:
        logger.debug("no article body found at %s", base_url)
        return None

    # Excerpt first: _node_text inserts line breaks into the body
    title = _extract_title(soup)
    excerpt = _extract_excerpt(soup, body)
    return ExtractionResult(
        title=title,
        excerpt=excerpt,
        text_content=_node_text(body) or None,
    )
