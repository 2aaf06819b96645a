from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from news_enricher.schemas import EnrichedArticle


def read_articles(input_path: str) -> list[dict]:
    data = json.loads(Path(input_path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"input must be a JSON array of articles, got {type(data).__name__}")
    return data


def write_articles(articles: Iterable[EnrichedArticle], output_path: str) -> int:
    records = [article.to_dict() for article in articles]
    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as fh:
        json.dump(records, fh, ensure_ascii=False, indent=2)
        fh.write("\n")
    return len(records)
