from __future__ import annotations

import argparse
import asyncio
import logging
import os
import time

from news_enricher.config import EnricherConfig, load_config
from news_enricher.pipeline import ArticleEnricher
from news_enricher.writer import read_articles, write_articles

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger(__name__)


async def run(config_path: str | None, input_path: str, output_path: str) -> None:
    config = load_config(config_path) if config_path else EnricherConfig()
    stubs = read_articles(input_path)

    logger.info("input           = %s (%d articles)", input_path, len(stubs))
    logger.info("output          = %s", output_path)
    logger.info("proxies         = %d candidates", len(config.proxies))
    logger.info("extract_content = %s", config.extract_content)

    t0 = time.monotonic()
    enricher = ArticleEnricher(config)
    articles = await enricher.get_content(stubs)
    count = write_articles(articles, output_path)
    elapsed = time.monotonic() - t0

    logger.info("--- enrichment complete ---")
    logger.info("articles written : %d", count)
    logger.info("with content     : %d", sum(1 for a in articles if a.content))
    if enricher.aborted:
        logger.warning("batch aborted    : bot verification wall, input written unchanged")
    logger.info("output file      : %s", os.path.abspath(output_path))
    logger.info("elapsed          : %.1f s", elapsed)


def main() -> None:
    parser = argparse.ArgumentParser(description="Enrich news article stubs with page content")
    parser.add_argument("--config", default=None, help="path to config.yaml (default: built-in defaults)")
    parser.add_argument("--input", required=True, help="JSON array of {title, link, image} stubs")
    parser.add_argument("--output", required=True, help="where to write the enriched JSON array")
    args = parser.parse_args()
    try:
        asyncio.run(run(args.config, args.input, args.output))
    except Exception:
        logger.exception("Enrichment failed")
        raise


if __name__ == "__main__":
    main()
