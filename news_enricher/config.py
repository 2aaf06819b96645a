from __future__ import annotations

import pathlib
from dataclasses import dataclass, field
from typing import Any, Mapping

import yaml

DEFAULT_PROBE_URL = "https://www.google.com"
DEFAULT_BLOCK_URL_PATTERNS = ("google.com/sorry",)


@dataclass(frozen=True)
class EnricherConfig:
    proxies: tuple[str, ...] = ()
    filter_words: tuple[str, ...] = ()
    extract_content: bool = True
    headless: bool = True
    wait_for_network_idle: bool = True
    navigation_timeout_ms: int = 30_000
    strip_query: bool = True
    min_words: int = 100
    probe_url: str = DEFAULT_PROBE_URL
    probe_timeout: float = 5.0
    probe_concurrency: int = 100
    block_url_patterns: tuple[str, ...] = field(default=DEFAULT_BLOCK_URL_PATTERNS)


def _string_tuple(data: Mapping[str, Any], key: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
    if key not in data or data[key] is None:
        return default
    raw = data[key]
    if isinstance(raw, (list, tuple)):
        return tuple(str(x).strip() for x in raw if str(x).strip())
    return (str(raw).strip(),) if str(raw).strip() else ()


def config_from_mapping(data: Mapping[str, Any]) -> EnricherConfig:
    """Build a validated config from a plain mapping (e.g. parsed YAML)."""
    if not isinstance(data, Mapping):
        raise ValueError(f"config must be a mapping, got {type(data).__name__}")

    known = set(EnricherConfig.__dataclass_fields__)
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(sorted(unknown))}")

    navigation_timeout_ms = int(data.get("navigation_timeout_ms", 30_000))
    min_words = int(data.get("min_words", 100))
    probe_url = str(data.get("probe_url", DEFAULT_PROBE_URL))
    probe_timeout = float(data.get("probe_timeout", 5.0))
    probe_concurrency = int(data.get("probe_concurrency", 100))

    if navigation_timeout_ms <= 0:
        raise ValueError(f"navigation_timeout_ms must be > 0, got {navigation_timeout_ms}")
    if min_words < 0:
        raise ValueError(f"min_words must be >= 0, got {min_words}")
    if not probe_url.startswith("http"):
        raise ValueError(f"probe_url must begin with http, got: {probe_url}")
    if probe_timeout <= 0:
        raise ValueError(f"probe_timeout must be > 0, got {probe_timeout}")
    if probe_concurrency < 1:
        raise ValueError(f"probe_concurrency must be >= 1, got {probe_concurrency}")

    return EnricherConfig(
        proxies=_string_tuple(data, "proxies"),
        filter_words=_string_tuple(data, "filter_words"),
        extract_content=bool(data.get("extract_content", True)),
        headless=bool(data.get("headless", True)),
        wait_for_network_idle=bool(data.get("wait_for_network_idle", True)),
        navigation_timeout_ms=navigation_timeout_ms,
        strip_query=bool(data.get("strip_query", True)),
        min_words=min_words,
        probe_url=probe_url,
        probe_timeout=probe_timeout,
        probe_concurrency=probe_concurrency,
        block_url_patterns=_string_tuple(data, "block_url_patterns", DEFAULT_BLOCK_URL_PATTERNS),
    )


def load_config(path: str) -> EnricherConfig:
    raw = pathlib.Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(raw)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"config file must be a YAML mapping, got {type(data).__name__}")
    return config_from_mapping(data)
