import pytest

from news_enricher.config import EnricherConfig, config_from_mapping, load_config


def test_defaults():
    config = EnricherConfig()
    assert config.proxies == ()
    assert config.min_words == 100
    assert config.probe_timeout == 5.0
    assert config.probe_concurrency == 100
    assert config.block_url_patterns == ("google.com/sorry",)


def test_load_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "proxies:\n"
        "  - 10.0.0.1:8080\n"
        "  - ' 10.0.0.2:3128 '\n"
        "filter_words: [read more at, listen now]\n"
        "extract_content: false\n"
        "min_words: 50\n"
        "probe_concurrency: 10\n",
        encoding="utf-8",
    )
    config = load_config(str(path))

    assert config.proxies == ("10.0.0.1:8080", "10.0.0.2:3128")
    assert config.filter_words == ("read more at", "listen now")
    assert config.extract_content is False
    assert config.min_words == 50
    assert config.probe_concurrency == 10
    assert config.headless is True


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(str(path)) == EnricherConfig()


def test_non_mapping_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="YAML mapping"):
        load_config(str(path))


def test_single_string_filter_word():
    assert config_from_mapping({"filter_words": "sponsored by"}).filter_words == ("sponsored by",)


@pytest.mark.parametrize(
    "data, message",
    [
        ({"probe_concurrency": 0}, "probe_concurrency"),
        ({"probe_timeout": 0}, "probe_timeout"),
        ({"probe_url": "ftp://example.com"}, "probe_url"),
        ({"min_words": -1}, "min_words"),
        ({"navigation_timeout_ms": 0}, "navigation_timeout_ms"),
        ({"proxy_list": []}, "unknown config keys"),
    ],
)
def test_invalid_values_rejected(data, message):
    with pytest.raises(ValueError, match=message):
        config_from_mapping(data)
