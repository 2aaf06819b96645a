from news_enricher.readability import parse_article

PARAGRAPHS = [
    "The city council approved the new transit budget on Tuesday after a long public hearing.",
    "Supporters said the plan would add bus routes to neighborhoods that have gone without service for years.",
    "Opponents argued the spending should wait until an audit of the existing system is finished.",
]

ARTICLE_HTML = f"""
<html>
<head>
  <title>Council approves transit budget</title>
  <meta name="description" content="The council voted 7-2 in favor of the plan.">
</head>
<body>
  <header class="site-header"><a href="/">Home</a> <a href="/news">News</a></header>
  <nav><a href="/a">Politics</a><a href="/b">Sports</a><a href="/c">Weather</a></nav>
  <div id="page-content">
    <article>
      <h1>Council approves transit budget</h1>
      <p>{PARAGRAPHS[0]}</p>
      <div class="ad-slot">Buy one get one free on all mattresses this weekend only</div>
      <p>{PARAGRAPHS[1]}</p>
      <p>{PARAGRAPHS[2]}</p>
    </article>
    <div class="sidebar related">
      <a href="/x">Another story about trains and more trains</a>
      <a href="/y">Yet another story about buses in the city</a>
    </div>
  </div>
  <footer>Copyright 2024 The Daily Example. All rights reserved worldwide.</footer>
  <script>window.tracking = true;</script>
</body>
</html>
"""


def test_extracts_article_paragraphs_one_per_line():
    result = parse_article(ARTICLE_HTML, "https://news.example.com/transit")

    assert result is not None
    lines = result.text_content.split("\n")
    assert lines == ["Council approves transit budget", *PARAGRAPHS]


def test_title_and_excerpt_come_from_head():
    result = parse_article(ARTICLE_HTML, "https://news.example.com/transit")

    assert result.title == "Council approves transit budget"
    assert result.excerpt == "The council voted 7-2 in favor of the plan."


def test_excerpt_falls_back_to_first_paragraph():
    html = ARTICLE_HTML.replace('<meta name="description" content="The council voted 7-2 in favor of the plan.">', "")
    result = parse_article(html, "https://news.example.com/transit")

    assert result.excerpt == PARAGRAPHS[0]


def test_boilerplate_is_not_in_text():
    text = parse_article(ARTICLE_HTML, "https://news.example.com/transit").text_content

    for noise in ("mattresses", "Politics", "Copyright", "Another story", "tracking"):
        assert noise not in text


def test_returns_none_without_article_body():
    assert parse_article("<html><body><p>Too short</p></body></html>", "https://x/1") is None


def test_returns_none_for_empty_markup():
    assert parse_article("", "https://x/1") is None
    assert parse_article("   ", "https://x/1") is None
