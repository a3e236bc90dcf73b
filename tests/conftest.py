"""
Shared pytest fixtures for web reader tests.

Provides reusable fixtures for:
- Configuration and settings
- Sample documents
- Temporary resources
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from bs4 import BeautifulSoup

from web_reader.config import Settings, reset_settings
from web_reader.utils.logging import reset_logging

PARAGRAPHS = [
    "Tomatoes are among the most rewarding plants a home gardener can grow. "
    "They need plenty of sun and regular watering, and they reward that care "
    "with a long harvest that lasts from midsummer until the first frost arrives.",
    "Start the seeds indoors about six weeks before the last expected frost. "
    "Use a light seed compost and keep the trays somewhere warm. Once the "
    "seedlings have their first true leaves, move them into individual pots.",
    "When the nights stay warm, plant the young tomatoes outside in rich soil. "
    "Bury the stems deeper than they grew in the pot, because new roots will "
    "form along the buried part and make the plant much sturdier over time.",
    "Feed the plants every week once the first flowers appear. A liquid feed "
    "high in potassium works best. Pinch out side shoots on cordon varieties "
    "so the plant puts its energy into fruit instead of leaves and stems.",
]


def build_article_html(paragraphs: list[str] | None = None, head: str = "", extra_body: str = "") -> str:
    """Assemble a typical article page around the given paragraphs."""
    paragraphs = PARAGRAPHS if paragraphs is None else paragraphs
    body = "\n".join(f"<p>{text}</p>" for text in paragraphs)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>Growing Tomatoes at Home | Garden Weekly</title>
    {head}
</head>
<body>
    <header class="site-header">
        <nav class="menu"><a href="/">Home</a> <a href="/garden">Garden</a></nav>
    </header>
    <div id="main">
        <article class="post">
            <h1>Growing Tomatoes at Home</h1>
            <div class="byline">By Jane Gardener</div>
            {body}
        </article>
        <aside class="sidebar"><a href="/related">Related stories</a></aside>
    </div>
    {extra_body}
    <div class="comments" id="comments"><p>Great article, thanks!</p></div>
    <footer class="footer"><p>Copyright 2023 Garden Weekly</p></footer>
</body>
</html>
"""


@pytest.fixture(autouse=True)
def reset_global_state():
    """
    Reset cached settings and logging handlers around each test.

    This ensures tests are isolated and don't share global state.
    """
    reset_settings()
    yield
    reset_settings()
    reset_logging()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_settings() -> Settings:
    """Provide settings with a lower article threshold."""
    return Settings(reader={"char_threshold": 250})


@pytest.fixture
def article_url() -> str:
    return "https://example.com/2023/04/12/growing-tomatoes"


@pytest.fixture
def sample_html() -> str:
    """Provide a full article page with site chrome around it."""
    head = """
    <meta property="og:title" content="Growing Tomatoes at Home">
    <meta property="og:site_name" content="Garden Weekly">
    <meta name="description" content="A practical guide to growing tomatoes.">
    <meta property="article:published_time" content="2023-04-12T08:30:00Z">
    <meta property="og:image" content="https://example.com/images/tomatoes.jpg">
    <link rel="alternate" hreflang="fr" href="/fr/tomates">
    <link rel="alternate" hreflang="x-default" href="/tomatoes">
    """
    return build_article_html(head=head)


@pytest.fixture
def article_html_factory():
    """Provide the page builder, for tests needing custom paragraphs."""
    return build_article_html


@pytest.fixture
def sample_soup(sample_html: str) -> BeautifulSoup:
    return BeautifulSoup(sample_html, "html.parser")
