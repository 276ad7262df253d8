import pytest

import clinews
from newsapi import Article, BadRequest, Country, Endpoint, NewsAPIResponse

ARTICLES = [Article("First", "http://a"), Article("Second", "http://b")]


def test_format_articles_numbers_each_article():
    text = clinews.format_articles(ARTICLES, "Top headlines (us)")
    lines = text.splitlines()
    assert lines[0] == "# Top headlines (us)"
    assert "1. First" in lines
    assert "2. Second" in lines
    assert text.count("---") == 2
    assert text.index("http://a") < text.index("http://b")


def test_format_articles_table_and_empty():
    table = clinews.format_articles(ARTICLES, "h", table=True)
    assert "title" in table and "Second" in table
    assert "No articles found." in clinews.format_articles([], "h")


def test_prompt_opens_only_selected_articles():
    answers = iter(["2", "x", "9", "1", ""])
    opened, written = [], []
    result = clinews.prompt_and_open(
        ARTICLES, read=lambda _: next(answers), opener=opened.append, write=written.append
    )
    assert opened == ["http://b", "http://a"]
    assert result == opened
    assert len(written) == 2


def test_prompt_stops_on_eof():
    def read(_):
        raise EOFError

    opened = []
    assert clinews.prompt_and_open(ARTICLES, read=read, opener=opened.append) == []
    assert opened == []


def test_fetch_news_configures_client(monkeypatch):
    seen = {}

    def fake_fetch(self):
        seen["url"] = self.prepare_url()
        return NewsAPIResponse(status="ok", articles=tuple(ARTICLES))

    monkeypatch.setattr("newsapi.NewsAPI.fetch", fake_fetch)
    out = clinews.fetch_news("k", endpoint=Endpoint.EVERYTHING, country=Country.FR, query="rust")
    assert out == ARTICLES
    assert seen["url"].endswith("/everything?q=rust")


def test_fetch_news_async_path(monkeypatch):
    async def fake_fetch_async(self):
        return NewsAPIResponse(status="ok", articles=tuple(ARTICLES[:1]))

    monkeypatch.setattr("newsapi.NewsAPI.fetch_async", fake_fetch_async)
    assert clinews.fetch_news("k", use_async=True) == ARTICLES[:1]


def test_main_requires_api_key(monkeypatch):
    monkeypatch.setattr(clinews, "load_dotenv", lambda: None)
    monkeypatch.delenv("NEWS_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    with pytest.raises(SystemExit) as exc:
        clinews.main([])
    assert "NEWS_API_KEY" in str(exc.value)


def test_main_reports_invalid_country(monkeypatch):
    monkeypatch.setattr(clinews, "load_dotenv", lambda: None)
    monkeypatch.setenv("NEWS_API_KEY", "k")
    with pytest.raises(SystemExit) as exc:
        clinews.main(["--country", "xx"])
    assert str(exc.value) == "Error: Request failed: Invalid country"


def test_main_reports_api_errors(monkeypatch):
    monkeypatch.setattr(clinews, "load_dotenv", lambda: None)
    monkeypatch.setenv("NEWS_API_KEY", "k")

    def fake_fetch_news(api_key, **kwargs):
        raise BadRequest("Your API key has been disabled")

    monkeypatch.setattr(clinews, "fetch_news", fake_fetch_news)
    with pytest.raises(SystemExit) as exc:
        clinews.main([])
    assert "Your API key has been disabled" in str(exc.value)


def test_main_prints_articles(monkeypatch, capsys):
    monkeypatch.setattr(clinews, "load_dotenv", lambda: None)
    monkeypatch.setenv("NEWS_API_KEY", "k")
    captured = {}

    def fake_fetch_news(api_key, **kwargs):
        captured.update(kwargs, api_key=api_key)
        return ARTICLES

    monkeypatch.setattr(clinews, "fetch_news", fake_fetch_news)
    clinews.main(["-c", "gb"])

    out = capsys.readouterr().out
    assert "# Top headlines (gb)" in out
    assert "1. First" in out
    assert captured["api_key"] == "k"
    assert captured["country"] is Country.GB
    assert captured["endpoint"] is Endpoint.TOP_HEADLINES
