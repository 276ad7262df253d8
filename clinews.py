"""clinews

Terminal front end for :mod:`newsapi`.

Reads the API key from ``.env`` / the environment, fetches top headlines for a
country (or searches everything for a query), prints the articles and, when
asked, lets the user pick one to open in the default browser.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import webbrowser
from typing import Callable, List, Optional, Sequence

from dotenv import load_dotenv
from tabulate import tabulate

from newsapi import DEFAULT_TIMEOUT_S, Article, Country, Endpoint, NewsAPI, NewsApiError

LOGGER = logging.getLogger(__name__)

SEPARATOR = "---"


def fetch_news(
    api_key: str,
    *,
    endpoint: Endpoint = Endpoint.TOP_HEADLINES,
    country: Country = Country.US,
    query: Optional[str] = None,
    use_async: bool = False,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> List[Article]:
    """Run one request and return the articles in server order."""
    client = NewsAPI(api_key, timeout_s=timeout_s).set_endpoint(endpoint).set_country(country)
    if query is not None:
        client.set_query(query)

    LOGGER.info("Fetching NewsAPI '%s'%s", endpoint, " (async)" if use_async else "")
    if use_async:
        response = asyncio.run(client.fetch_async())
    else:
        response = client.fetch()

    articles = list(response.articles)
    LOGGER.info("Got %d articles", len(articles))
    return articles


def heading_for(endpoint: Endpoint, country: Country, query: Optional[str]) -> str:
    if endpoint is Endpoint.EVERYTHING:
        return f"Results for '{query}'"
    return f"Top headlines ({country})"


def format_articles(articles: Sequence[Article], heading: str, *, table: bool = False) -> str:
    """Render articles as text, numbered from 1."""
    lines = [f"# {heading}", ""]
    if not articles:
        lines.append("No articles found.")
        return "\n".join(lines)

    if table:
        rows = [(i, a.title, a.url) for i, a in enumerate(articles, start=1)]
        lines.append(tabulate(rows, headers=["#", "title", "url"]))
        return "\n".join(lines)

    for i, article in enumerate(articles, start=1):
        lines.append(f"{i}. {article.title}")
        lines.append(f"   > {article.url}")
        lines.append(SEPARATOR)
    return "\n".join(lines)


def prompt_and_open(
    articles: Sequence[Article],
    *,
    read: Callable[[str], str] = input,
    opener: Callable[[str], object] = webbrowser.open,
    write: Callable[[str], None] = print,
) -> List[str]:
    """Ask for article numbers and open each chosen one; blank input or EOF stops.

    Returns the urls that were opened.
    """
    opened: List[str] = []
    if not articles:
        return opened

    while True:
        try:
            choice = read(f"Open article [1-{len(articles)}] (enter to quit): ").strip()
        except EOFError:
            break
        if not choice:
            break

        if not choice.isdigit() or not 1 <= int(choice) <= len(articles):
            write(f"Not an article number: {choice}")
            continue

        url = articles[int(choice) - 1].url
        LOGGER.debug("Opening %s", url)
        opener(url)
        opened.append(url)

    return opened


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="clinews: news headlines in your terminal")
    p.add_argument("-c", "--country", default=str(Country.US), help="Country code: " + ", ".join(c.value for c in Country))
    p.add_argument("-e", "--endpoint", default=str(Endpoint.TOP_HEADLINES), help="top-headlines or everything")
    p.add_argument("-q", "--query", default=None, help="Search query (required for 'everything')")
    p.add_argument("--async", dest="use_async", action="store_true", help="Use the async HTTP client")
    p.add_argument("--table", action="store_true", help="Render articles as a table")
    p.add_argument("-o", "--open", action="store_true", help="Pick articles to open in the browser")
    p.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_S, help="Request timeout in seconds")
    p.add_argument("--log-level", default="WARNING", help="DEBUG, INFO, WARNING...")
    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    load_dotenv()
    args = _parse_args(argv)

    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))

    api_key = os.getenv("NEWS_API_KEY") or os.getenv("API_KEY")
    if not api_key:
        raise SystemExit("Missing NEWS_API_KEY. Put it in .env or environment variables.")

    try:
        endpoint = Endpoint.from_str(args.endpoint)
        country = Country.from_str(args.country)
        articles = fetch_news(
            api_key,
            endpoint=endpoint,
            country=country,
            query=args.query,
            use_async=args.use_async,
            timeout_s=args.timeout,
        )
    except NewsApiError as e:
        LOGGER.debug("Request failed", exc_info=True)
        raise SystemExit(f"Error: {e}") from e

    print(format_articles(articles, heading_for(endpoint, country, args.query), table=args.table))

    if args.open:
        prompt_and_open(articles)


if __name__ == "__main__":
    main()
