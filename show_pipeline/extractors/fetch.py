"""HTTP fetcher for show listing pages.

One attempt per call: the caller decides whether a URL is worth retrying.
"""

from typing import Optional

import httpx
from rich.console import Console

from show_pipeline.config import Settings
from show_pipeline.errors import NetworkError

console = Console()


def browser_headers(settings: Settings) -> dict[str, str]:
    return {
        "User-Agent": settings.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
    }


async def fetch_document(
    url: str,
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """Fetch a page and return its body.

    Raises:
        NetworkError: non-2xx status, timeout, transport failure, or a body
            too small to hold any listings.
    """
    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(follow_redirects=True)

    try:
        response = await client.get(
            url,
            headers=browser_headers(settings),
            timeout=settings.fetch_timeout,
            follow_redirects=True,
        )
    except httpx.TimeoutException as e:
        raise NetworkError(url, f"Timeout after {settings.fetch_timeout:.0f}s") from e
    except httpx.RequestError as e:
        raise NetworkError(url, f"Connection error: {type(e).__name__}") from e
    finally:
        if owns_client:
            await client.aclose()

    if not response.is_success:
        raise NetworkError(url, f"HTTP {response.status_code}", status_code=response.status_code)

    html = response.text
    if len(html) < settings.min_document_length:
        raise NetworkError(url, f"Empty page ({len(html)} chars)", status_code=response.status_code)

    console.print(f"[dim]Fetched {url} ({len(html):,} chars)[/dim]")
    return html
