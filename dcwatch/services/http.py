import httpx
from contextlib import asynccontextmanager
from dcwatch.config import settings

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36"

def new_client(timeout: float = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=timeout or settings.HTTP_TIMEOUT,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )

@asynccontextmanager
async def http_session(client: httpx.AsyncClient | None = None):
    """Yields the injected client, or a short-lived one closed on exit."""
    if client is not None:
        yield client
        return
    async with new_client() as owned:
        yield owned
