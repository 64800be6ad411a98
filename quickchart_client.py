"""
QuickChart rendering.

Most mana charts fit in a plain ``/chart?c=...`` link. When the encoded
URL is too long for a chat message, the configuration is posted to
``/chart/create`` and the short URL it returns is used instead.
"""

import json
import logging
from typing import Optional

import httpx

from config import HTTP_HEADERS, HTTP_TIMEOUT, MAX_CHART_URL_LENGTH, QUICKCHART_API
from errors import RenderError
from mana_chart import build_chart_url, serialize_chart
from models import ChartSpec

logger = logging.getLogger(__name__)


class QuickChartClient:

    def __init__(self, client: Optional[httpx.AsyncClient] = None, max_url_length: int = MAX_CHART_URL_LENGTH):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=QUICKCHART_API,
            headers=HTTP_HEADERS,
            timeout=HTTP_TIMEOUT,
        )
        self.max_url_length = max_url_length

    async def __aenter__(self) -> "QuickChartClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def render(self, spec: ChartSpec) -> str:
        """
        Return a URL that renders ``spec``.

        Raises:
            RenderError: the chart could not be serialized or shortened
        """
        url = build_chart_url(spec)
        if len(url) <= self.max_url_length:
            return url

        logger.info("Chart URL is %d characters, requesting a short URL", len(url))
        return await self.create_short_url(spec)

    async def create_short_url(self, spec: ChartSpec) -> str:
        payload = {"chart": json.loads(serialize_chart(spec)), "backgroundColor": "white"}
        try:
            response = await self._client.post("/chart/create", json=payload)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RenderError(f"QuickChart short URL request failed: {e}") from e

        if not data.get("success") or not data.get("url"):
            raise RenderError(f"QuickChart did not return a URL: {data}")
        return data["url"]
