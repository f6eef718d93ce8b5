from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bbagent_core.bb.models import Page, parse
from bbagent_core.bb.results import ApiFailure, ApiResult, Ok

if TYPE_CHECKING:
    from bbagent_core.bb.client import ApiClient

logger = logging.getLogger(__name__)


async def fetch_all_pages(client: ApiClient, path: str, model) -> ApiResult:
    """Follow ``next`` links from ``path`` and return every item in server order.

    The first page is addressed by ``path``; later pages by the absolute URL
    the server put in ``next``. The first failure is returned as-is and no
    further pages are requested.
    """
    items: list = []
    next_url: str | None = path
    page_model = Page[model]

    while next_url is not None:
        if next_url.startswith("http"):
            result = await client.get_url(next_url)
        else:
            result = await client.get(next_url)
        if isinstance(result, ApiFailure):
            return result

        page = parse(page_model, result.value)
        if isinstance(page, ApiFailure):
            return page

        items.extend(page.value.values)
        logger.debug("Fetched %d item(s) from %s (total %d)", len(page.value.values), next_url, len(items))
        next_url = page.value.next

    return Ok(items)
