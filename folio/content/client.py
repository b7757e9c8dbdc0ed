from typing import Optional, Tuple

import httpx
from loguru import logger

from folio.content.models import ContentRecord
from folio.errors import ContentServiceError

DEFAULT_CONFIG = {
    "timeout": 30,
}


class ContentClient:
    """
    Queries the remote content service for one term at a time.

    Must be used as an async context manager. No retries: a failed call is
    reported once and the caller decides what to show.
    """

    def __init__(
        self,
        base_url: str,
        config: Optional[dict] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.config = {**DEFAULT_CONFIG, **(config or {})}
        self._transport = transport
        self.http_client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self.http_client = httpx.AsyncClient(
            timeout=self.config["timeout"],
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.http_client:
            await self.http_client.aclose()
            self.http_client = None

    async def fetch(self, query: str) -> Tuple[bool, ContentRecord]:
        """
        Fetches the record for `query`.

        Returns:
            `(ok, record)` where `ok` is False for non-2xx responses whose body
            still parsed as a record (the service reports misses that way).

        Raises:
            ContentServiceError: For blank queries or a non-object body.
            httpx.HTTPError: On transport failures.
            pydantic.ValidationError: When the body has the wrong shape.
        """
        if not self.http_client:
            raise RuntimeError("ContentClient must be used as an async context manager.")
        query = (query or "").strip()
        if not query:
            raise ContentServiceError("Cannot query the content service with a blank term.")

        logger.info(f"Querying content service for '{query}'")
        response = await self.http_client.get(self.base_url, params={"q": query})
        try:
            data = response.json()
        except ValueError as e:
            raise ContentServiceError(
                f"Content service returned a non-JSON body (HTTP {response.status_code})."
            ) from e
        logger.debug(f"Content service responded with: {data}")
        if not isinstance(data, dict):
            raise ContentServiceError(
                f"Content service returned {type(data).__name__}, expected an object."
            )

        record = ContentRecord.model_validate(data)
        ok = response.is_success
        if not ok:
            logger.warning(f"Content service answered HTTP {response.status_code} for '{query}'.")
        return ok, record
