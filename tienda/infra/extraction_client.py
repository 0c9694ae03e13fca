"""Client for the remote Excel-extraction endpoint.

Contract: POST {endpoint} {"archivoBase64": "<file>"} -> {"datos": [row, ...]}
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from tienda.utilities.constants import EXTRACTION_PAYLOAD_FIELD, EXTRACTION_ROWS_FIELD
from tienda.utilities.errors import ExtractionError

logger = logging.getLogger(__name__)


class ExtractionClient:
    def __init__(self, endpoint: str, *, client: Optional[httpx.AsyncClient] = None,
                 timeout: float = 60.0):
        self.endpoint = endpoint
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def extract(self, encoded_file: str) -> List[Dict[str, Any]]:
        """Send the base64 file and return its rows. Any malformed answer is an ExtractionError."""
        try:
            response = await self._client.post(
                self.endpoint, json={EXTRACTION_PAYLOAD_FIELD: encoded_file}
            )
        except httpx.HTTPError as e:
            raise ExtractionError(f"Extraction request failed: {e}") from e

        if not response.is_success:
            raise ExtractionError(f"Error HTTP: {response.status_code}", status=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise ExtractionError("Extraction response is not JSON") from e

        if not isinstance(body, dict) or not isinstance(body.get(EXTRACTION_ROWS_FIELD), list):
            raise ExtractionError(f"Extraction response has no '{EXTRACTION_ROWS_FIELD}' list")
        rows = body[EXTRACTION_ROWS_FIELD]
        if not all(isinstance(row, dict) for row in rows):
            raise ExtractionError(f"'{EXTRACTION_ROWS_FIELD}' must only contain row objects")
        logger.info("Extraction returned %d rows", len(rows))
        return rows

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
