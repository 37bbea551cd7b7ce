"""
OMDB catalog client
"""
import logging
from typing import Any, Dict, Optional

import httpx

from movie_collection.shared.exceptions import ConfigurationError, NotFoundError, UpstreamError

logger = logging.getLogger(__name__)

# Fixed upstream timeout; a timed out call counts as a failed call
OMDB_TIMEOUT_SECONDS = 10.0

DEFAULT_NOT_FOUND = "Movie not found!"


class OmdbClient:
    """Thin async client over the OMDB HTTP API

    Every call returns the decoded OMDB payload when ``Response`` is ``"True"``
    and raises ``NotFoundError`` with OMDB's own message otherwise.
    """

    def __init__(self, config, http_client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._http = http_client or httpx.AsyncClient(
            timeout=OMDB_TIMEOUT_SECONDS,
            headers={"accept": "application/json"},
        )

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    async def close(self):
        await self._http.aclose()

    async def search(
        self,
        query: str,
        year: Optional[str] = None,
        type_: Optional[str] = None,
        page: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Keyword search (``s=``), one page of summary hits"""
        params = {"s": query}
        if page and page > 1:
            params["page"] = page
        if year:
            params["y"] = year
        if type_:
            params["type"] = type_
        return await self._get(params)

    async def get_by_id(self, imdb_id: str, plot: str = "full") -> Dict[str, Any]:
        """Full record for a single IMDB ID (``i=``)"""
        return await self._get({"i": imdb_id, "plot": plot})

    async def _get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        api_key = self.require_api_key()
        request_params = {"apikey": api_key, **params, "r": "json"}
        logger.debug(f"OMDB request: {self._describe(params)}")

        try:
            response = await self._http.get(
                self.config.base_url,
                params=request_params,
                timeout=OMDB_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"OMDB request timed out: {self._describe(params)}")
            raise UpstreamError("Timed out talking to the movie catalog") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"OMDB returned HTTP {e.response.status_code} for {self._describe(params)}: "
                         f"{e.response.text[:200]}")
            raise UpstreamError("Movie catalog request failed") from e
        except httpx.HTTPError as e:
            logger.error(f"OMDB transport error for {self._describe(params)}: {str(e)}")
            raise UpstreamError("Movie catalog request failed") from e
        except ValueError as e:
            logger.error(f"OMDB returned an undecodable body for {self._describe(params)}")
            raise UpstreamError("Movie catalog returned an invalid response") from e

        if not isinstance(data, dict):
            raise UpstreamError("Movie catalog returned an invalid response")

        if data.get("Response") == "True":
            return data

        raise NotFoundError(data.get("Error") or DEFAULT_NOT_FOUND)

    def require_api_key(self) -> str:
        api_key = (self.config.api_key or "").strip()
        if not api_key:
            raise ConfigurationError("OMDB API key is not configured")
        return api_key

    @staticmethod
    def _describe(params: Dict[str, Any]) -> str:
        # Never log the API key
        return "&".join(f"{key}={value}" for key, value in params.items())
