# fundscope/services/mf_engine/mfapi_client.py

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from fundscope.core.config import Settings, get_settings
from fundscope.core.exceptions import ProviderError
from fundscope.models.mutual_fund import RawSchemeDetail, SchemeMeta, SchemeSummary
from fundscope.services.returns_engine import normalize_nav_series

logger = logging.getLogger(__name__)


class MfapiClient:
    """
    Async client for https://api.mfapi.in

    Usage:
        async with MfapiClient() as client:
            schemes = await client.list_schemes()
            detail = await client.fetch_scheme(schemes[0].scheme_code)
    """

    def __init__(self, settings: Optional[Settings] = None, session: Optional[aiohttp.ClientSession] = None):
        self.settings = settings or get_settings()
        self.base_url = self.settings.MFAPI_BASE_URL.rstrip("/")
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "MfapiClient":
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.settings.SCHEME_FETCH_TIMEOUT)
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        if self._session is None:
            raise ProviderError("MfapiClient used outside of an 'async with' block")

        url = f"{self.base_url}{path}"
        try:
            async with self._session.get(url, params=params) as response:
                if response.status != 200:
                    raise ProviderError(f"GET {path} failed: {response.status}")
                return await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise ProviderError(f"GET {path} timed out") from e
        except aiohttp.ClientError as e:
            raise ProviderError(f"GET {path} failed: {e}") from e
        except ValueError as e:
            raise ProviderError(f"GET {path} returned invalid JSON: {e}") from e

    async def list_schemes(self) -> List[SchemeSummary]:
        """Every scheme MFAPI knows about: [{schemeCode, schemeName}, ...]"""
        payload = await self._get_json("/mf")
        if not isinstance(payload, list):
            raise ProviderError("Scheme listing is not a JSON array")
        return parse_scheme_list(payload)

    async def search(self, query: str) -> List[SchemeSummary]:
        payload = await self._get_json("/mf/search", params={"q": query})
        if not isinstance(payload, list):
            raise ProviderError("Search response is not a JSON array")
        return parse_scheme_list(payload)

    async def fetch_scheme(self, scheme_code: int) -> RawSchemeDetail:
        payload = await self._get_json(f"/mf/{scheme_code}")
        return parse_scheme_detail(payload, scheme_code)


def parse_scheme_list(payload: List[Dict[str, Any]]) -> List[SchemeSummary]:
    schemes = []
    for item in payload:
        try:
            schemes.append(SchemeSummary(
                scheme_code=int(item["schemeCode"]),
                scheme_name=str(item.get("schemeName") or ""),
            ))
        except (KeyError, TypeError, ValueError):
            logger.debug(f"Skipping malformed scheme entry: {item!r}")
    return schemes


def parse_scheme_detail(payload: Any, scheme_code: int) -> RawSchemeDetail:
    """Build a RawSchemeDetail from an MFAPI /mf/{code} response body."""
    if not isinstance(payload, dict):
        raise ProviderError(f"Scheme {scheme_code}: response is not a JSON object")

    meta = payload.get("meta") or {}
    if not isinstance(meta, dict):
        raise ProviderError(f"Scheme {scheme_code}: malformed meta block")

    try:
        code = int(meta.get("scheme_code") or scheme_code)
    except (TypeError, ValueError):
        code = scheme_code

    scheme_meta = SchemeMeta(
        fund_house=str(meta.get("fund_house") or ""),
        scheme_type=meta.get("scheme_type"),
        scheme_category=str(meta.get("scheme_category") or ""),
        scheme_code=code,
        scheme_name=str(meta.get("scheme_name") or ""),
        isin=meta.get("isin_growth") or meta.get("isin_div_reinvestment"),
    )
    return RawSchemeDetail(meta=scheme_meta, nav_series=normalize_nav_series(payload.get("data")))
