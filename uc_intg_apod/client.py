"""
APOD API client producing widget entries.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import asyncio
import datetime
import json
import logging
import ssl
import time
from typing import Any, Dict, Optional

import aiohttp
import certifi

from uc_intg_apod.config import Config
from uc_intg_apod.dates import format_ymd
from uc_intg_apod.errors import APODError, APODRequestError, InvalidPayloadError
from uc_intg_apod.models import Entry, PhotoOfDay

_LOG = logging.getLogger(__name__)

APOD_URL = "https://api.nasa.gov/planetary/apod"
DEMO_KEY = "DEMO_KEY"

TODAY = "today"


class APODClient:
    """APOD API client with per-date caching and request de-duplication."""

    CACHE_INTERVAL = 6 * 3600  # 6 hours
    RETRY_DELAY = 1
    RATE_LIMIT_DELAY = 2
    FETCH_TIMEOUT = 20

    def __init__(self, config: Config, session: Optional[aiohttp.ClientSession] = None):
        """Initialize APOD client."""
        self._config = config
        self._session = session
        self._owns_session = session is None
        self._data_cache: Dict[str, Dict[str, Any]] = {}
        self._request_locks: Dict[str, asyncio.Lock] = {}

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> None:
        """Ensure aiohttp session exists with verified TLS."""
        if self._session is None or self._session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())

            connector = aiohttp.TCPConnector(
                ssl=ssl_context,
                limit=4,
                ttl_dns_cache=300,
                keepalive_timeout=30,
            )

            # The APOD service can be slow on the first request of the day.
            timeout = aiohttp.ClientTimeout(
                total=15,
                connect=5,
                sock_read=10
            )

            headers = {
                "User-Agent": "uc-intg-apod (Unfolded Circle APOD widget)",
                "Accept": "application/json",
            }

            self._session = aiohttp.ClientSession(
                timeout=timeout,
                connector=connector,
                headers=headers
            )
            self._owns_session = True

            _LOG.info("APOD HTTP session created with SSL verification")

    async def close(self) -> None:
        """Close the HTTP session if this client opened it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    def _get_api_key(self) -> str:
        """Get API key from configuration."""
        return self._config.api_key or DEMO_KEY

    def _cache_key(self, date: Optional[datetime.date]) -> str:
        """Cache key for a day; requests without a date are keyed by the local day."""
        if date:
            return format_ymd(date)
        return f"{TODAY}:{format_ymd(datetime.date.today())}"

    def _is_cache_valid(self, key: str) -> bool:
        """Check if cached data is still valid, dropping it when expired."""
        if key not in self._data_cache:
            return False

        age = time.time() - self._data_cache[key]["cached_at"]
        if age >= self.CACHE_INTERVAL:
            del self._data_cache[key]
            return False
        return True

    def _prune_cache(self) -> None:
        """Drop expired entries and "today" entries of earlier days."""
        today_key = self._cache_key(None)
        for key in list(self._data_cache):
            if key.startswith(f"{TODAY}:") and key != today_key:
                del self._data_cache[key]
            else:
                self._is_cache_valid(key)

    def _cache_photo(self, key: str, photo: PhotoOfDay) -> None:
        """Cache a photo with timestamp."""
        self._prune_cache()
        self._data_cache[key] = {
            "photo": photo,
            "cached_at": time.time()
        }

    async def _make_request(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Make HTTP GET request and decode the JSON body.

        :raises APODRequestError: request failed after retries
        :raises InvalidPayloadError: body is not JSON
        """
        await self._ensure_session()

        for attempt in range(2):
            last_attempt = attempt == 1
            try:
                _LOG.debug("Making request to %s (attempt %d)", url, attempt + 1)

                async with self._session.get(url, params=params) as response:
                    _LOG.debug("Response: HTTP %s from %s", response.status, url)

                    if response.status == 200:
                        # Error pages are sometimes served as text/html with a JSON body.
                        try:
                            text = await response.text()
                        except UnicodeDecodeError as ex:
                            _LOG.debug("Undecodable body from %s: %s", url, ex)
                            raise InvalidPayloadError(f"Undecodable body from {url}") from ex
                        try:
                            return json.loads(text)
                        except json.JSONDecodeError as ex:
                            _LOG.debug("Invalid JSON from %s: %s", url, text[:100])
                            raise InvalidPayloadError(f"Invalid JSON from {url}") from ex

                    if response.status == 429:
                        _LOG.warning("Rate limited by %s", url)
                        if not last_attempt:
                            await asyncio.sleep(self.RATE_LIMIT_DELAY)
                            continue
                    elif response.status in (401, 403):
                        _LOG.warning("Authentication error %s for %s", response.status, url)
                    elif response.status >= 500 and not last_attempt:
                        await asyncio.sleep(self.RETRY_DELAY)
                        continue

                    raise APODRequestError(url, response.status, response.reason or "")

            except asyncio.TimeoutError as ex:
                _LOG.debug("Timeout for %s (attempt %d)", url, attempt + 1)
                if not last_attempt:
                    await asyncio.sleep(self.RETRY_DELAY)
                    continue
                raise APODRequestError(url, reason="timeout") from ex
            except aiohttp.ClientConnectorError as ex:
                _LOG.debug("Connection error for %s: %s", url, ex)
                if not last_attempt:
                    await asyncio.sleep(self.RETRY_DELAY)
                    continue
                raise APODRequestError(url, reason=str(ex)) from ex
            except aiohttp.ClientError as ex:
                _LOG.debug("Client error for %s: %s", url, ex)
                raise APODRequestError(url, reason=str(ex)) from ex

        raise APODRequestError(url, reason="no attempts left")

    async def fetch_photo(self, date: Optional[datetime.date] = None, use_cache: bool = True) -> PhotoOfDay:
        """
        Fetch the photo of the day, using the cache when fresh.

        :param date: day to fetch, today when omitted
        :param use_cache: answer from the cache when it holds a fresh photo
        :raises APODError: request or payload failure
        """
        key = self._cache_key(date)

        if use_cache and self._is_cache_valid(key):
            return self._data_cache[key]["photo"]

        params = {"api_key": self._get_api_key()}
        if date:
            params["date"] = format_ymd(date)

        _LOG.debug("Fetching APOD %s from NASA API...", key)
        data = await self._make_request(APOD_URL, params)
        photo = PhotoOfDay.from_payload(data)

        _LOG.info("APOD data fetched: %s (%s)", (photo.title or "")[:30], photo.date)
        self._cache_photo(key, photo)
        return photo

    async def fetch_entry(self, date: Optional[datetime.date] = None, use_cache: bool = True) -> Entry:
        """
        Fetch a widget entry for the given day.

        Never raises: failures come back as a failed entry. While a request for
        the same day is in flight, the cached entry or a loading entry is
        returned instead of starting another one.

        :param date: day to fetch, today when omitted
        :param use_cache: False to always ask the service, e.g. to test a new API key
        """
        key = self._cache_key(date)

        if key not in self._request_locks:
            self._request_locks[key] = asyncio.Lock()

        if self._request_locks[key].locked():
            _LOG.debug("APOD %s request in progress, using cache", key)
            if use_cache and self._is_cache_valid(key):
                return Entry.success(self._data_cache[key]["photo"])
            return Entry.loading()

        try:
            async with self._request_locks[key]:
                try:
                    photo = await asyncio.wait_for(self.fetch_photo(date, use_cache), timeout=self.FETCH_TIMEOUT)
                    return Entry.success(photo)
                except asyncio.TimeoutError:
                    _LOG.warning("APOD %s timeout", key)
                    return Entry.failure(APODRequestError(APOD_URL, reason="timeout"))
                except APODError as ex:
                    _LOG.warning("APOD %s failed: %s", key, ex)
                    return Entry.failure(ex)
        finally:
            # Callers never wait on the lock, so it is only needed while in flight.
            self._request_locks.pop(key, None)

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get cache statistics per cached day."""
        stats = {}
        self._prune_cache()
        for key, cached in self._data_cache.items():
            age = time.time() - cached["cached_at"]
            stats[key] = {
                "age_seconds": int(age),
                "valid": True,
                "last_title": (cached["photo"].title or "")[:30]
            }
        return stats
