from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable

import httpx

from .dashboard_models import AppConfig
from .errors import ConfigValidationError, FetchError
from .parse_config import read_document, validate_config
from .settings import DashboardSettings

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {"Cache-Control": "no-cache"}


class ConfigSource:
    """
    Fetches, validates and caches the dashboard config document.

    `location` is either an http(s) URL or a path on disk. Concurrent callers
    of `get_config` share one in-flight load; a successful result is cached
    until `clear_cache` is called. Failed loads are not cached, so the next
    call tries again.
    """

    def __init__(
        self,
        location: str,
        *,
        retries: int = 2,
        retry_delay_ms: int = 1000,
        timeout_s: float = 10.0,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.location = location
        self._retries = retries
        self._retry_delay_s = retry_delay_ms / 1000
        self._timeout_s = timeout_s
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep
        self._pending: asyncio.Future[AppConfig] | None = None

    @classmethod
    def from_settings(
        cls,
        settings: DashboardSettings,
        location: str | None = None,
        **kwargs: Any,
    ) -> "ConfigSource":
        return cls(
            location or settings.config_url,
            retries=settings.fetch_retries,
            retry_delay_ms=settings.fetch_retry_delay_ms,
            timeout_s=settings.fetch_timeout_s,
            **kwargs,
        )

    @property
    def is_remote(self) -> bool:
        return self.location.startswith(("http://", "https://"))

    async def get_config(self) -> AppConfig:
        """Return the cached config, loading it (once, for all waiting callers) if needed."""
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._load())
        pending = self._pending
        try:
            # Shielded so one caller being cancelled does not cancel the shared load.
            return await asyncio.shield(pending)
        except Exception:
            if self._pending is pending:
                self._pending = None
            raise

    def clear_cache(self) -> None:
        """Forget the cached config so the next `get_config` fetches again."""
        self._pending = None

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _load(self) -> AppConfig:
        document = await self._fetch_document() if self.is_remote else self._read_local()
        config = validate_config(document)
        logger.info("Loaded dashboard config from %s", self.location)
        return config

    def _read_local(self) -> Any:
        path = Path(self.location)
        try:
            return read_document(path)
        except FileNotFoundError as exc:
            raise FetchError(f"config file not found: {path}") from exc
        except OSError as exc:
            raise FetchError(f"cannot read config file {path}: {exc}") from exc

    async def _fetch_document(self) -> Any:
        client = self._get_client()
        attempts = self._retries + 1
        for attempt in range(1, attempts + 1):
            try:
                response = await client.get(self.location, headers=NO_CACHE_HEADERS)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                if attempt == attempts:
                    raise FetchError(f"Failed to fetch {self.location} after {attempts} attempts: {exc}") from exc
                logger.warning(
                    "Fetching %s failed (attempt %d/%d): %s; retrying in %.1fs",
                    self.location,
                    attempt,
                    attempts,
                    exc,
                    self._retry_delay_s,
                )
                await self._sleep(self._retry_delay_s)
                continue

            try:
                return response.json()
            except ValueError as exc:
                raise ConfigValidationError(f"root: response from {self.location} is not valid JSON") from exc

        raise FetchError(f"Failed to fetch {self.location}")  # pragma: no cover - loop always returns or raises

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout_s)
        return self._client
