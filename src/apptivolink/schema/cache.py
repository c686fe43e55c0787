"""Session-scoped configuration document cache.

Holds previously fetched configuration documents keyed by numeric app id so
each app's schema is fetched at most once per session. The cache is owned by
the client session and receives the fetch function as an argument, which
keeps it free of transport concerns and easy to test with a fake fetcher.

Not thread-safe by default. Callers sharing one cache between threads pass a
lock (``ConfigCache(lock=threading.Lock())``); the read-fetch-store sequence
then runs under it.
"""

import logging
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any, Callable, ContextManager, List, Optional

from apptivolink.apps import AppDescriptor, resolve_app
from apptivolink.result import ErrorKind, ResolutionResult
from apptivolink.schema.models import ConfigDocument

logger = logging.getLogger(__name__)

ConfigFetcher = Callable[[AppDescriptor], ResolutionResult[Any]]


@dataclass
class CachedConfig:
    """One cached entry."""

    app_id: int
    app_name: str
    config: ConfigDocument


class ConfigCache:
    """At-most-one-fetch-per-app-id memoization of configuration documents."""

    def __init__(self, lock: Optional[ContextManager] = None):
        self._entries: List[CachedConfig] = []
        self._lock = lock

    def _guard(self) -> ContextManager:
        return self._lock if self._lock is not None else nullcontext()

    def _lookup(self, app_id: int) -> Optional[CachedConfig]:
        for entry in self._entries:
            if entry.app_id == app_id:
                return entry
        return None

    def get(
        self, app_name_or_id: str, fetcher: ConfigFetcher
    ) -> ResolutionResult[ConfigDocument]:
        """Return the cached document for an app, fetching it on a miss.

        Args:
            app_name_or_id: App name, numeric id, or compound string
            fetcher: Called with the resolved AppDescriptor on a cache miss.
                Must return a ResolutionResult carrying the raw document
                (dict/JSON text) or a ConfigDocument.

        Returns:
            ResolutionResult with the ConfigDocument. Failures are not cached.
        """
        app_result = resolve_app(app_name_or_id)
        if not app_result:
            return ResolutionResult.from_failure(app_result.error)
        app = app_result.payload

        with self._guard():
            entry = self._lookup(app.numeric_app_id)
            if entry is not None:
                logger.debug(f"Config cache hit for app id {app.numeric_app_id}")
                return ResolutionResult.ok(entry.config)

            logger.debug(f"Config cache miss for app id {app.numeric_app_id}, fetching")
            fetched = fetcher(app)
            if not fetched:
                message = fetched.message or "fetcher reported failure"
                return ResolutionResult.fail(
                    ErrorKind.CONFIG_FETCH_FAILED,
                    f"Unable to retrieve config data for app id {app.numeric_app_id}: {message}",
                )

            parsed = ConfigDocument.parse(fetched.payload)
            if not parsed:
                return ResolutionResult.fail(
                    ErrorKind.CONFIG_FETCH_FAILED,
                    f"Config data for app id {app.numeric_app_id} was unusable: {parsed.message}",
                )

            self._entries.append(
                CachedConfig(
                    app_id=app.numeric_app_id,
                    app_name=app.alias_name or app.url_segment,
                    config=parsed.payload,
                )
            )
            return parsed

    def put(self, app: AppDescriptor, config: ConfigDocument) -> None:
        """Seed the cache with an already-fetched document."""
        with self._guard():
            entry = self._lookup(app.numeric_app_id)
            if entry is not None:
                entry.config = config
                return
            self._entries.append(
                CachedConfig(app.numeric_app_id, app.alias_name or app.url_segment, config)
            )

    def invalidate(self, app_name_or_id: Optional[str] = None) -> None:
        """Drop one app's document, or everything when no app is given."""
        with self._guard():
            if app_name_or_id is None:
                self._entries.clear()
                return
            app_result = resolve_app(app_name_or_id)
            if not app_result:
                return
            app_id = app_result.payload.numeric_app_id
            self._entries = [e for e in self._entries if e.app_id != app_id]

    @property
    def entries(self) -> List[CachedConfig]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, app_name_or_id: object) -> bool:
        if not isinstance(app_name_or_id, str):
            return False
        app_result = resolve_app(app_name_or_id)
        if not app_result:
            return False
        return self._lookup(app_result.payload.numeric_app_id) is not None
