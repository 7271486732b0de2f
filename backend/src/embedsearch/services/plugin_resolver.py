"""
Plugin resolution with a degraded-mode fallback.

Resolution is a two-tier repository behind one lookup contract:

1. ``RegistryTier`` reads the plugin registry database.
2. ``AllowlistTier`` serves canned settings for a fixed set of uids.

The allowlist tier is only consulted when the registry tier reports that
the database cannot be reached. A uid that the registry answers "not found"
for is not found, whatever the allowlist says.
"""

from collections.abc import Callable, Iterable
from typing import Any, Protocol

from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import DEGRADED_DEFAULT_SETTINGS, get_settings_instance
from ..core.exceptions import (
    DatabaseConnectionError,
    DatabaseQueryError,
    PluginNotFoundError,
    RegistryUnavailableError,
)
from ..core.logging import get_logger
from ..schemas.plugin import PluginResolution, ResolutionSource
from .corpus import parse_corpus
from .plugin_registry_service import PluginRegistryService

logger = get_logger(__name__)

# Failures that mean "cannot reach the registry" rather than "the registry said no"
_UNREACHABLE_ERRORS: tuple[type[BaseException], ...] = (
    OperationalError,
    InterfaceError,
    DatabaseConnectionError,
    PoolTimeoutError,
    OSError,
    TimeoutError,
)


class PluginTier(Protocol):
    """One source of plugin resolutions."""

    async def resolve(self, uid: str) -> PluginResolution | None:
        """Return the resolution for ``uid`` or ``None`` when the tier has no such plugin."""
        ...


class RegistryTier:
    """Primary tier backed by the plugin registry.

    Raises:
        RegistryUnavailableError: the database cannot be reached
        DatabaseQueryError: the database answered with a non-connection error

    """

    def __init__(self, session_factory: Callable[[], AsyncSession], plugin_type: str):
        self.session_factory = session_factory
        self.plugin_type = plugin_type

    async def resolve(self, uid: str) -> PluginResolution | None:
        try:
            # Opening the session is inside the try: engine creation can fail here
            async with self.session_factory() as session:
                record = await PluginRegistryService(session).get_record(self.plugin_type, uid)
                if record is None:
                    return None
                return PluginResolution(
                    uid=record.uid,
                    settings=dict(record.settings or {}),
                    corpus=parse_corpus(record.context),
                    source=ResolutionSource.REGISTRY,
                )
        except _UNREACHABLE_ERRORS as e:
            logger.warning(
                "Plugin registry unreachable",
                extra={"uid": uid, "error_type": type(e).__name__, "error": str(e)},
            )
            raise RegistryUnavailableError(str(e)) from e
        except SQLAlchemyError as e:
            logger.error("Plugin registry query failed", extra={"uid": uid, "error": str(e)})
            raise DatabaseQueryError(str(e)) from e


class AllowlistTier:
    """Degraded-mode tier serving canned settings for a fixed set of uids."""

    def __init__(self, allowlist: Iterable[str], default_settings: dict[str, Any] | None = None):
        self.allowlist = frozenset(allowlist)
        self.default_settings = dict(default_settings if default_settings is not None else DEGRADED_DEFAULT_SETTINGS)

    async def resolve(self, uid: str) -> PluginResolution | None:
        if uid not in self.allowlist:
            return None
        return PluginResolution(
            uid=uid,
            settings=dict(self.default_settings),
            corpus=[],
            source=ResolutionSource.ALLOWLIST,
        )


class PluginResolver:
    """Resolves uids to plugin settings and corpora."""

    def __init__(self, primary: PluginTier, fallback: PluginTier):
        self.primary = primary
        self.fallback = fallback

    async def _resolve(self, uid: str) -> PluginResolution:
        try:
            resolution = await self.primary.resolve(uid)
        except RegistryUnavailableError:
            resolution = await self.fallback.resolve(uid)
            if resolution is None:
                logger.info("Uid not in degraded-mode allowlist", extra={"uid": uid})
                raise PluginNotFoundError(uid) from None
            logger.info("Serving plugin from degraded-mode allowlist", extra={"uid": uid})
            return resolution

        if resolution is None:
            raise PluginNotFoundError(uid)
        return resolution

    async def lookup_settings(self, uid: str) -> PluginResolution:
        """Resolve ``uid`` for a settings lookup.

        The returned resolution still carries the corpus; callers building a
        public response must read ``settings`` only.
        """
        return await self._resolve(uid)

    async def lookup_corpus(self, uid: str) -> PluginResolution:
        """Resolve ``uid`` for server-side ranking. Allowlist resolutions have an empty corpus."""
        return await self._resolve(uid)


def build_plugin_resolver(session_factory: Callable[[], AsyncSession] | None = None) -> PluginResolver:
    """Build the resolver wired to the configured registry and allowlist."""
    settings = get_settings_instance()
    if session_factory is None:
        from ..core.database import open_session

        session_factory = open_session
    return PluginResolver(
        primary=RegistryTier(session_factory, settings.plugin_type),
        fallback=AllowlistTier(settings.degraded_allowlist),
    )
