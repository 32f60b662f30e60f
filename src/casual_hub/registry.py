"""The shared pool of live tool provider connections.

One ``ConnectionRegistry`` is created by the hosting process and handed to
every request. It keeps the handles from the most recently applied
configuration list and only reconnects when that list changes.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from types import TracebackType

from casual_hub.config import DEFAULT_CONNECT_TIMEOUT
from casual_hub.errors import CasualHubError
from casual_hub.logging import get_logger
from casual_hub.models.provider_config import BaseProviderConfig, fingerprint
from casual_hub.provider_handle import ProviderHandle, connect_provider

logger = get_logger("registry")

Connector = Callable[[BaseProviderConfig], Awaitable[ProviderHandle]]


class ConnectionRegistry:
    """Maps provider id to a connected ``ProviderHandle``.

    ``reconcile`` and ``close_all`` are serialised by a single lock, so two
    requests carrying different configurations cannot interleave their
    teardown and reconnect and leave handles orphaned.
    """

    def __init__(
        self,
        connector: Connector | None = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ):
        self._connector = connector or (
            lambda config: connect_provider(config, connect_timeout)
        )
        self._handles: dict[str, ProviderHandle] = {}
        self._fingerprint: str | None = None
        self._initialized = False
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def fingerprint(self) -> str | None:
        return self._fingerprint

    def get_handles(self) -> list[ProviderHandle]:
        return list(self._handles.values())

    def get_handle(self, provider_id: str) -> ProviderHandle | None:
        return self._handles.get(provider_id)

    async def reconcile(self, configs: Sequence[BaseProviderConfig]) -> list[ProviderHandle]:
        """Make the live handles match ``configs`` and return them.

        Identical configuration is a no-op. Otherwise every existing handle
        is closed before the new list is connected; providers that fail to
        connect are logged and left out of the result.
        """
        key = fingerprint(configs)

        async with self._lock:
            if self._initialized and key == self._fingerprint:
                logger.debug("MCP providers already initialized with same config")
                return self.get_handles()

            if self._initialized:
                await self._drain()

            handles: dict[str, ProviderHandle] = {}
            try:
                for config in configs:
                    if config.id in handles:
                        logger.warning(
                            f"Duplicate provider id '{config.id}', closing earlier handle"
                        )
                        await handles.pop(config.id).close()
                    try:
                        handles[config.id] = await self._connector(config)
                    except CasualHubError as e:
                        logger.error(f"Failed to connect MCP provider {config.display_name}: {e}")
                    except Exception as e:
                        logger.exception(
                            f"Unexpected error connecting MCP provider {config.display_name}: {e}"
                        )
            except BaseException:
                # Cancelled part way: nothing is registered, so nothing may stay open
                logger.warning("Reconcile interrupted, closing partially connected providers")
                await _close_handles(handles)
                raise

            self._handles = handles
            self._fingerprint = key
            self._initialized = True

            logger.info(f"Connected {len(handles)} of {len(configs)} MCP providers")
            return self.get_handles()

    async def update(self, configs: Sequence[BaseProviderConfig]) -> None:
        await self.reconcile(configs)

    async def close_all(self) -> None:
        async with self._lock:
            await self._drain()

    async def _drain(self) -> None:
        logger.info("Closing all MCP providers...")
        handles, self._handles = self._handles, {}
        await _close_handles(handles)
        self._fingerprint = None
        self._initialized = False

    async def shutdown(self) -> None:
        await self.close_all()

    async def __aenter__(self) -> "ConnectionRegistry":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.shutdown()


async def _close_handles(handles: dict[str, ProviderHandle]) -> None:
    for provider_id, handle in handles.items():
        try:
            await handle.close()
        except Exception as e:
            logger.error(f"Error closing MCP provider {provider_id}: {e}")
