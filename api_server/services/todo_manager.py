"""gRPC client for the TodoManager backend service."""

import asyncio
import logging
from typing import Optional

import grpc

from ..config import GatewayConfig
from ..errors import BackendUnavailableError
from ..proto import todomgr

logger = logging.getLogger(__name__)


class TodoManagerClient:
    """Single long-lived gRPC channel to the TodoManager service.

    The channel multiplexes concurrent calls, so one instance is shared by
    every request handler.
    """

    def __init__(self, config: Optional[GatewayConfig] = None):
        self.config = config or GatewayConfig.from_env()
        self._channel: Optional[grpc.aio.Channel] = None
        self._stub: Optional[todomgr.TodoManagerStub] = None

    async def connect(self):
        """Open the channel and wait until it is ready.

        Raises:
            BackendUnavailableError: If the backend is not reachable within
                ``config.connect_timeout`` seconds.
        """
        address = self.config.todo_manager_addr
        channel = grpc.aio.insecure_channel(address)
        try:
            await asyncio.wait_for(channel.channel_ready(), timeout=self.config.connect_timeout)
        except asyncio.TimeoutError as e:
            await channel.close()
            raise BackendUnavailableError(
                f"Unable to establish client connection to {address}"
            ) from e
        self._channel = channel
        self._stub = todomgr.TodoManagerStub(channel)
        logger.info(f"Connected to TodoManager at {address}")

    async def close(self):
        """Close the channel."""
        if self._channel is not None:
            await self._channel.close()
            logger.info("TodoManager channel closed")
        self._channel = None
        self._stub = None

    def is_ready(self) -> bool:
        """Check whether the channel can carry calls right now."""
        if self._channel is None:
            return False
        state = self._channel.get_state()
        return state in (grpc.ChannelConnectivity.READY, grpc.ChannelConnectivity.IDLE)

    @property
    def stub(self) -> todomgr.TodoManagerStub:
        if self._stub is None:
            raise BackendUnavailableError("TodoManager client is not connected")
        return self._stub

    # --- TodoManager operations ---

    def list_todos(self, owner: str):
        """Stream all todos of an owner.

        Returns the call object: ``await call.read()`` until it yields
        ``grpc.aio.EOF`` and call ``cancel()`` to abandon the stream.
        """
        return self.stub.ListTodos(todomgr.ListTodosReq(owner=owner))

    async def create_todo(self, todo):
        return await self.stub.CreateTodo(todo)

    async def get_todo(self, todo_id: str, owner: str):
        return await self.stub.GetTodo(todomgr.TodoIdReq(id=todo_id, owner=owner))

    async def update_todo(self, todo):
        return await self.stub.UpdateTodo(todo)

    async def delete_todo(self, todo_id: str, owner: str):
        return await self.stub.DeleteTodo(todomgr.TodoIdReq(id=todo_id, owner=owner))


# Global client instance
_todo_manager_client: Optional[TodoManagerClient] = None


async def init_todo_manager_client(config: Optional[GatewayConfig] = None) -> TodoManagerClient:
    """Connect the global TodoManager client."""
    global _todo_manager_client
    client = TodoManagerClient(config)
    await client.connect()
    _todo_manager_client = client
    return client


def get_todo_manager_client() -> TodoManagerClient:
    """Get the global TodoManager client instance."""
    if _todo_manager_client is None:
        raise BackendUnavailableError("TodoManager client is not connected")
    return _todo_manager_client


async def close_todo_manager_client():
    """Close the global TodoManager client."""
    global _todo_manager_client
    if _todo_manager_client:
        await _todo_manager_client.close()
        _todo_manager_client = None
