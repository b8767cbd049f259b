"""Shared fixtures: a fake TodoManager client and a real in-process gRPC backend."""

from concurrent import futures

import grpc
import pytest
from fastapi.testclient import TestClient

from api_server.config import GatewayConfig
from api_server.main import create_app
from api_server.proto import todomgr
from api_server.services.todo_manager import get_todo_manager_client


def rpc_error(code, details=""):
    """Build the error a grpc.aio call raises when the backend fails."""
    return grpc.aio.AioRpcError(code, grpc.aio.Metadata(), grpc.aio.Metadata(), details=details)


class FakeStream:
    """Stands in for a grpc.aio server-streaming call."""

    def __init__(self, messages, error=None):
        self._messages = list(messages)
        self._error = error
        self.cancelled = False

    async def read(self):
        if self._messages:
            return self._messages.pop(0)
        if self._error is not None:
            raise self._error
        return grpc.aio.EOF

    def cancel(self):
        self.cancelled = True
        return True


class FakeTodoManager:
    """In-memory replacement for TodoManagerClient that records every call."""

    def __init__(self):
        self.calls = []
        self.todos = {}
        self.next_id = 1
        self.error = None
        self.stream = None

    def _record(self, name, *args):
        self.calls.append((name, args))
        if self.error is not None:
            raise self.error

    def add(self, text, owner="anonymous", done=False):
        todo = todomgr.Todo(id=str(self.next_id), text=text, owner=owner, done=done)
        self.todos[todo.id] = todo
        self.next_id += 1
        return todo

    def list_todos(self, owner):
        self.calls.append(("list_todos", (owner,)))
        if self.stream is None:
            self.stream = FakeStream(t for t in self.todos.values() if t.owner == owner)
        return self.stream

    async def create_todo(self, todo):
        self._record("create_todo", todo)
        return self.add(todo.text, owner=todo.owner, done=todo.done)

    async def get_todo(self, todo_id, owner):
        self._record("get_todo", todo_id, owner)
        todo = self.todos.get(todo_id)
        if todo is None:
            raise rpc_error(grpc.StatusCode.NOT_FOUND, f"todo {todo_id} not found")
        return todo

    async def update_todo(self, todo):
        self._record("update_todo", todo)
        if todo.id not in self.todos:
            raise rpc_error(grpc.StatusCode.NOT_FOUND, f"todo {todo.id} not found")
        self.todos[todo.id] = todo
        return todo

    async def delete_todo(self, todo_id, owner):
        self._record("delete_todo", todo_id, owner)
        return todomgr.DeleteTodoRes(success=self.todos.pop(todo_id, None) is not None)


@pytest.fixture
def backend():
    return FakeTodoManager()


@pytest.fixture
def app(backend):
    app = create_app(GatewayConfig())
    app.dependency_overrides[get_todo_manager_client] = lambda: backend
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


class InMemoryTodoManager(todomgr.TodoManagerServicer):
    """Minimal TodoManager backend served over real gRPC."""

    def __init__(self):
        self.todos = {}
        self.next_id = 1

    def ListTodos(self, request, context):
        for todo in list(self.todos.values()):
            if todo.owner == request.owner:
                yield todo

    def CreateTodo(self, request, context):
        todo = todomgr.Todo()
        todo.CopyFrom(request)
        todo.id = str(self.next_id)
        self.next_id += 1
        self.todos[todo.id] = todo
        return todo

    def _lookup(self, todo_id, owner, context):
        todo = self.todos.get(todo_id)
        if todo is None or todo.owner != owner:
            context.abort(grpc.StatusCode.NOT_FOUND, f"todo {todo_id} not found")
        return todo

    def GetTodo(self, request, context):
        return self._lookup(request.id, request.owner, context)

    def UpdateTodo(self, request, context):
        self._lookup(request.id, request.owner, context)
        self.todos[request.id] = request
        return request

    def DeleteTodo(self, request, context):
        self._lookup(request.id, request.owner, context)
        del self.todos[request.id]
        return todomgr.DeleteTodoRes(success=True)


@pytest.fixture
def grpc_backend():
    """Start a TodoManager gRPC server on a free local port."""
    servicer = InMemoryTodoManager()
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=4))
    todomgr.add_TodoManagerServicer_to_server(servicer, server)
    port = server.add_insecure_port("127.0.0.1:0")
    server.start()
    servicer.address = f"127.0.0.1:{port}"
    yield servicer
    server.stop(None)
