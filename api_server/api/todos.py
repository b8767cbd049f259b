import asyncio
import json
import logging
import re

import grpc
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import StreamingResponse

from ..dependencies.auth import get_current_owner
from ..errors import ClientDisconnectedError, InvalidRequestError, error_body, rpc_error_body
from ..schemas.todo import DeleteResult, Todo
from ..services.todo_manager import TodoManagerClient, get_todo_manager_client

logger = logging.getLogger(__name__)

router = APIRouter()

TODO_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def valid_todo_id(todo_id: str) -> str:
    """Reject path IDs that are not base-10 64-bit integers."""
    if not TODO_ID_PATTERN.fullmatch(todo_id):
        raise InvalidRequestError(f"Todo ID {todo_id!r} is not an integer")
    if not INT64_MIN <= int(todo_id) <= INT64_MAX:
        raise InvalidRequestError(f"Todo ID {todo_id!r} is out of range")
    return todo_id


async def _wait_for_disconnect(request: Request):
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            return


async def call_backend(request: Request, backend_call):
    """Await a backend call, cancelling it if the client disconnects first."""
    call_task = asyncio.ensure_future(backend_call)
    disconnect_task = asyncio.ensure_future(_wait_for_disconnect(request))
    try:
        await asyncio.wait({call_task, disconnect_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        disconnect_task.cancel()
    if not call_task.done():
        call_task.cancel()
        await asyncio.wait({call_task})
        logger.info(f"{request.method} {request.url.path}: client disconnected, backend call cancelled")
        raise ClientDisconnectedError("Client closed the request")
    return call_task.result()


async def _stream_todos(call, message):
    """Write one JSON line per todo until the backend ends the stream."""
    count = 0
    try:
        while message is not grpc.aio.EOF:
            yield Todo.from_grpc(message).model_dump_json() + "\n"
            count += 1
            message = await call.read()
        logger.debug(f"Streamed {count} todos")
    # Headers are already sent, so errors go into the body as a last line.
    except grpc.aio.AioRpcError as e:
        logger.error(f"ListTodos stream failed after {count} todos: {e.code()} {e.details()}")
        yield json.dumps(rpc_error_body(e)) + "\n"
    except Exception:
        logger.exception(f"ListTodos stream failed after {count} todos")
        yield json.dumps(error_body("Internal server error.", "internal server error")) + "\n"
    finally:
        call.cancel()


@router.get("/")
async def list_todos(
    client: TodoManagerClient = Depends(get_todo_manager_client),
    owner: str = Depends(get_current_owner),
):
    call = client.list_todos(owner)
    try:
        first = await call.read()
    except BaseException:
        call.cancel()
        raise
    return StreamingResponse(_stream_todos(call, first), media_type="application/x-ndjson")


@router.post("/", response_model=Todo, status_code=status.HTTP_201_CREATED)
async def create_todo(
    request: Request,
    todo: Todo,
    client: TodoManagerClient = Depends(get_todo_manager_client),
    owner: str = Depends(get_current_owner),
):
    if todo.text == "":
        raise InvalidRequestError("Text can't be empty")
    created = await call_backend(request, client.create_todo(todo.to_grpc(owner)))
    logger.info(f"Created todo {created.id} for {owner}")
    return Todo.from_grpc(created)


@router.get("/{todo_id}", response_model=Todo)
async def get_todo(
    request: Request,
    todo_id: str = Depends(valid_todo_id),
    client: TodoManagerClient = Depends(get_todo_manager_client),
    owner: str = Depends(get_current_owner),
):
    return Todo.from_grpc(await call_backend(request, client.get_todo(todo_id, owner)))


@router.put("/{todo_id}", response_model=Todo)
async def update_todo(
    request: Request,
    todo: Todo,
    todo_id: str = Depends(valid_todo_id),
    client: TodoManagerClient = Depends(get_todo_manager_client),
    owner: str = Depends(get_current_owner),
):
    if todo.id and todo.id != todo_id:
        raise InvalidRequestError("ID from JSON is not empty and doesn't match URL ID")
    updated = await call_backend(request, client.update_todo(todo.to_grpc(owner, todo_id)))
    logger.info(f"Updated todo {todo_id} for {owner}")
    return Todo.from_grpc(updated)


@router.delete("/{todo_id}", response_model=DeleteResult)
async def delete_todo(
    request: Request,
    todo_id: str = Depends(valid_todo_id),
    client: TodoManagerClient = Depends(get_todo_manager_client),
    owner: str = Depends(get_current_owner),
):
    result = await call_backend(request, client.delete_todo(todo_id, owner))
    logger.info(f"Deleted todo {todo_id} for {owner}")
    return DeleteResult.from_grpc(todo_id, result)
