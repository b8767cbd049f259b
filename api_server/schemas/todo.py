"""Wire schemas for todos and their mapping to TodoManager messages."""

from typing import Optional
from pydantic import BaseModel, ConfigDict
from ..proto import todomgr


class Todo(BaseModel):
    """A todo item as seen by HTTP clients.

    Attributes:
        id: Identifier assigned by the backend (empty until created)
        text: What needs doing
        owner: Identity the todo belongs to
        done: Whether the todo is completed
    """
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    text: str = ""
    owner: str = ""
    done: bool = False

    @classmethod
    def from_grpc(cls, message) -> "Todo":
        return cls(id=message.id, text=message.text, owner=message.owner, done=message.done)

    def to_grpc(self, owner: str, todo_id: Optional[str] = None):
        """Build the backend message, stamping the given owner.

        ``todo_id`` replaces an empty ``id`` (the path ID of an update).
        """
        return todomgr.Todo(
            id=self.id or todo_id or "",
            text=self.text,
            owner=owner,
            done=self.done,
        )


class DeleteResult(BaseModel):
    """Acknowledgement of a deleted todo."""
    id: str
    success: bool

    @classmethod
    def from_grpc(cls, todo_id: str, message) -> "DeleteResult":
        return cls(id=todo_id, success=message.success)
