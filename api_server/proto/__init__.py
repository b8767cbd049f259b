"""gRPC schema of the TodoManager backend."""
from . import todomgr

__all__ = ["todomgr"]
