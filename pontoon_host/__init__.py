"""Table host package: wraps the Pontoon round engine with networking."""

from .server import Coordinator
from .session import Session

__all__ = ["Coordinator", "Session"]
