from __future__ import annotations

from typing import Dict


class EngineError(Exception):
    """Structural failure surfaced to callers as ``{errorKind, message}``."""

    kind = "Internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"errorKind": self.kind, "message": self.message}


class NotFound(EngineError):
    kind = "NotFound"


class BadInput(EngineError):
    kind = "BadInput"


class ParseError(EngineError):
    kind = "ParseError"


class FileAccessError(EngineError):
    kind = "IOError"


class Internal(EngineError):
    kind = "Internal"
