"""Rejection taxonomy for client intents.

Every intent either succeeds or fails with one of the kinds below. Failures
are local to the issuing connection: they never mutate room state.
"""

from typing import Any, Dict, Optional


class GameError(Exception):
    kind = 'error'

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(GameError):
    kind = 'not_found'


class Unauthorized(GameError):
    kind = 'unauthorized'


class InvalidState(GameError):
    kind = 'invalid_state'


class InvalidInput(GameError):
    kind = 'invalid_input'


class NotMatchable(GameError):
    kind = 'not_matchable'


class NoPath(GameError):
    kind = 'no_path'


class Result:
    """Outcome of one intent, serialized back to the caller as its ack."""

    def __init__(self, ok: bool, data: Optional[Dict[str, Any]] = None,
                 error: Optional[GameError] = None) -> None:
        self.ok = ok
        self.data = data or {}
        self.error = error

    @classmethod
    def success(cls, **data: Any) -> 'Result':
        return cls(True, data=data)

    @classmethod
    def failure(cls, error: GameError) -> 'Result':
        return cls(False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {'ok': True, **self.data}
        return {'ok': False, 'error': self.error.kind, 'message': self.error.message}

    def __repr__(self) -> str:
        return f"Result({self.to_dict()!r})"
