"""Error taxonomy shared by the match services and the socket handlers.

Every error a player can trigger derives from GameError. Socket handlers catch
GameError at their boundary and answer the originating connection only.
"""


class GameError(Exception):
    """Base class for errors reported back to a single connection."""

    kind = 'error'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {'message': self.message, 'type': self.kind}


class AuthenticationError(GameError):
    kind = 'authentication'


class ValidationError(GameError):
    kind = 'validation'


class RoomFullError(ValidationError):
    kind = 'room_full'


class AuthorizationError(GameError):
    kind = 'authorization'


class NotFoundError(GameError):
    kind = 'not_found'


class InternalError(GameError):
    kind = 'internal'
