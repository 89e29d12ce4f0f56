import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, Optional

import jwt

from cardclash.errors import AuthenticationError
from .state import Identity


def issue_token(user_id: int, email: str, secret: str, expires_in: int = 86400,
                algorithm: str = 'HS256') -> str:
    payload = {
        'userId': user_id,
        'email': email,
        'exp': datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def verify_token(token: Optional[str], secret: str, algorithms: Iterable[str] = ('HS256',)) -> Identity:
    """Decode a bearer token into the identity it was issued for.

    Raises AuthenticationError when the token is missing, expired, badly
    signed or lacks the userId/email claims.
    """
    if not token:
        raise AuthenticationError('Authentication token missing')
    try:
        payload = jwt.decode(token, secret, algorithms=list(algorithms))
    except jwt.ExpiredSignatureError:
        raise AuthenticationError('Token expired')
    except jwt.InvalidTokenError:
        raise AuthenticationError('Invalid token')
    user_id = payload.get('userId')
    email = payload.get('email')
    if isinstance(user_id, bool) or not isinstance(user_id, int) or not email:
        raise AuthenticationError('Invalid token')
    return Identity(user_id=user_id, email=email)


class ConnectionRegistry:
    """Identity of every live connection, indexed both ways."""

    def __init__(self):
        self._by_sid: Dict[str, Identity] = {}
        self._sid_by_user: Dict[int, str] = {}
        self._lock = threading.Lock()

    def attach(self, sid: str, identity: Identity) -> None:
        with self._lock:
            self._by_sid[sid] = identity
            # Latest connection wins for a user with several tabs open
            self._sid_by_user[identity.user_id] = sid

    def detach(self, sid: str) -> Optional[Identity]:
        with self._lock:
            identity = self._by_sid.pop(sid, None)
            if identity is not None and self._sid_by_user.get(identity.user_id) == sid:
                del self._sid_by_user[identity.user_id]
            return identity

    def identity(self, sid: str) -> Optional[Identity]:
        with self._lock:
            return self._by_sid.get(sid)

    def sid_for_user(self, user_id: int) -> Optional[str]:
        with self._lock:
            return self._sid_by_user.get(user_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_sid)
