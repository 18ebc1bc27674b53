from dataclasses import dataclass
from typing import Mapping, Optional, Protocol, Sequence

import jwt

from app_logging import get_logger

logger = get_logger("identity_gate")

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: Optional[str] = None

    def __post_init__(self):
        if not self.user_id or not isinstance(self.user_id, str):
            raise ValueError("user_id must be a non-empty string.")

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


class IdentityGate(Protocol):
    def authenticate(self, token: str) -> Optional[Principal]:
        ...


class StaticIdentityGate:
    """
    Token -> principal lookup for tests and local bootstrap.
    """

    def __init__(self, tokens: Optional[Mapping[str, Principal]] = None):
        normalized = {}
        for token, principal in dict(tokens or {}).items():
            if not isinstance(token, str) or not token.strip():
                raise ValueError("Token must be a non-empty string.")
            if not isinstance(principal, Principal):
                raise ValueError("Principal must be Principal.")
            normalized[token] = principal
        self._tokens = normalized

    def authenticate(self, token: str) -> Optional[Principal]:
        if not isinstance(token, str):
            return None
        return self._tokens.get(token)


class JwtIdentityGate:
    """
    Verifies the identity provider's session tokens offline with its PEM public key.
    `sub` is the user id; the role is read from `metadata.role` or a top-level `role` claim.
    """

    def __init__(
        self,
        public_key: str,
        issuer: Optional[str] = None,
        authorized_parties: Sequence[str] = (),
        algorithms: Sequence[str] = ("RS256",),
        leeway: int = 5,
    ):
        self.public_key = public_key
        self.issuer = issuer
        self.authorized_parties = tuple(authorized_parties)
        self.algorithms = list(algorithms)
        self.leeway = leeway

    def authenticate(self, token: str) -> Optional[Principal]:
        options = {"require": ["exp", "sub"]}
        try:
            claims = jwt.decode(
                token,
                self.public_key,
                algorithms=self.algorithms,
                issuer=self.issuer,
                leeway=self.leeway,
                options=options,
            )
        except jwt.PyJWTError as e:
            logger.info("session_token_rejected", reason=str(e))
            return None

        azp = claims.get("azp")
        if self.authorized_parties and azp and azp not in self.authorized_parties:
            logger.info("session_token_rejected", reason="unauthorized party", azp=azp)
            return None

        metadata = claims.get("metadata") or {}
        role = metadata.get("role") if isinstance(metadata, dict) else None
        return Principal(user_id=str(claims["sub"]), role=role or claims.get("role"))
