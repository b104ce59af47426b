"""JWT-based identity verification.

Tokens are compact-serialized JWTs signed by whoever issues credentials
for the gate.  Verification supports a shared HMAC secret (``HS256``) and
the asymmetric ``ES256`` (ECDSA P-256) and ``EdDSA`` (Ed25519) algorithms.

A token that fails verification -- bad signature, expired, wrong audience,
missing claims, garbage -- is a normal ``Failure`` outcome.  Only a broken
verifier configuration (an unusable key) is a :class:`VerifierError`.
"""
from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Any

import jwt
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from access_gate.core.errors import VerifierError
from access_gate.core.types import AccessResponse, Outcome

# ---------------------------------------------------------------------------
# Type aliases for key types
# ---------------------------------------------------------------------------

PrivateKey = ec.EllipticCurvePrivateKey | ed25519.Ed25519PrivateKey
PublicKey = ec.EllipticCurvePublicKey | ed25519.Ed25519PublicKey
SigningKey = str | bytes | PrivateKey
VerificationKey = str | bytes | PublicKey

SUPPORTED_ALGORITHMS: tuple[str, ...] = ("HS256", "ES256", "EdDSA")
DEFAULT_TTL_SECONDS = 3600


class JwtIdentityVerifier:
    """Identity verifier for signed JWT tokens.

    Parameters
    ----------
    key:
        HMAC secret, PEM-encoded public key, or a ``cryptography`` public
        key object matching *algorithms*.
    algorithms:
        Accepted signing algorithms.  Defaults to ``("HS256",)``.
    audience:
        If set, the ``aud`` claim MUST contain this value.
    issuer:
        If set, the ``iss`` claim MUST equal this value.
    name_claim:
        Claim copied into ``AccessResponse.name`` (default ``sub``).
    leeway:
        Clock skew tolerance in seconds for ``exp`` / ``nbf``.

    Raises
    ------
    ValueError
        If *algorithms* is empty or names an unsupported algorithm.
    """

    def __init__(
        self,
        key: VerificationKey,
        *,
        algorithms: Sequence[str] = ("HS256",),
        audience: str | None = None,
        issuer: str | None = None,
        name_claim: str = "sub",
        leeway: float = 0,
    ) -> None:
        if not algorithms:
            raise ValueError("At least one JWT algorithm must be accepted")
        unsupported = [alg for alg in algorithms if alg not in SUPPORTED_ALGORITHMS]
        if unsupported:
            raise ValueError(
                f"Unsupported JWT algorithm(s): {', '.join(unsupported)}. "
                f"Supported: {', '.join(SUPPORTED_ALGORITHMS)}."
            )
        self._key = key
        self._algorithms = list(algorithms)
        self._audience = audience
        self._issuer = issuer
        self._name_claim = name_claim
        self._leeway = leeway

    async def access(self, token: str) -> AccessResponse:
        """Verify *token* and return the decision.

        Raises
        ------
        VerifierError
            If the configured key cannot be used to verify signatures.
        """
        try:
            claims: dict[str, Any] = jwt.decode(
                token,
                self._key,
                algorithms=self._algorithms,
                audience=self._audience,
                issuer=self._issuer,
                leeway=self._leeway,
                options={"require": ["exp", self._name_claim]},
            )
        except jwt.ExpiredSignatureError:
            return AccessResponse(outcome=Outcome.FAILURE, reason="token expired")
        except jwt.InvalidTokenError as exc:
            return AccessResponse(outcome=Outcome.FAILURE, reason=f"invalid token: {exc}")
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            # Anything else comes from preparing the key, not from the token.
            raise VerifierError(
                f"JWT verifier is misconfigured: {exc}",
                details={"algorithms": self._algorithms},
            ) from exc

        name = claims.get(self._name_claim)
        return AccessResponse(
            outcome=Outcome.SUCCESS,
            name=str(name) if name is not None else None,
        )


def issue_token(
    key: SigningKey,
    subject: str,
    *,
    ttl: int = DEFAULT_TTL_SECONDS,
    algorithm: str = "HS256",
    audience: str | None = None,
    issuer: str | None = None,
    extra_claims: dict[str, Any] | None = None,
    now: int | None = None,
) -> str:
    """Create a signed token that :class:`JwtIdentityVerifier` accepts.

    Returns
    -------
    str
        The compact-serialized JWT string.
    """
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise ValueError(f"Unsupported JWT algorithm: {algorithm!r}")
    issued_at = int(time.time()) if now is None else now
    payload: dict[str, Any] = {
        **(extra_claims or {}),
        "sub": subject,
        "iat": issued_at,
        "exp": issued_at + ttl,
    }
    if audience is not None:
        payload["aud"] = audience
    if issuer is not None:
        payload["iss"] = issuer
    token: str = jwt.encode(payload, key, algorithm=algorithm)
    return token
