"""Identity verifiers.

* **JwtIdentityVerifier** -- verifies signed JWT tokens (HS256, ES256,
  EdDSA) and resolves the identity name from a claim.
* **issue_token** -- creates tokens the JWT verifier accepts.

The static and token-table verifiers live with the interfaces in
:mod:`access_gate.core.interfaces`.
"""
from __future__ import annotations

from access_gate.identity.jwt import JwtIdentityVerifier, issue_token

__all__ = [
    "JwtIdentityVerifier",
    "issue_token",
]
