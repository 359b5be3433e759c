"""
Signers for presentation tokens.

The assembler only depends on the ``Signer`` protocol. ``ES256Signer`` signs
compact JWS tokens with a P-256 key; ``UnsecuredSigner`` emits ``alg: none``
tokens and is meant for demonstrations only.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import jwt
from jwcrypto import jwk

from .exceptions import PresentationVerificationError

logger = logging.getLogger(__name__)

UNSECURED_ALGORITHM = "none"
REQUIRED_CLAIMS = ["iss", "jti", "aud", "nbf", "iat", "exp", "nonce"]


class Signer(Protocol):
    """Compact token signing capability."""

    algorithm: str

    def sign(self, claims: Mapping[str, Any]) -> str:
        ...

    def verify(self, token: str, *, audience: str | None = None) -> dict[str, Any]:
        ...


def is_unsecured(signer: Signer) -> bool:
    return str(getattr(signer, "algorithm", "")).lower() == UNSECURED_ALGORITHM


def _decode_options(audience: str | None, required: Sequence[str]) -> dict[str, Any]:
    return {
        "require": list(required),
        "verify_exp": True,
        "verify_nbf": True,
        "verify_iat": True,
        "verify_aud": audience is not None,
    }


class ES256Signer:
    """Sign and verify tokens with an EC P-256 key."""

    algorithm = "ES256"

    def __init__(self, key: jwk.JWK | None = None, *, leeway: int = 0) -> None:
        self._key = key or jwk.JWK.generate(kty="EC", crv="P-256")
        self.kid = self._key.thumbprint()
        self._leeway = leeway

    @classmethod
    def from_pem(cls, private_key_pem: bytes, **kwargs: Any) -> ES256Signer:
        return cls(jwk.JWK.from_pem(private_key_pem), **kwargs)

    @property
    def public_jwk(self) -> dict[str, Any]:
        return self._key.export_public(as_dict=True)

    def sign(self, claims: Mapping[str, Any]) -> str:
        return jwt.encode(
            dict(claims),
            self._key.export_to_pem(private_key=True, password=None),
            algorithm=self.algorithm,
            headers={"kid": self.kid},
        )

    def verify(
        self,
        token: str,
        *,
        audience: str | None = None,
        required: Sequence[str] = REQUIRED_CLAIMS,
    ) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self._key.export_to_pem(),
                algorithms=[self.algorithm],
                audience=audience,
                leeway=self._leeway,
                options=_decode_options(audience, required),
            )
        except jwt.exceptions.InvalidTokenError as exc:
            raise PresentationVerificationError(f"Invalid presentation token: {exc}") from exc


class UnsecuredSigner:
    """Produce ``alg: none`` tokens. Demonstration only, never a production default."""

    algorithm = UNSECURED_ALGORITHM

    def __init__(self, *, leeway: int = 0) -> None:
        self._leeway = leeway

    def sign(self, claims: Mapping[str, Any]) -> str:
        logger.warning("Encoding an unsecured (alg=none) presentation token")
        return jwt.encode(dict(claims), "", algorithm=UNSECURED_ALGORITHM)

    def verify(
        self,
        token: str,
        *,
        audience: str | None = None,
        required: Sequence[str] = REQUIRED_CLAIMS,
    ) -> dict[str, Any]:
        try:
            header = jwt.get_unverified_header(token)
            if header.get("alg") != UNSECURED_ALGORITHM:
                raise PresentationVerificationError(
                    f"Expected an unsecured token, got alg={header.get('alg')!r}"
                )
            options = _decode_options(audience, required)
            options["verify_signature"] = False
            return jwt.decode(token, audience=audience, leeway=self._leeway, options=options)
        except jwt.exceptions.InvalidTokenError as exc:
            raise PresentationVerificationError(f"Invalid presentation token: {exc}") from exc


__all__ = [
    "ES256Signer",
    "REQUIRED_CLAIMS",
    "Signer",
    "UNSECURED_ALGORITHM",
    "UnsecuredSigner",
    "is_unsecured",
]
