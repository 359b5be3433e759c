"""
Presentation token assembly and verification.

The assembler wraps matched credentials, verbatim and in match order, in a
Verifiable Presentation and adds the claims that bind it to one request.
Serialization and signing are delegated to a ``Signer``.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from shc_common.base_config import WalletConfig
from shc_common.errors import log_and_raise

from .exceptions import InsecureSignerError, PresentationVerificationError
from .matcher import MatchResult
from .models import VP_CONTEXT, VP_TYPE, AuthorizationRequest
from .signing import Signer, is_unsecured

logger = logging.getLogger(__name__)


class PresentationTokenAssembler:
    """Builds and signs ``vp_token`` claim sets."""

    def __init__(
        self,
        config: WalletConfig,
        signer: Signer,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        if is_unsecured(signer) and not config.allow_unsecured_tokens:
            log_and_raise(
                InsecureSignerError,
                "Refusing unsecured (alg=none) signer; set allow_unsecured_tokens to opt in",
                logger,
            )
        self._config = config
        self._signer = signer
        self._clock = clock
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))

    def assemble(
        self, credentials: Sequence[str], nonce: str, audience: str
    ) -> dict[str, Any]:
        """Return the presentation claims for ``credentials``.

        Args:
            credentials: Opaque credential payloads in match order
            nonce: Nonce of the request being answered
            audience: client_id of the requesting party
        """
        if isinstance(credentials, str):
            raise TypeError("credentials must be a sequence of payloads, not a single string")

        issued_at = int(self._clock())
        claims: dict[str, Any] = {
            "iss": self._config.issuer,
            "jti": self._id_factory(),
            "aud": audience,
            "nbf": issued_at,
            "iat": issued_at,
            "exp": issued_at + self._config.token_lifetime_seconds,
            "nonce": nonce,
            "vp": {
                "@context": list(VP_CONTEXT),
                "type": list(VP_TYPE),
                "verifiableCredential": list(credentials),
            },
        }
        logger.debug(
            "Assembled presentation %s with %d credentials for %s",
            claims["jti"],
            len(credentials),
            audience,
        )
        return claims

    def sign(self, claims: Mapping[str, Any]) -> str:
        return self._signer.sign(claims)

    def present(
        self, matched: MatchResult | Sequence[str], request: AuthorizationRequest
    ) -> str:
        """Assemble and sign a token answering ``request``."""
        credentials = matched.credentials if isinstance(matched, MatchResult) else list(matched)
        claims = self.assemble(credentials, request.nonce, request.client_id)
        token = self.sign(claims)
        logger.info("Issued presentation %s to %s", claims["jti"], request.client_id)
        return token


def verify_presentation(
    token: str, request: AuthorizationRequest, signer: Signer
) -> dict[str, Any]:
    """Check a presentation token against the request it answers.

    Signature, validity window and audience are checked by ``signer``; the
    nonce and presentation type are checked here.

    Raises:
        PresentationVerificationError: if any check fails
    """
    claims = signer.verify(token, audience=request.client_id)

    if claims.get("nonce") != request.nonce:
        log_and_raise(PresentationVerificationError, "Nonce mismatch in presentation token", logger)

    vp = claims.get("vp")
    vp_type = vp.get("type") if isinstance(vp, dict) else None
    if not isinstance(vp_type, list) or "VerifiablePresentation" not in vp_type:
        log_and_raise(
            PresentationVerificationError, "Token does not carry a Verifiable Presentation", logger
        )
    if not isinstance(vp.get("verifiableCredential"), list):
        log_and_raise(
            PresentationVerificationError, "Presentation has no verifiableCredential list", logger
        )

    logger.info("Verified presentation %s for %s", claims.get("jti"), request.client_id)
    return claims


__all__ = ["PresentationTokenAssembler", "verify_presentation"]
