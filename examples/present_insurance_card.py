#!/usr/bin/env python3
"""
Walk through the insurance card presentation flow end to end.

Builds an authorization request for the insurance scope, parses it back as
the wallet would, matches the sample manifest and prints the resulting
presentation token. Uses an ES256 signer unless --unsecured is given.
"""

import argparse
import logging
import sys
from pathlib import Path

from shc_common import WalletConfig, setup_logging
from shc_presentation import (
    INSURANCE_SCOPE,
    AuthorizationRequestBuilder,
    AuthorizationRequestParser,
    ES256Signer,
    InMemoryManifestStore,
    PresentationExchangeError,
    PresentationTokenAssembler,
    UnsecuredSigner,
    default_scope_registry,
    select_credentials,
    smart_demo_provider,
    verify_presentation,
)

logger = logging.getLogger(__name__)

SAMPLE_MANIFEST = Path(__file__).with_name("sample_manifest.json")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--manifest", type=Path, default=SAMPLE_MANIFEST)
    parser.add_argument("--scope", default=INSURANCE_SCOPE)
    parser.add_argument("--unsecured", action="store_true", help="emit an alg=none token")
    args = parser.parse_args(argv)

    config = WalletConfig.from_env(allow_unsecured_tokens=args.unsecured, log_format="text")
    setup_logging(config.service_name, config.log_level, config.log_format)

    registry = default_scope_registry(config.version_pattern_mode)
    provider = smart_demo_provider(config.issuer)
    store = InMemoryManifestStore.from_json_file(args.manifest)
    signer = UnsecuredSigner() if args.unsecured else ES256Signer()

    try:
        _, url = AuthorizationRequestBuilder(config).build(provider, [args.scope])
        print(url)

        request, definition = AuthorizationRequestParser(registry).parse_and_resolve(url)
        matched = select_credentials(definition, store, config.version_pattern_mode)
        if matched.empty:
            print("No stored credential satisfies the request", file=sys.stderr)
            return 1

        token = PresentationTokenAssembler(config, signer).present(matched, request)
        verify_presentation(token, request, signer)
        print(token)
    except PresentationExchangeError as exc:
        logger.error("Presentation failed: %s", exc.message)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
