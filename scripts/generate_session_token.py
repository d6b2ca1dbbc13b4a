#!/usr/bin/env python3
"""
Session Token Generator CLI

Mint a Songtab session token for an existing user without going through
Google sign-in. Useful for calling the API from curl during development.

Usage:
    python scripts/generate_session_token.py --user-id <user-uuid>
    python scripts/generate_session_token.py --user-id <user-uuid> --hours 1 --quiet

Environment:
    SONGTAB_SESSION_TOKEN_SECRET must be set (generate with: openssl rand -hex 32)
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
import uuid as uuid_module
from datetime import datetime, timedelta, timezone

# Add the project root to the path so the songtab package imports without installing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from songtab.auth.tokens import SessionTokenCodec, SessionTokenError
from songtab.config import settings

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Generate a Songtab session token for a user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s --user-id UUID                 # Default expiry from settings
    %(prog)s --user-id UUID --hours 1       # Short-lived token
    %(prog)s --user-id UUID -q              # Token only (for scripting)

Environment:
    SONGTAB_SESSION_TOKEN_SECRET must be set before running this script.
        """
    )
    parser.add_argument(
        "--user-id",
        type=str,
        required=True,
        help="Local user UUID (the user_id returned by POST /api/auth/google)",
    )
    parser.add_argument(
        "--hours",
        type=int,
        default=0,
        help="Token validity in hours (default: SONGTAB_SESSION_TOKEN_EXPIRY_HOURS)",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only output the token (for scripting)",
    )

    args = parser.parse_args()

    try:
        uuid_module.UUID(args.user_id)
    except ValueError:
        parser.error(f"Invalid user ID format: {args.user_id}. Must be a valid UUID.")

    hours = args.hours if args.hours > 0 else settings.session_token_expiry_hours

    try:
        codec = SessionTokenCodec(
            secret=settings.session_token_secret,
            algorithm=settings.session_token_algorithm,
            expiry=timedelta(hours=hours),
        )
        token = codec.issue(args.user_id)
    except SessionTokenError as e:
        logger.error("Error: %s", e)
        sys.exit(1)

    if args.quiet:
        print(token)
        return

    expiration = datetime.now(timezone.utc) + codec.expiry
    logger.info("\n" + "=" * 60)
    logger.info("SONGTAB SESSION TOKEN")
    logger.info("=" * 60)
    logger.info("\nUser ID:  %s", args.user_id)
    logger.info("Expires:  %s", expiration.strftime("%Y-%m-%d %H:%M:%S UTC"))
    logger.info("\nToken:")
    logger.info("-" * 60)
    logger.info(token)
    logger.info("-" * 60)
    logger.info('\ncurl -H "Authorization: Bearer <token>" http://localhost:%s/api/songs', settings.songtab_port)
    logger.info("=" * 60 + "\n")


if __name__ == "__main__":
    main()
