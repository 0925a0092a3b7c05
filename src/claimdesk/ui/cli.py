# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from claimdesk.app import ClaimsSession, load_upload_file, open_session
from claimdesk.config import configure_logging
from claimdesk.domain.mutations import MutationFailure
from claimdesk.domain.ports.claims import NewClaim

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from claimdesk.domain.model import ClaimDetail, ClaimSummary
    from claimdesk.domain.mutations import MutationResult

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Work with claims, items and attachments")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("claims", help="List claims")

    claim = subparsers.add_parser("claim", help="Show one claim with its items")
    claim.add_argument("claim_id", type=str)

    create_claim = subparsers.add_parser("create-claim", help="Create a claim")
    create_claim.add_argument("--title", type=str, required=True)
    create_claim.add_argument("--customer", type=str)
    create_claim.add_argument("--claimant-name", type=str)
    create_claim.add_argument("--claimant-email", type=str)

    add_item = subparsers.add_parser("add-item", help="Add an item to a claim")
    add_item.add_argument("claim_id", type=str)
    add_item.add_argument("--title", type=str, required=True)
    add_item.add_argument("--description", type=str, default="")

    update_item = subparsers.add_parser("update-item", help="Edit an item")
    update_item.add_argument("claim_id", type=str)
    update_item.add_argument("item_id", type=str)
    update_item.add_argument("--title", type=str, required=True)
    update_item.add_argument("--description", type=str, default="")

    delete_item = subparsers.add_parser("delete-item", help="Delete an item")
    delete_item.add_argument("claim_id", type=str)
    delete_item.add_argument("item_id", type=str)

    duplicate_item = subparsers.add_parser("duplicate-item", help="Duplicate an item")
    duplicate_item.add_argument("claim_id", type=str)
    duplicate_item.add_argument("item_id", type=str)

    move = subparsers.add_parser("move-item", help="Move an item to a new position")
    move.add_argument("claim_id", type=str)
    move.add_argument("item_id", type=str)
    move.add_argument(
        "--position",
        type=int,
        required=True,
        help="Zero-based position in the claim's item list",
    )

    upload = subparsers.add_parser("upload", help="Attach files to an item")
    upload.add_argument("claim_id", type=str)
    upload.add_argument("item_id", type=str)
    upload.add_argument("files", nargs="+", type=Path)

    remove = subparsers.add_parser("remove-attachment", help="Delete an attachment")
    remove.add_argument("claim_id", type=str)
    remove.add_argument("item_id", type=str)
    remove.add_argument("attachment_id", type=str)

    args = parser.parse_args(list(argv))
    if args.command == "move-item" and args.position < 0:
        parser.error("--position must be non-negative")
    if args.command == "upload":
        missing = [str(path) for path in args.files if not path.is_file()]
        if missing:
            parser.error(f"Not a file: {', '.join(missing)}")
    return args


def _print_claims(claims: Sequence[ClaimSummary]) -> None:
    for claim in claims:
        print(f"{claim.id}\t{claim.claim_number}\t{claim.status}\t{claim.title}")


def _print_claim(claim: ClaimDetail) -> None:
    print(f"{claim.claim_number} [{claim.status}] {claim.title}")
    for item in claim.items:
        print(f"  {item.order:>3} {item.id}\t{item.title}")
        for attachment in item.attachments:
            print(f"        - {attachment.id}\t{attachment.filename}")


async def _dispatch(
    session: ClaimsSession,
    args: argparse.Namespace,
) -> MutationResult[object] | None:
    command = args.command
    if command == "claims":
        _print_claims(await session.list_claims())
        return None
    if command == "claim":
        claim = await session.get_claim(args.claim_id)
        if claim is None:
            raise ValueError(f"Claim not found: {args.claim_id}")
        _print_claim(claim)
        return None
    if command == "create-claim":
        return await session.create_claim(
            NewClaim(
                title=args.title,
                customer=args.customer,
                claimant_name=args.claimant_name,
                claimant_email=args.claimant_email,
            )
        )

    # item and attachment edits work against the loaded claim
    await session.get_claim(args.claim_id)
    if command == "add-item":
        return await session.create_item(
            args.claim_id, title=args.title, description=args.description
        )
    if command == "update-item":
        return await session.update_item(
            args.claim_id, args.item_id, title=args.title, description=args.description
        )
    if command == "delete-item":
        return await session.delete_item(args.claim_id, args.item_id)
    if command == "duplicate-item":
        return await session.duplicate_item(args.claim_id, args.item_id)
    if command == "move-item":
        return await session.move_item(args.claim_id, args.item_id, args.position)
    if command == "upload":
        files = [load_upload_file(path) for path in args.files]
        return await session.add_attachments(args.claim_id, args.item_id, files)
    if command == "remove-attachment":
        return await session.remove_attachment(args.claim_id, args.item_id, args.attachment_id)
    raise ValueError(f"Unsupported command: {command}")


async def _run(args: argparse.Namespace, session: ClaimsSession | None = None) -> int:
    async with session or open_session() as active:
        result = await _dispatch(active, args)
        if isinstance(result, MutationFailure):
            return 1
        if result is not None and args.command != "create-claim":
            claim = active.cache.get(("claims", args.claim_id))
            if claim is not None:
                _print_claim(claim)
    return 0


def main(argv: Sequence[str] | None = None, *, session: ClaimsSession | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        exit_code = asyncio.run(_run(parsed_args, session))
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)
    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
