#!/usr/bin/env python3
"""
Run one bulk edit against the configured store, without the web server.

Example:
    python scripts/run_bulk_edit.py --section title --products 101,102 \
        --set editType=removeText --set textToAdd=SALE

Operands are passed as NAME=VALUE pairs using the same names as the
bulk edit form. Exits non-zero on failure or partial failure.
"""

import argparse
import asyncio
import json
import logging
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bulk_editor.config import settings
from bulk_editor.editor import (
    ActionType,
    EditValidationError,
    apply_bulk_field_update,
    parse_edit_request,
    preview_bulk_field_update,
)
from bulk_editor.shopify import ShopifyClient

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run a Shopify bulk edit")
    parser.add_argument("--section", required=True, help="Field to edit (e.g. title, price)")
    parser.add_argument("--products", required=True, help="Comma-separated product IDs")
    parser.add_argument(
        "--set", dest="operands", action="append", default=[], metavar="NAME=VALUE",
        help="Edit operand, repeatable",
    )
    parser.add_argument("--preview", action="store_true", help="Compute without writing")
    return parser.parse_args(argv)


def build_form(args) -> dict:
    form = {
        "actionType": (ActionType.PREVIEW if args.preview else ActionType.BULK_EDIT).value,
        "section": args.section,
        "productIds": json.dumps([p.strip() for p in args.products.split(",") if p.strip()]),
    }
    for operand in args.operands:
        name, sep, value = operand.partition("=")
        if not sep:
            raise EditValidationError(f"Operand must be NAME=VALUE: {operand!r}")
        form[name] = value
    return form


async def main(argv=None):
    args = parse_args(argv)

    try:
        edit = parse_edit_request(build_form(args))
    except EditValidationError as e:
        logger.error(f"Invalid edit: {e}")
        sys.exit(2)

    async with ShopifyClient(
        settings.shopify_shop_domain,
        settings.shopify_access_token,
        api_version=settings.shopify_api_version,
        timeout=settings.request_timeout,
    ) as client:
        if edit.action is ActionType.PREVIEW:
            report = await preview_bulk_field_update(
                client, edit.product_ids, edit.editor, settings.max_concurrency
            )
            logger.info(f"{report.matched} of {len(edit.product_ids)} products would change")
            return

        report = await apply_bulk_field_update(
            client, edit.product_ids, edit.editor, settings.max_concurrency
        )

    if not report.success:
        logger.error(report.error)
        sys.exit(1)

    logger.info(report.message)
    if report.summary.partial_failure:
        for result in report.results:
            for update in result.updates:
                if update.error:
                    logger.error(f"  {update.target_id}: {update.error}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
