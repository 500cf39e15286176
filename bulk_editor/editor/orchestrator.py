"""
Bulk update orchestration.

Fetches the selected products concurrently, computes the new value for
every target, skips unchanged targets, and writes the rest through the
field editor's primary transport with one fallback attempt.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from ..shopify.client import ShopifyClient
from ..shopify.ids import normalize_product_id, to_gid
from .fields import FieldEditor, Target

logger = logging.getLogger(__name__)


def error_reason(error: Exception) -> str:
    """Remote reason for a failure, without the resource path."""
    return getattr(error, "reason", None) or str(error)


class UpdateStatus(str, Enum):
    PENDING = "pending"
    SKIPPED = "skipped"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass
class UpdateResult:
    """Outcome for one target (a variant, or the product itself)."""
    target_id: str
    status: UpdateStatus
    original_value: Any = None
    new_value: Any = None
    error: Optional[str] = None
    used_fallback: bool = False

    @property
    def skipped(self) -> bool:
        return self.status is UpdateStatus.SKIPPED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.target_id,
            "status": self.status.value,
            "originalValue": self.original_value,
            "newValue": self.new_value,
            "skipped": self.skipped,
            "error": self.error,
            "usedFallback": self.used_fallback,
        }


@dataclass
class ProductResult:
    """Outcome for one product."""
    product_id: str
    product_title: str
    updates: List[UpdateResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return any(u.status is UpdateStatus.UPDATED for u in self.updates)

    @property
    def failed(self) -> bool:
        return any(u.status is UpdateStatus.FAILED for u in self.updates)

    @property
    def pending(self) -> bool:
        return any(u.status is UpdateStatus.PENDING for u in self.updates)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "productTitle": self.product_title,
            "success": self.success,
            "updates": [u.to_dict() for u in self.updates],
        }


@dataclass
class BatchSummary:
    """Counts over a whole bulk edit."""
    total_products: int = 0
    successful_products: int = 0
    skipped_products: int = 0
    failed_products: int = 0
    total: int = 0
    successful: int = 0
    skipped: int = 0
    failed: int = 0
    pending: int = 0

    @property
    def partial_failure(self) -> bool:
        return self.failed > 0 and (self.successful + self.skipped) > 0

    @classmethod
    def from_results(cls, results: Iterable[ProductResult]) -> "BatchSummary":
        summary = cls()
        for result in results:
            summary.total_products += 1
            if result.success:
                summary.successful_products += 1
            elif result.failed:
                summary.failed_products += 1
            else:
                summary.skipped_products += 1

            for update in result.updates:
                summary.total += 1
                if update.status is UpdateStatus.FAILED:
                    summary.failed += 1
                elif update.status is UpdateStatus.UPDATED:
                    summary.successful += 1
                elif update.status is UpdateStatus.SKIPPED:
                    summary.skipped += 1
                else:
                    # Preview leaves would-change targets pending
                    summary.pending += 1
        return summary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalProducts": self.total_products,
            "successfulProducts": self.successful_products,
            "skippedProducts": self.skipped_products,
            "failedProducts": self.failed_products,
            "total": self.total,
            "successfulCount": self.successful,
            "skippedCount": self.skipped,
            "failedCount": self.failed,
            "pendingCount": self.pending,
            "partialFailure": self.partial_failure,
        }


@dataclass
class BatchReport:
    """Per-product results of a bulk edit plus its summary."""
    label: str
    target_noun: str
    results: List[ProductResult]
    summary: BatchSummary

    @property
    def success(self) -> bool:
        """False only if no target was updated, skipped or left pending."""
        s = self.summary
        return (s.successful + s.skipped + s.pending) > 0

    @property
    def errors(self) -> List[str]:
        """Distinct error messages, in first-seen order."""
        seen: List[str] = []
        for result in self.results:
            for update in result.updates:
                if update.error and update.error not in seen:
                    seen.append(update.error)
        return seen

    @property
    def matched(self) -> int:
        """Products with at least one target that would change."""
        return sum(1 for r in self.results if r.pending or r.success)

    @property
    def message(self) -> str:
        s = self.summary
        if not self.success:
            return f"Failed to update {self.label.lower()}"
        if s.partial_failure and self.target_noun == "products":
            return (
                f"Updated {s.successful} of {s.total} products. "
                f"{s.failed} products failed to update."
            )
        if s.partial_failure:
            return (
                f"Updated {s.successful} {self.target_noun} across "
                f"{s.successful_products} products. "
                f"{s.failed} {self.target_noun} failed to update."
            )
        return (
            f"{self.label} updated successfully! "
            f"{s.successful} updated, {s.skipped} skipped."
        )

    @property
    def error(self) -> Optional[str]:
        if self.success:
            return None
        errors = self.errors
        if not errors:
            return f"No {self.target_noun} found for the selected products"
        return "; ".join(errors)


async def _process_target(
    client: ShopifyClient,
    editor: FieldEditor,
    target: Target,
    semaphore: asyncio.Semaphore,
    dry_run: bool,
) -> UpdateResult:
    """Compute, compare and (unless dry_run) write one target."""
    original = editor.display(target.current)
    try:
        new_value = editor.compute(target)
    except Exception as e:
        logger.error(f"Cannot compute {editor.section} for {target.target_id}: {e}")
        return UpdateResult(target.target_id, UpdateStatus.FAILED, original, error=str(e))

    if editor.is_unchanged(target.current, new_value):
        logger.debug(f"{target.target_id}: {editor.section} unchanged, skipping")
        return UpdateResult(
            target.target_id, UpdateStatus.SKIPPED, original, editor.display(new_value)
        )

    if dry_run:
        return UpdateResult(
            target.target_id, UpdateStatus.PENDING, original, editor.display(new_value)
        )

    async with semaphore:
        try:
            written = await editor.write_primary(client, target, new_value)
            logger.debug(f"{target.target_id}: {editor.section} updated")
            return UpdateResult(
                target.target_id, UpdateStatus.UPDATED, original, editor.display(written)
            )
        except Exception as primary_error:
            if not editor.has_fallback:
                logger.error(f"{target.target_id}: {editor.section} update failed: {primary_error}")
                return UpdateResult(
                    target.target_id, UpdateStatus.FAILED, original,
                    editor.display(new_value), error=error_reason(primary_error),
                )
            logger.warning(
                f"{target.target_id}: GraphQL {editor.section} update failed "
                f"({primary_error}), trying REST"
            )

        try:
            written = await editor.write_fallback(client, target, new_value)
            return UpdateResult(
                target.target_id, UpdateStatus.UPDATED, original,
                editor.display(written), used_fallback=True,
            )
        except Exception as fallback_error:
            logger.error(f"{target.target_id}: REST {editor.section} update failed: {fallback_error}")
            return UpdateResult(
                target.target_id, UpdateStatus.FAILED, original,
                editor.display(new_value), error=error_reason(fallback_error), used_fallback=True,
            )


async def _process_product(
    client: ShopifyClient,
    editor: FieldEditor,
    product_id: str,
    semaphore: asyncio.Semaphore,
    dry_run: bool,
) -> ProductResult:
    """Fetch one product and process all of its targets."""
    try:
        numeric_id = normalize_product_id(product_id)
        # The permit covers the fetch only; each write takes its own
        async with semaphore:
            product = await editor.fetch(client, numeric_id)
    except Exception as e:
        logger.error(f"Failed to fetch product {product_id}: {e}")
        return ProductResult(
            product_id=str(product_id),
            product_title="",
            updates=[UpdateResult(
                to_gid("Product", product_id), UpdateStatus.FAILED, error=str(e)
            )],
        )

    targets = editor.targets(product)
    if not targets:
        logger.info(f"Product {product.product_id} has no {editor.target_noun}")

    updates = await asyncio.gather(*[
        _process_target(client, editor, target, semaphore, dry_run)
        for target in targets
    ])
    return ProductResult(product.product_id, product.title, list(updates))


async def _run(
    client: ShopifyClient,
    product_ids: List[str],
    editor: FieldEditor,
    max_concurrency: int,
    dry_run: bool,
) -> BatchReport:
    semaphore = asyncio.Semaphore(max(1, max_concurrency))
    results = await asyncio.gather(*[
        _process_product(client, editor, product_id, semaphore, dry_run)
        for product_id in product_ids
    ])
    results = list(results)
    return BatchReport(
        label=editor.label,
        target_noun=editor.target_noun,
        results=results,
        summary=BatchSummary.from_results(results),
    )


async def apply_bulk_field_update(
    client: ShopifyClient,
    product_ids: List[str],
    editor: FieldEditor,
    max_concurrency: int = 4,
) -> BatchReport:
    """
    Apply one field edit to every target of the given products.

    Never raises for per-product or per-target failures; they are
    reported in the returned BatchReport.

    Args:
        client: Shopify client for the store
        product_ids: Numeric product IDs or product gids
        editor: Field editor carrying the validated edit
        max_concurrency: Max remote calls in flight
    """
    logger.info(
        f"Bulk {editor.section} edit: {len(product_ids)} products, "
        f"concurrency {max_concurrency}"
    )
    report = await _run(client, product_ids, editor, max_concurrency, dry_run=False)
    s = report.summary
    logger.info(
        f"Bulk {editor.section} edit finished: {s.successful} updated, "
        f"{s.skipped} skipped, {s.failed} failed"
    )
    return report


async def preview_bulk_field_update(
    client: ShopifyClient,
    product_ids: List[str],
    editor: FieldEditor,
    max_concurrency: int = 4,
) -> BatchReport:
    """Compute the edit without writing; targets that would change stay pending."""
    report = await _run(client, product_ids, editor, max_concurrency, dry_run=True)
    logger.info(
        f"Preview {editor.section} edit: {report.matched} of "
        f"{len(product_ids)} products would change"
    )
    return report


async def collect_product_tags(
    client: ShopifyClient,
    product_ids: List[str],
    max_concurrency: int = 4,
) -> List[str]:
    """
    Sorted, distinct tags across the given products.

    Raises:
        ShopifyClientError: If any product cannot be read
    """
    semaphore = asyncio.Semaphore(max(1, max_concurrency))
    reader = FieldEditor()

    async def read_tags(product_id: str) -> List[str]:
        async with semaphore:
            product = await reader.fetch(client, normalize_product_id(product_id))
        return product.tags

    tag_lists = await asyncio.gather(*[read_tags(pid) for pid in product_ids])
    tags = sorted({tag for tags in tag_lists for tag in tags})
    logger.info(f"Read {len(tags)} distinct tags from {len(product_ids)} products")
    return tags
