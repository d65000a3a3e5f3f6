# (c) Copyright Datacraft, 2026
"""Sliding-window verification of boundaries between adjacent groups."""
import logging

from .. import constants as const
from .oracle import Ok, Oracle
from .models import (
	BoundaryDecision,
	BoundaryVerification,
	DocumentType,
	Page,
	PageClassification,
	PageGroup,
)

logger = logging.getLogger(__name__)


def fast_path_verdict(
	class_a: PageClassification | None,
	class_b: PageClassification | None,
	page_a: int,
	page_b: int,
) -> BoundaryVerification | None:
	"""Decide a boundary from classifications alone, or return None."""
	id_a = class_a.transaction_id if class_a else None
	id_b = class_b.transaction_id if class_b else None

	if id_a and id_b and id_a == id_b:
		return BoundaryVerification(
			page_a=page_a,
			page_b=page_b,
			decision=BoundaryDecision.SAME,
			reason=f"Same transaction ID: {id_a}",
			confidence=const.FAST_PATH_CONFIDENCE,
		)

	if id_a and id_b:
		return BoundaryVerification(
			page_a=page_a,
			page_b=page_b,
			decision=BoundaryDecision.DIFFERENT,
			reason=f"Different transaction IDs: {id_a} vs {id_b}",
			confidence=const.FAST_PATH_CONFIDENCE,
		)

	type_a = class_a.document_type if class_a else None
	type_b = class_b.document_type if class_b else None
	if type_b == DocumentType.TERMS and type_a != DocumentType.TERMS:
		return BoundaryVerification(
			page_a=page_a,
			page_b=page_b,
			decision=BoundaryDecision.SAME,
			reason='Terms page follows main document',
			confidence=const.TERMS_FOLLOW_CONFIDENCE,
		)

	return None


class BoundaryVerifier:
	"""Re-check each boundary between consecutive groups and merge false splits.

	Cheap checks on the classifications run first; the model is only
	asked when they are inconclusive. A merge re-checks the same
	position, since the merged group now borders a new neighbour.
	"""

	def __init__(self, oracle: Oracle, merge_threshold: float = 0.7):
		self.oracle = oracle
		self.merge_threshold = merge_threshold

	async def verify_boundary(
		self,
		page_a: Page,
		page_b: Page,
		classifications: dict[int, PageClassification],
	) -> BoundaryVerification:
		verdict = fast_path_verdict(
			classifications.get(page_a.page_number),
			classifications.get(page_b.page_number),
			page_a.page_number,
			page_b.page_number,
		)
		if verdict is not None:
			return verdict

		result = await self.oracle.verify_boundary(page_a, page_b)
		if isinstance(result, Ok):
			return result.value

		logger.warning(
			f"Boundary {page_a.page_number}|{page_b.page_number} undecided, "
			f"keeping pages apart: {result}"
		)
		return BoundaryVerification(
			page_a=page_a.page_number,
			page_b=page_b.page_number,
			decision=BoundaryDecision.DIFFERENT,
			reason='Could not determine - defaulting to separate',
			confidence=const.FALLBACK_CONFIDENCE,
		)

	def _should_merge(self, verification: BoundaryVerification) -> bool:
		return (
			verification.decision == BoundaryDecision.SAME
			and verification.confidence > self.merge_threshold
		)

	async def verify_and_adjust(
		self,
		groups: list[PageGroup],
		pages: list[Page],
		classifications: list[PageClassification],
	) -> tuple[list[PageGroup], list[BoundaryVerification]]:
		"""Return the adjusted, renumbered groups and every verification made."""
		verifications: list[BoundaryVerification] = []
		if len(groups) <= 1:
			return groups, verifications

		adjusted = [
			PageGroup(
				invoice_number=g.invoice_number,
				pages=list(g.pages),
				confidence=g.confidence,
				reasoning=g.reasoning,
				transaction_id=g.transaction_id,
			)
			for g in groups
		]
		page_map = {p.page_number: p for p in pages}
		class_map = {c.page_number: c for c in classifications}

		position = 0
		while position < len(adjusted) - 1:
			merged = await self._check_position(adjusted, position, page_map, class_map, verifications)
			if not merged:
				position += 1

		for index, group in enumerate(adjusted, start=1):
			group.invoice_number = index

		return adjusted, verifications

	async def _check_position(
		self,
		groups: list[PageGroup],
		position: int,
		page_map: dict[int, Page],
		class_map: dict[int, PageClassification],
		verifications: list[BoundaryVerification],
	) -> bool:
		"""Verify the boundary after groups[position]; merge in place when same."""
		group_a = groups[position]
		group_b = groups[position + 1]
		if not group_a.pages or not group_b.pages:
			return False

		last_a = group_a.last_page
		first_b = group_b.first_page
		if first_b - last_a != 1:
			return False

		page_a = page_map.get(last_a)
		page_b = page_map.get(first_b)
		if page_a is None or page_b is None:
			return False

		verification = await self.verify_boundary(page_a, page_b, class_map)
		verifications.append(verification)

		if not self._should_merge(verification):
			return False

		logger.info(
			f"Merging groups {position + 1} and {position + 2}: {verification.reason}"
		)
		group_a.pages.extend(group_b.pages)
		group_a.reasoning += f" (merged: {verification.reason})"
		del groups[position + 1]
		return True
