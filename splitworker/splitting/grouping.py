# (c) Copyright Datacraft, 2026
"""Initial grouping of classified pages into candidate documents."""
from .models import NEUTRAL_TYPES, PageClassification, PageGroup


def should_start_new_group(current: PageClassification, prev: PageClassification) -> bool:
	"""Decide if the current page opens a new document.

	Rules are checked in order and the first match wins.
	"""
	# 1. Both pages carry a transaction ID and they differ
	if (
		current.transaction_id
		and prev.transaction_id
		and current.transaction_id != prev.transaction_id
	):
		return True

	# 2. Different document types, unless either side is terms/unknown
	if (
		current.document_type != prev.document_type
		and current.document_type not in NEUTRAL_TYPES
		and prev.document_type not in NEUTRAL_TYPES
	):
		return True

	# 3. Previous page closed with a total and this one does not continue it
	if prev.has_total and not current.is_continuation:
		return True

	# 4. Standalone receipt after another total (subsumed by rule 3)
	if not current.is_continuation and current.has_total and prev.has_total:
		return True

	# 5. Different merchants
	if (
		current.merchant_name
		and prev.merchant_name
		and current.merchant_name != prev.merchant_name
	):
		return True

	return False


def group_from_classifications(
	classifications: list[PageClassification],
	invoice_number: int,
) -> PageGroup:
	pages = [c.page_number for c in classifications]
	primary = classifications[0]
	confidence = sum(c.confidence for c in classifications) / len(classifications)
	label = primary.transaction_id or primary.merchant_name or 'unknown'

	return PageGroup(
		invoice_number=invoice_number,
		pages=pages,
		confidence=confidence,
		reasoning=f"{primary.document_type.value}: {label} (pages {','.join(map(str, pages))})",
		transaction_id=primary.transaction_id,
	)


def create_initial_groups(classifications: list[PageClassification]) -> list[PageGroup]:
	"""Walk the classification sequence once and cut it into groups."""
	groups: list[PageGroup] = []
	current: list[PageClassification] = []

	for i, classification in enumerate(classifications):
		if i > 0 and should_start_new_group(classification, classifications[i - 1]):
			groups.append(group_from_classifications(current, len(groups) + 1))
			current = []
		current.append(classification)

	if current:
		groups.append(group_from_classifications(current, len(groups) + 1))

	return groups
