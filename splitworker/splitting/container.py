# (c) Copyright Datacraft, 2026
"""Detection of report wrapper (container) pages at the front of an upload."""
import logging

from .. import constants as const
from .models import Page

logger = logging.getLogger(__name__)


def count_indicators(text: str) -> int:
	"""Count distinct container indicators present in the text."""
	content = text.lower()
	return sum(1 for indicator in const.CONTAINER_INDICATORS if indicator in content)


def detect_container_pages(pages: list[Page]) -> list[int]:
	"""Return page numbers of leading wrapper pages to exclude.

	Only the first pages are inspected. When any of them carries enough
	indicators the upload is treated as an expense report export: pages
	1-2 are dropped, and page 3 too if it is near-empty or a thumbnail
	sheet.
	"""
	first_pages = [p for p in pages if p.page_number <= const.CONTAINER_SCAN_PAGES]

	wrapped = False
	for page in first_pages:
		score = count_indicators(page.text)
		if score >= const.CONTAINER_MIN_INDICATORS:
			logger.debug(f"Page {page.page_number} has {score} container indicators")
			wrapped = True
			break

	if not wrapped:
		return []

	excluded = [n for n in const.LEADING_CONTAINER_PAGES if any(p.page_number == n for p in pages)]

	page3 = next((p for p in first_pages if p.page_number == 3), None)
	if page3 is not None:
		text = page3.text
		if len(text.strip()) < const.CONTAINER_NEAR_EMPTY_CHARS or 'thumbnail' in text.lower():
			excluded.append(3)

	return excluded
