# (c) Copyright Datacraft, 2026
"""Page classification in fixed-size batches."""
import logging

from .. import constants as const
from .oracle import Ok, Oracle
from .models import Page, PageClassification

logger = logging.getLogger(__name__)


class PageClassifier:
	"""Classify pages by document type and extract their identifiers.

	Batches run one after another; a batch the model cannot answer
	degrades to default ``unknown`` classifications.
	"""

	def __init__(self, oracle: Oracle, batch_size: int = 5):
		if batch_size < 1:
			raise ValueError("batch_size must be >= 1")
		self.oracle = oracle
		self.batch_size = batch_size

	async def classify(self, pages: list[Page]) -> list[PageClassification]:
		classifications: list[PageClassification] = []
		for start in range(0, len(pages), self.batch_size):
			batch = pages[start:start + self.batch_size]
			classifications.extend(await self.classify_batch(batch))
		return classifications

	async def classify_batch(self, pages: list[Page]) -> list[PageClassification]:
		result = await self.oracle.classify(pages)
		if isinstance(result, Ok):
			return result.value

		numbers = ', '.join(str(p.page_number) for p in pages)
		logger.warning(f"Failed to classify pages {numbers}, using defaults: {result}")
		return [
			PageClassification.default(p.page_number, confidence=const.FALLBACK_CONFIDENCE)
			for p in pages
		]
