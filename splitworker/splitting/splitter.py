# (c) Copyright Datacraft, 2026
"""Universal document splitter - find the receipts/invoices inside one upload."""
import logging
import time

from ..config import get_settings
from .oracle import Oracle
from .arbiter import select_best_result
from .boundary import BoundaryVerifier
from .classifier import PageClassifier
from .container import detect_container_pages
from .evaluator import SplitEvaluator
from .grouping import create_initial_groups
from .models import Page, ProcessingPhase, ResultSource, UniversalSplitResult

logger = logging.getLogger(__name__)


class SplitInputError(ValueError):
	"""The page list violates the input contract."""


class _PhaseTimer:
	def __init__(self, phases: list[ProcessingPhase], name: str):
		self.phases = phases
		self.name = name
		self.result = ''

	def __enter__(self):
		self._start = time.time()
		return self

	def __exit__(self, exc_type, exc_val, exc_tb):
		if exc_type is None:
			self.phases.append(ProcessingPhase(
				phase=self.name,
				duration_ms=(time.time() - self._start) * 1000,
				result=self.result,
			))


class UniversalDocumentSplitter:
	"""Split an OCR'd upload into its individual documents.

	Pipeline:
	- Validation: page count and size limits
	- Container detection: drop report wrapper pages
	- Classification: per-page type and identifiers, in batches
	- Initial grouping: ordered rules over the classification sequence
	- Boundary verification: re-check adjacent groups, merge false splits
	- Validation loop: an independent split, reviewed and corrected
	- Arbitration: keep whichever of the two splits fits the evidence

	Example usage:
		splitter = UniversalDocumentSplitter(oracle=SplitterOracle(client))
		result = await splitter.split_document(pages)

		for group in result.page_groups:
			extract_receipt(group.pages)
	"""

	def __init__(
		self,
		oracle: Oracle,
		batch_size: int | None = None,
		max_iterations: int | None = None,
		merge_threshold: float | None = None,
		arbiter_margin: float | None = None,
		max_pages: int | None = None,
		max_file_size_mb: float | None = None,
	):
		"""Initialize the splitter.

		Args:
			oracle: Language model capability used for classification and review
			batch_size: Pages per classification request
			max_iterations: Budget of the validation loop
			merge_threshold: Confidence above which a "same" boundary merges groups
			arbiter_margin: How much worse the loop result may score and still win
			max_pages: Largest accepted page count
			max_file_size_mb: Largest accepted upload size

		Omitted values come from the application settings.
		"""
		settings = get_settings()
		self.oracle = oracle
		self.max_pages = max_pages or settings.split_max_pages
		self.max_file_size_mb = max_file_size_mb or settings.split_max_file_size_mb
		self.arbiter_margin = (
			arbiter_margin if arbiter_margin is not None else settings.split_arbiter_margin
		)

		self.classifier = PageClassifier(
			oracle,
			batch_size=batch_size or settings.split_classification_batch_size,
		)
		self.verifier = BoundaryVerifier(
			oracle,
			merge_threshold=(
				merge_threshold if merge_threshold is not None else settings.split_merge_threshold
			),
		)
		self.evaluator = SplitEvaluator(
			oracle,
			max_iterations=max_iterations or settings.split_max_iterations,
		)

	def validate_input(self, pages: list[Page], file_size_mb: float | None = None) -> None:
		"""Reject inputs outside the supported contract.

		Raises:
			SplitInputError: On empty, oversized or misnumbered input
		"""
		if not pages:
			raise SplitInputError("No pages provided")

		if len(pages) > self.max_pages:
			raise SplitInputError(
				f"Document exceeds {self.max_pages} page limit (has {len(pages)} pages)"
			)

		if file_size_mb and file_size_mb > self.max_file_size_mb:
			raise SplitInputError(
				f"File size exceeds {self.max_file_size_mb:g}MB limit (is {file_size_mb:.1f}MB)"
			)

		numbers = [p.page_number for p in pages]
		if numbers != list(range(1, len(pages) + 1)):
			raise SplitInputError("Pages must be numbered contiguously from 1 in order")

	async def split_document(
		self,
		pages: list[Page],
		file_size_mb: float | None = None,
	) -> UniversalSplitResult:
		start_time = time.time()
		phases: list[ProcessingPhase] = []

		logger.info(f"Starting universal document splitter with {len(pages)} pages")

		with _PhaseTimer(phases, 'validation') as phase:
			self.validate_input(pages, file_size_mb)
			phase.result = 'passed'

		with _PhaseTimer(phases, 'container_detection') as phase:
			container_pages = detect_container_pages(pages)
			phase.result = f"found {len(container_pages)} container pages"
		logger.info(f"Container pages detected: {container_pages or 'none'}")

		content_pages = [p for p in pages if p.page_number not in container_pages]
		logger.info(f"Content pages to analyze: {len(content_pages)}")

		if not content_pages:
			return UniversalSplitResult(
				total_invoices=0,
				page_groups=[],
				processing_phases=phases,
				container_pages=container_pages,
				converged=True,
				processing_time_ms=(time.time() - start_time) * 1000,
			)

		with _PhaseTimer(phases, 'page_classification') as phase:
			classifications = await self.classifier.classify(content_pages)
			phase.result = f"classified {len(classifications)} pages"

		with _PhaseTimer(phases, 'initial_grouping') as phase:
			initial_groups = create_initial_groups(classifications)
			phase.result = f"{len(initial_groups)} groups"
		logger.info(f"Initial groups created: {len(initial_groups)}")

		with _PhaseTimer(phases, 'boundary_verification') as phase:
			verified_groups, verifications = await self.verifier.verify_and_adjust(
				initial_groups,
				content_pages,
				classifications,
			)
			phase.result = f"verified {len(verifications)} boundaries"

		with _PhaseTimer(phases, 'eval_validation') as phase:
			evaluation = await self.evaluator.evaluate(content_pages)
			if evaluation.final_result is None:
				phase.result = 'no_candidate'
			else:
				phase.result = 'converged' if evaluation.converged else 'max_iterations'

		with _PhaseTimer(phases, 'arbitration') as phase:
			decision = select_best_result(
				verified_groups,
				evaluation.final_result,
				classifications,
				margin=self.arbiter_margin,
			)
			phase.result = decision.source.value

		final = decision.result
		if decision.source == ResultSource.VALIDATION_LOOP and evaluation.excluded_pages:
			logger.info(f"Review excluded container pages: {evaluation.excluded_pages}")
			container_pages = sorted(set(container_pages) | set(evaluation.excluded_pages))

		processing_time_ms = (time.time() - start_time) * 1000
		logger.info(f"Universal splitter completed in {processing_time_ms:.0f}ms")
		logger.info(f"Final result: {final.total_invoices} invoices from {decision.source.value}")

		return UniversalSplitResult(
			total_invoices=final.total_invoices,
			page_groups=final.page_groups,
			classifications=classifications,
			boundary_verifications=verifications,
			processing_phases=phases,
			iterations=evaluation.iterations,
			container_pages=container_pages,
			converged=evaluation.converged,
			selected=decision.source,
			heuristic_score=decision.heuristic_score,
			validation_loop_score=decision.validation_loop_score,
			processing_time_ms=processing_time_ms,
		)
