# (c) Copyright Datacraft, 2026
"""Self-correcting validation loop.

Works without ground truth: a single-shot split is checked structurally
(no model) and semantically (model review), corrected, and checked
again until both reviews come back clean or the iteration budget runs
out. Running out is not an error, the last candidate is returned with
``converged=False``.
"""
import copy
import logging

from .oracle import Ok, Oracle
from .models import (
	AgentIteration,
	EvaluationResult,
	IterationPhase,
	Page,
	ReviewResult,
	SemanticIssue,
	Severity,
	SplitResult,
)
from .validation import (
	apply_semantic_fixes,
	calculate_confidence,
	count_errors,
	finalize_groups,
	repair_partition,
	validate_structure,
)

logger = logging.getLogger(__name__)


class SplitEvaluator:
	"""Split -> Validate -> (Converged | Correct -> Validate | budget exhausted)."""

	def __init__(self, oracle: Oracle, max_iterations: int = 3):
		if max_iterations < 1:
			raise ValueError("max_iterations must be >= 1")
		self.oracle = oracle
		self.max_iterations = max_iterations

	async def evaluate(self, pages: list[Page]) -> EvaluationResult:
		logger.info(f"Starting evaluation loop with {len(pages)} pages")

		if not pages:
			return EvaluationResult(final_result=SplitResult(), converged=True)

		split_reply = await self.oracle.split_once(pages)
		if not isinstance(split_reply, Ok):
			logger.warning(f"Split unavailable, validation loop has no candidate: {split_reply}")
			return EvaluationResult(final_result=None)

		current = split_reply.value
		expected_pages = {p.page_number for p in pages}
		excluded_pages: set[int] = set()
		iterations: list[AgentIteration] = []
		converged = False

		for iteration in range(1, self.max_iterations + 1):
			logger.info(f"=== Iteration {iteration}/{self.max_iterations} ===")

			structural_errors = validate_structure(current, expected_pages)
			remaining = [p for p in pages if p.page_number in expected_pages]
			semantic_issues = await self.review(current, remaining)

			error_count = count_errors(structural_errors)
			review = ReviewResult(
				structural_valid=error_count == 0,
				semantic_valid=not semantic_issues,
				structural_errors=structural_errors,
				semantic_issues=semantic_issues,
				overall_confidence=calculate_confidence(current, structural_errors, semantic_issues),
			)
			record = AgentIteration(
				iteration=iteration,
				phase=IterationPhase.VALIDATE if review.converged else IterationPhase.CORRECT,
				split_result=copy.deepcopy(current),
				review=review,
			)
			iterations.append(record)

			logger.info(
				f"Review: structural_valid={review.structural_valid} "
				f"semantic_valid={review.semantic_valid} "
				f"confidence={review.overall_confidence:.1%}"
			)

			if review.converged:
				logger.info("Converged: split is structurally and semantically valid")
				converged = True
				break

			corrections: list[str] = []
			groups = repair_partition(current.page_groups, expected_pages)
			corrections.extend(
				f"Fixed: {e.message}" for e in structural_errors if e.severity == Severity.ERROR
			)
			if semantic_issues:
				outcome = apply_semantic_fixes(groups, semantic_issues)
				groups = outcome.groups
				corrections.extend(outcome.corrections)
				expected_pages -= set(outcome.removed_pages)
				excluded_pages.update(outcome.removed_pages)
			current = finalize_groups(groups)
			record.corrections_made = corrections

		if not converged:
			logger.info(f"No convergence after {self.max_iterations} iterations")

		return EvaluationResult(
			final_result=current,
			iterations=iterations,
			converged=converged,
			excluded_pages=sorted(excluded_pages),
		)

	async def review(self, split: SplitResult, pages: list[Page]) -> list[SemanticIssue]:
		result = await self.oracle.review_split(split, pages)
		if isinstance(result, Ok):
			return result.value
		logger.warning(f"Failed to review split, assuming no issues: {result}")
		return []
