# (c) Copyright Datacraft, 2026
"""Choose between the heuristic split and the validation loop split."""
import logging
from dataclasses import dataclass

from .models import (
	NEUTRAL_TYPES,
	PageClassification,
	PageGroup,
	ResultSource,
	SplitResult,
)

logger = logging.getLogger(__name__)


@dataclass
class ArbiterDecision:
	result: SplitResult
	source: ResultSource
	heuristic_score: float
	validation_loop_score: float | None


def score_groups(groups: list[PageGroup], classifications: list[PageClassification]) -> float:
	"""Average per-group agreement with the page classifications."""
	if not groups:
		return 0.0

	class_map = {c.page_number: c for c in classifications}
	score = 0.0
	for group in groups:
		members = [class_map[p] for p in group.pages if p in class_map]

		transaction_ids = {c.transaction_id for c in members if c.transaction_id}
		if len(transaction_ids) == 1:
			score += 1
		elif not transaction_ids:
			score += 0.5
		else:
			score -= 0.5

		doc_types = {c.document_type for c in members if c.document_type not in NEUTRAL_TYPES}
		if len(doc_types) <= 1:
			score += 0.5

	return score / len(groups)


def select_best_result(
	heuristic_groups: list[PageGroup],
	loop_result: SplitResult | None,
	classifications: list[PageClassification],
	margin: float = 0.1,
) -> ArbiterDecision:
	"""Prefer the loop result unless it scores worse by more than margin."""
	heuristic_score = score_groups(heuristic_groups, classifications)
	logger.info(f"Heuristic groups score: {heuristic_score:.2f}")

	heuristic = ArbiterDecision(
		result=SplitResult.from_groups(heuristic_groups),
		source=ResultSource.HEURISTIC,
		heuristic_score=heuristic_score,
		validation_loop_score=None,
	)
	if loop_result is None:
		return heuristic

	loop_score = score_groups(loop_result.page_groups, classifications)
	logger.info(f"Validation loop score: {loop_score:.2f}")
	heuristic.validation_loop_score = loop_score

	if loop_score >= heuristic_score - margin:
		return ArbiterDecision(
			result=loop_result,
			source=ResultSource.VALIDATION_LOOP,
			heuristic_score=heuristic_score,
			validation_loop_score=loop_score,
		)
	return heuristic
