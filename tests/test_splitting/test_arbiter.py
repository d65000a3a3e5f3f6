"""Tests for choosing between the heuristic and validation loop splits."""

import pytest

from helpers import make_classification, make_group
from splitworker.splitting.arbiter import score_groups, select_best_result
from splitworker.splitting.models import ResultSource, SplitResult


@pytest.fixture
def classifications():
	return [
		make_classification(1, document_type="hotel", transaction_id="T-1"),
		make_classification(2, document_type="hotel", transaction_id="T-1"),
		make_classification(3, document_type="hotel", transaction_id="T-2"),
	]


class TestScoreGroups:

	def test_consistent_groups_score_highest(self, classifications):
		groups = [make_group(1, [1, 2]), make_group(2, [3])]
		assert score_groups(groups, classifications) == 1.5

	def test_mixed_transactions_are_penalised(self, classifications):
		assert score_groups([make_group(1, [1, 2, 3])], classifications) == 0.0

	def test_mixed_types_without_ids(self):
		classifications = [
			make_classification(1, document_type="hotel"),
			make_classification(2, document_type="airline"),
			make_classification(3, document_type="terms"),
		]
		assert score_groups([make_group(1, [1, 2, 3])], classifications) == 0.5
		assert score_groups([make_group(1, [1]), make_group(2, [2, 3])], classifications) == 1.0

	def test_no_groups(self, classifications):
		assert score_groups([], classifications) == 0.0


class TestSelectBestResult:

	def test_heuristic_when_loop_has_no_candidate(self, classifications):
		groups = [make_group(1, [1, 2]), make_group(2, [3])]

		decision = select_best_result(groups, None, classifications)

		assert decision.source == ResultSource.HEURISTIC
		assert decision.result.total_invoices == 2
		assert decision.validation_loop_score is None

	def test_loop_wins_ties(self, classifications):
		heuristic = [make_group(1, [1, 2]), make_group(2, [3])]
		loop = SplitResult.from_groups([make_group(1, [1, 2]), make_group(2, [3])])

		decision = select_best_result(heuristic, loop, classifications)

		assert decision.source == ResultSource.VALIDATION_LOOP
		assert decision.result is loop

	def test_heuristic_when_loop_scores_much_worse(self, classifications):
		heuristic = [make_group(1, [1, 2]), make_group(2, [3])]
		loop = SplitResult.from_groups([make_group(1, [1, 2, 3])])

		decision = select_best_result(heuristic, loop, classifications)

		assert decision.source == ResultSource.HEURISTIC
		assert [g.pages for g in decision.result.page_groups] == [[1, 2], [3]]
		assert decision.heuristic_score == 1.5
		assert decision.validation_loop_score == 0.0

	@pytest.mark.parametrize("margin, expected", [
		(0.1, ResultSource.HEURISTIC),
		(0.5, ResultSource.VALIDATION_LOOP),
	])
	def test_margin(self, margin, expected):
		classifications = [
			make_classification(1, document_type="hotel"),
			make_classification(2, document_type="airline"),
		]
		heuristic = [make_group(1, [1]), make_group(2, [2])]
		loop = SplitResult.from_groups([make_group(1, [1, 2])])

		decision = select_best_result(heuristic, loop, classifications, margin=margin)

		assert decision.source == expected
