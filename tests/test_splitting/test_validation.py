"""Tests for structural validation and deterministic corrections."""

import pytest

from helpers import make_group
from splitworker.splitting.models import (
	SemanticIssue,
	SemanticIssueType,
	Severity,
	SplitResult,
	ValidationError,
	ValidationErrorType,
)
from splitworker.splitting.validation import (
	apply_semantic_fixes,
	calculate_confidence,
	count_errors,
	finalize_groups,
	fix_structural_issues,
	repair_partition,
	validate_structure,
)


def _split(*page_lists, total=None):
	groups = [make_group(i, pages) for i, pages in enumerate(page_lists, start=1)]
	return SplitResult(total_invoices=len(groups) if total is None else total, page_groups=groups)


def _types(errors):
	return [(e.type, e.severity) for e in errors]


class TestValidateStructure:

	def test_valid_partition(self):
		assert validate_structure(_split([3, 4], [5]), {3, 4, 5}) == []

	def test_duplicate_pages(self):
		errors = validate_structure(_split([3, 4], [4, 5]), {3, 4, 5})

		assert _types(errors) == [(ValidationErrorType.DUPLICATE_PAGE, Severity.ERROR)]
		assert errors[0].affected_pages == [4]

	def test_count_mismatch(self):
		errors = validate_structure(_split([3], [4], total=3), {3, 4})

		assert _types(errors) == [(ValidationErrorType.COUNT_MISMATCH, Severity.ERROR)]

	def test_empty_group(self):
		errors = validate_structure(_split([3], []), {3})

		assert _types(errors) == [(ValidationErrorType.EMPTY_GROUP, Severity.ERROR)]
		assert errors[0].affected_groups == [2]

	def test_missing_pages(self):
		errors = validate_structure(_split([3]), {3, 4, 5})

		assert _types(errors) == [(ValidationErrorType.MISSING_PAGE, Severity.ERROR)]
		assert errors[0].affected_pages == [4, 5]

	def test_non_consecutive_is_a_warning(self):
		errors = validate_structure(_split([3, 5], [4]), {3, 4, 5})

		assert _types(errors) == [(ValidationErrorType.NON_CONSECUTIVE, Severity.WARNING)]
		assert count_errors(errors) == 0

	def test_leading_pages_are_flagged_as_warning(self):
		errors = validate_structure(_split([1, 2], [3]), {1, 2, 3})

		assert _types(errors) == [(ValidationErrorType.MISSING_PAGE, Severity.WARNING)]
		assert errors[0].affected_pages == [1, 2]
		assert count_errors(errors) == 0


class TestRepairPartition:

	def test_duplicates_and_unknown_pages_are_dropped(self):
		groups = [make_group(1, [3, 4]), make_group(2, [4, 5, 9])]

		repaired = repair_partition(groups, {3, 4, 5})

		assert [g.pages for g in repaired] == [[3, 4], [5]]

	def test_missing_page_joins_previous_page_group(self):
		groups = [make_group(1, [3]), make_group(2, [6])]

		repaired = repair_partition(groups, {3, 4, 5, 6})

		assert [g.pages for g in repaired] == [[3, 4, 5], [6]]

	def test_missing_page_joins_next_page_group(self):
		groups = [make_group(1, [4, 5])]

		repaired = repair_partition(groups, {3, 4, 5})

		assert [g.pages for g in repaired] == [[3, 4, 5]]

	def test_isolated_missing_page_gets_its_own_group(self):
		groups = [make_group(1, [3])]

		repaired = repair_partition(groups, {3, 5, 7})

		assert [g.pages for g in repaired] == [[3], [5], [7]]
		assert [g.invoice_number for g in repaired] == [1, 2, 3]
		assert repaired[1].confidence == 0.5

	def test_invoice_numbers_are_kept(self):
		groups = [make_group(4, [5]), make_group(2, [3])]

		repaired = repair_partition(groups, {3, 5})

		assert [(g.invoice_number, g.pages) for g in repaired] == [(2, [3]), (4, [5])]

	def test_input_is_not_modified(self):
		groups = [make_group(1, [3, 3, 9])]

		repair_partition(groups, {3})

		assert groups[0].pages == [3, 3, 9]


class TestFixStructuralIssues:

	def test_result_is_valid(self):
		split = _split([3, 4], [4], [], [9], total=7)

		fixed = fix_structural_issues(split, {3, 4, 5, 6})

		assert count_errors(validate_structure(fixed, {3, 4, 5, 6})) == 0
		assert fixed.total_invoices == len(fixed.page_groups)
		assert sorted(fixed.all_pages()) == [3, 4, 5, 6]

	def test_idempotent(self):
		split = _split([5, 3], [3, 6], [], total=1)
		expected = {3, 4, 5, 6, 7}

		once = fix_structural_issues(split, expected)
		twice = fix_structural_issues(once, expected)

		assert twice.to_dict() == once.to_dict()

	def test_finalize_renumbers_and_drops_empty_groups(self):
		result = finalize_groups([make_group(5, [3]), make_group(6, []), make_group(8, [4])])

		assert result.total_invoices == 2
		assert [g.invoice_number for g in result.page_groups] == [1, 2]


class TestApplySemanticFixes:

	def test_split_same_transaction_merges_groups(self):
		groups = [
			make_group(1, [3]),
			make_group(2, [4], transaction_id="INV-1"),
			make_group(3, [5]),
		]
		issue = SemanticIssue(
			type=SemanticIssueType.SPLIT_SAME_TRANSACTION,
			group_numbers=[2, 1],
			evidence="both pages show INV-1",
			suggested_fix="merge groups 1 and 2",
		)

		outcome = apply_semantic_fixes(groups, [issue])

		assert [g.pages for g in outcome.groups] == [[3, 4], [5]]
		merged = outcome.groups[0]
		assert merged.invoice_number == 1
		assert merged.transaction_id == "INV-1"
		assert merged.reasoning == "group 1 (merged: both pages show INV-1)"
		assert outcome.corrections == ["Fixed: split_same_transaction - merge groups 1 and 2"]

	def test_missing_continuation_merges_without_note(self):
		groups = [make_group(1, [3]), make_group(2, [4])]
		issue = SemanticIssue(type=SemanticIssueType.MISSING_CONTINUATION, group_numbers=[1, 2])

		outcome = apply_semantic_fixes(groups, [issue])

		assert [g.pages for g in outcome.groups] == [[3, 4]]
		assert outcome.groups[0].reasoning == "group 1"

	def test_unknown_group_numbers_are_ignored(self):
		groups = [make_group(1, [3]), make_group(2, [4])]
		issue = SemanticIssue(type=SemanticIssueType.SPLIT_SAME_TRANSACTION, group_numbers=[2, 8])

		outcome = apply_semantic_fixes(groups, [issue])

		assert [g.pages for g in outcome.groups] == [[3], [4]]
		assert outcome.corrections == []

	def test_included_container_strips_leading_pages(self):
		groups = [make_group(1, [1, 2, 3]), make_group(2, [4])]
		issue = SemanticIssue(type=SemanticIssueType.INCLUDED_CONTAINER, group_numbers=[1])

		outcome = apply_semantic_fixes(groups, [issue])

		assert [g.pages for g in outcome.groups] == [[3], [4]]
		assert outcome.removed_pages == [1, 2]
		assert len(outcome.corrections) == 1

	def test_merged_different_transactions_is_only_reported(self):
		groups = [make_group(1, [3, 4])]
		issue = SemanticIssue(
			type=SemanticIssueType.MERGED_DIFFERENT_TRANSACTIONS,
			group_numbers=[1],
			evidence="two order numbers",
		)

		outcome = apply_semantic_fixes(groups, [issue])

		assert [g.pages for g in outcome.groups] == [[3, 4]]
		assert outcome.corrections == []

	def test_input_groups_are_not_modified(self):
		groups = [make_group(1, [3]), make_group(2, [4])]
		issue = SemanticIssue(type=SemanticIssueType.MISSING_CONTINUATION, group_numbers=[1, 2])

		apply_semantic_fixes(groups, [issue])

		assert [g.pages for g in groups] == [[3], [4]]


class TestCalculateConfidence:

	def _error(self, severity):
		return ValidationError(type=ValidationErrorType.MISSING_PAGE, severity=severity, message="x")

	def _issue(self):
		return SemanticIssue(type=SemanticIssueType.MISSING_CONTINUATION)

	def test_mean_group_confidence(self):
		split = SplitResult.from_groups([make_group(1, [1], 0.9), make_group(2, [2], 0.7)])
		assert calculate_confidence(split, [], []) == pytest.approx(0.8)

	def test_penalties(self):
		split = SplitResult.from_groups([make_group(1, [1], 0.9), make_group(2, [2], 0.7)])
		errors = [self._error(Severity.ERROR), self._error(Severity.WARNING)]

		assert calculate_confidence(split, errors, [self._issue()]) == pytest.approx(0.45)

	def test_clamped_at_zero(self):
		split = SplitResult.from_groups([make_group(1, [1], 0.5)])
		errors = [self._error(Severity.ERROR)] * 5

		assert calculate_confidence(split, errors, []) == 0.0

	def test_empty_split(self):
		assert calculate_confidence(SplitResult(), [], []) == 0.0
