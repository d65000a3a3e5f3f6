# (c) Copyright Datacraft, 2026
"""Structural validation and deterministic correction of candidate splits."""
import logging
from collections.abc import Collection
from dataclasses import dataclass, field

from .. import constants as const
from .models import (
	PageGroup,
	SemanticIssue,
	SemanticIssueType,
	Severity,
	SplitResult,
	ValidationError,
	ValidationErrorType,
)

logger = logging.getLogger(__name__)

ERROR_PENALTY = 0.2
ISSUE_PENALTY = 0.15


def _copy_group(group: PageGroup) -> PageGroup:
	return PageGroup(
		invoice_number=group.invoice_number,
		pages=list(group.pages),
		confidence=group.confidence,
		reasoning=group.reasoning,
		transaction_id=group.transaction_id,
	)


def validate_structure(split: SplitResult, expected_pages: Collection[int]) -> list[ValidationError]:
	"""Check a candidate split for partition problems. No model involved."""
	errors: list[ValidationError] = []

	seen: set[int] = set()
	duplicates: list[int] = []
	for page in split.all_pages():
		if page in seen and page not in duplicates:
			duplicates.append(page)
		seen.add(page)
	if duplicates:
		errors.append(ValidationError(
			type=ValidationErrorType.DUPLICATE_PAGE,
			severity=Severity.ERROR,
			message=f"Pages appear in multiple groups: {', '.join(map(str, duplicates))}",
			affected_pages=duplicates,
		))

	if split.total_invoices != len(split.page_groups):
		errors.append(ValidationError(
			type=ValidationErrorType.COUNT_MISMATCH,
			severity=Severity.ERROR,
			message=(
				f"total_invoices ({split.total_invoices}) != "
				f"page_groups count ({len(split.page_groups)})"
			),
		))

	empty = [i for i, g in enumerate(split.page_groups, start=1) if not g.pages]
	if empty:
		errors.append(ValidationError(
			type=ValidationErrorType.EMPTY_GROUP,
			severity=Severity.ERROR,
			message=f"Empty groups: {', '.join(map(str, empty))}",
			affected_groups=empty,
		))

	missing = sorted(set(expected_pages) - seen)
	if missing:
		errors.append(ValidationError(
			type=ValidationErrorType.MISSING_PAGE,
			severity=Severity.ERROR,
			message=f"Pages not assigned to any group: {', '.join(map(str, missing))}",
			affected_pages=missing,
		))

	for i, group in enumerate(split.page_groups, start=1):
		pages = sorted(group.pages)
		if any(b - a > 1 for a, b in zip(pages, pages[1:])):
			errors.append(ValidationError(
				type=ValidationErrorType.NON_CONSECUTIVE,
				severity=Severity.WARNING,
				message=f"Group {i} has non-consecutive pages: {', '.join(map(str, pages))}",
				affected_groups=[i],
				affected_pages=pages,
			))

	leading = [p for p in split.all_pages() if p in const.LEADING_CONTAINER_PAGES]
	if leading:
		errors.append(ValidationError(
			type=ValidationErrorType.MISSING_PAGE,
			severity=Severity.WARNING,
			message=f"Possible container pages included: {', '.join(map(str, leading))}",
			affected_pages=leading,
		))

	return errors


def count_errors(errors: list[ValidationError]) -> int:
	return sum(1 for e in errors if e.severity == Severity.ERROR)


def repair_partition(groups: list[PageGroup], expected_pages: Collection[int]) -> list[PageGroup]:
	"""Make the groups an exact partition of expected_pages.

	Duplicates keep their first occurrence, unknown pages are dropped and
	missing pages join the group holding the previous page, else the
	next page, else a new group of their own. Invoice numbers are left
	untouched so issues raised against them can still be resolved.
	"""
	expected = set(expected_pages)
	repaired = [_copy_group(g) for g in groups]

	seen: set[int] = set()
	for group in repaired:
		kept = []
		for page in group.pages:
			if page in seen or page not in expected:
				continue
			seen.add(page)
			kept.append(page)
		group.pages = kept

	next_number = max((g.invoice_number for g in repaired), default=0) + 1
	for page in sorted(expected - seen):
		owner = _group_holding(repaired, page - 1) or _group_holding(repaired, page + 1)
		if owner is not None:
			owner.pages.append(page)
			owner.pages.sort()
		else:
			repaired.append(PageGroup(
				invoice_number=next_number,
				pages=[page],
				confidence=const.FALLBACK_CONFIDENCE,
				reasoning=f"Page {page} was not assigned to any group",
			))
			next_number += 1
		seen.add(page)

	repaired.sort(key=lambda g: min(g.pages) if g.pages else float('inf'))
	return repaired


def _group_holding(groups: list[PageGroup], page: int) -> PageGroup | None:
	return next((g for g in groups if page in g.pages), None)


def finalize_groups(groups: list[PageGroup]) -> SplitResult:
	"""Drop empty groups, renumber from 1 and recompute the invoice count."""
	kept = [g for g in groups if g.pages]
	for index, group in enumerate(kept, start=1):
		group.invoice_number = index
	return SplitResult.from_groups(kept)


def fix_structural_issues(split: SplitResult, expected_pages: Collection[int]) -> SplitResult:
	"""Apply every deterministic structural fix and return a new split."""
	return finalize_groups(repair_partition(split.page_groups, expected_pages))


@dataclass
class SemanticFixOutcome:
	groups: list[PageGroup]
	corrections: list[str] = field(default_factory=list)
	removed_pages: list[int] = field(default_factory=list)


def _merge_groups(groups: list[PageGroup], numbers: list[int], note: str | None) -> bool:
	targets = sorted({n for n in numbers if any(g.invoice_number == n for g in groups)})
	if len(targets) < 2:
		return False

	keep = next(g for g in groups if g.invoice_number == targets[0])
	for number in targets[1:]:
		other = next(g for g in groups if g.invoice_number == number)
		keep.pages.extend(other.pages)
		if keep.transaction_id is None:
			keep.transaction_id = other.transaction_id
		groups.remove(other)
	keep.pages.sort()
	if note:
		keep.reasoning += f" (merged: {note})"
	return True


def apply_semantic_fixes(groups: list[PageGroup], issues: list[SemanticIssue]) -> SemanticFixOutcome:
	"""Best-effort fixes for reviewer issues, addressed by invoice number."""
	outcome = SemanticFixOutcome(groups=[_copy_group(g) for g in groups])

	for issue in issues:
		if issue.type in (
			SemanticIssueType.SPLIT_SAME_TRANSACTION,
			SemanticIssueType.MISSING_CONTINUATION,
		):
			note = issue.evidence if issue.type == SemanticIssueType.SPLIT_SAME_TRANSACTION else None
			if _merge_groups(outcome.groups, issue.group_numbers, note):
				outcome.corrections.append(f"Fixed: {issue.type.value} - {issue.suggested_fix}")
			else:
				logger.warning(
					f"Cannot merge groups {issue.group_numbers} for {issue.type.value}"
				)

		elif issue.type == SemanticIssueType.INCLUDED_CONTAINER:
			for group in outcome.groups:
				stripped = [p for p in group.pages if p in const.LEADING_CONTAINER_PAGES]
				group.pages = [p for p in group.pages if p not in const.LEADING_CONTAINER_PAGES]
				outcome.removed_pages.extend(stripped)
			outcome.corrections.append(f"Fixed: {issue.type.value} - {issue.suggested_fix}")

		elif issue.type == SemanticIssueType.MERGED_DIFFERENT_TRANSACTIONS:
			logger.warning(f"Need to split merged transactions: {issue.evidence}")

	outcome.removed_pages = sorted(set(outcome.removed_pages))
	return outcome


def calculate_confidence(
	split: SplitResult,
	structural_errors: list[ValidationError],
	semantic_issues: list[SemanticIssue],
) -> float:
	"""Mean group confidence, penalised per error and per semantic issue."""
	if not split.page_groups:
		return 0.0
	confidence = sum(g.confidence for g in split.page_groups) / len(split.page_groups)
	confidence -= count_errors(structural_errors) * ERROR_PENALTY
	confidence -= len(semantic_issues) * ISSUE_PENALTY
	return max(0.0, min(1.0, confidence))
