# (c) Copyright Datacraft, 2026
"""Data models for multi-document splitting."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DocumentType(str, Enum):
	"""Page-level document types assigned by the classifier."""
	CONTAINER = 'container'
	AIRLINE = 'airline'
	HOTEL = 'hotel'
	BUS = 'bus'
	VISA = 'visa'
	TELECOM = 'telecom'
	RECEIPT = 'receipt'
	TERMS = 'terms'
	UNKNOWN = 'unknown'

	@classmethod
	def coerce(cls, value: Any) -> 'DocumentType':
		"""Map a raw model value to a DocumentType, UNKNOWN when unrecognised."""
		if isinstance(value, cls):
			return value
		try:
			return cls(str(value).strip().lower())
		except ValueError:
			return cls.UNKNOWN


# Types that never force a document break on their own
NEUTRAL_TYPES = frozenset({DocumentType.TERMS, DocumentType.UNKNOWN})


class BoundaryDecision(str, Enum):
	SAME = 'same'
	DIFFERENT = 'different'


class Severity(str, Enum):
	ERROR = 'error'
	WARNING = 'warning'


class ValidationErrorType(str, Enum):
	DUPLICATE_PAGE = 'duplicate_page'
	NON_CONSECUTIVE = 'non_consecutive'
	COUNT_MISMATCH = 'count_mismatch'
	MISSING_PAGE = 'missing_page'
	EMPTY_GROUP = 'empty_group'


class SemanticIssueType(str, Enum):
	SPLIT_SAME_TRANSACTION = 'split_same_transaction'
	MERGED_DIFFERENT_TRANSACTIONS = 'merged_different_transactions'
	INCLUDED_CONTAINER = 'included_container'
	MISSING_CONTINUATION = 'missing_continuation'


class IterationPhase(str, Enum):
	SPLIT = 'split'
	VALIDATE = 'validate'
	REVIEW = 'review'
	CORRECT = 'correct'


class ResultSource(str, Enum):
	"""Which pipeline produced the returned split."""
	HEURISTIC = 'heuristic'
	VALIDATION_LOOP = 'validation_loop'


@dataclass(frozen=True)
class Page:
	"""One physical page of the upload (1-indexed)."""
	page_number: int
	text: str
	image: bytes | None = None

	@classmethod
	def from_dict(cls, data: dict[str, Any]) -> 'Page':
		return cls(
			page_number=int(data['page_number']),
			text=data.get('text') or '',
			image=data.get('image'),
		)


@dataclass(frozen=True)
class PageClassification:
	"""Per-page classification produced once by the classifier."""
	page_number: int
	document_type: DocumentType = DocumentType.UNKNOWN
	transaction_id: str | None = None
	merchant_name: str | None = None
	has_total: bool = False
	is_continuation: bool = False
	confidence: float = 0.5

	def __post_init__(self):
		if not 0.0 <= self.confidence <= 1.0:
			raise ValueError("Confidence must be between 0.0 and 1.0")

	@classmethod
	def default(cls, page_number: int, confidence: float = 0.5) -> 'PageClassification':
		"""Low-confidence classification used when the model gave nothing usable."""
		return cls(page_number=page_number, confidence=confidence)

	def to_dict(self) -> dict[str, Any]:
		return {
			'page_number': self.page_number,
			'document_type': self.document_type.value,
			'transaction_id': self.transaction_id,
			'merchant_name': self.merchant_name,
			'has_total': self.has_total,
			'is_continuation': self.is_continuation,
			'confidence': self.confidence,
		}


@dataclass
class PageGroup:
	"""A candidate document: an ordered list of pages."""
	invoice_number: int
	pages: list[int] = field(default_factory=list)
	confidence: float = 0.0
	reasoning: str = ''
	transaction_id: str | None = None

	@property
	def first_page(self) -> int:
		return self.pages[0]

	@property
	def last_page(self) -> int:
		return self.pages[-1]

	def to_dict(self) -> dict[str, Any]:
		return {
			'invoice_number': self.invoice_number,
			'pages': list(self.pages),
			'confidence': self.confidence,
			'reasoning': self.reasoning,
			'transaction_id': self.transaction_id,
		}


@dataclass
class SplitResult:
	"""A complete candidate segmentation."""
	total_invoices: int = 0
	page_groups: list[PageGroup] = field(default_factory=list)

	@classmethod
	def from_groups(cls, groups: list[PageGroup]) -> 'SplitResult':
		return cls(total_invoices=len(groups), page_groups=groups)

	def all_pages(self) -> list[int]:
		"""Every page reference in group order, duplicates included."""
		return [page for group in self.page_groups for page in group.pages]

	def to_dict(self) -> dict[str, Any]:
		return {
			'total_invoices': self.total_invoices,
			'page_groups': [g.to_dict() for g in self.page_groups],
		}


@dataclass
class BoundaryVerification:
	"""Verdict for one boundary between two consecutive pages."""
	page_a: int
	page_b: int
	decision: BoundaryDecision
	reason: str
	confidence: float

	def to_dict(self) -> dict[str, Any]:
		return {
			'page_a': self.page_a,
			'page_b': self.page_b,
			'decision': self.decision.value,
			'reason': self.reason,
			'confidence': self.confidence,
		}


@dataclass
class ValidationError:
	"""A structural problem with a candidate split."""
	type: ValidationErrorType
	severity: Severity
	message: str
	affected_groups: list[int] | None = None
	affected_pages: list[int] | None = None

	def to_dict(self) -> dict[str, Any]:
		return {
			'type': self.type.value,
			'severity': self.severity.value,
			'message': self.message,
			'affected_groups': self.affected_groups,
			'affected_pages': self.affected_pages,
		}


@dataclass
class SemanticIssue:
	"""A meaning-level problem reported by the reviewer."""
	type: SemanticIssueType
	group_numbers: list[int] = field(default_factory=list)
	evidence: str = ''
	suggested_fix: str = ''

	def to_dict(self) -> dict[str, Any]:
		return {
			'type': self.type.value,
			'group_numbers': list(self.group_numbers),
			'evidence': self.evidence,
			'suggested_fix': self.suggested_fix,
		}


@dataclass
class ReviewResult:
	structural_valid: bool
	semantic_valid: bool
	structural_errors: list[ValidationError] = field(default_factory=list)
	semantic_issues: list[SemanticIssue] = field(default_factory=list)
	overall_confidence: float = 0.0

	@property
	def converged(self) -> bool:
		return self.structural_valid and self.semantic_valid

	def to_dict(self) -> dict[str, Any]:
		return {
			'structural_valid': self.structural_valid,
			'semantic_valid': self.semantic_valid,
			'structural_errors': [e.to_dict() for e in self.structural_errors],
			'semantic_issues': [i.to_dict() for i in self.semantic_issues],
			'overall_confidence': self.overall_confidence,
		}


@dataclass
class AgentIteration:
	"""Audit record of one validation loop iteration."""
	iteration: int
	phase: IterationPhase
	split_result: SplitResult
	review: ReviewResult
	corrections_made: list[str] | None = None

	def to_dict(self) -> dict[str, Any]:
		return {
			'iteration': self.iteration,
			'phase': self.phase.value,
			'split_result': self.split_result.to_dict(),
			'review': self.review.to_dict(),
			'corrections_made': self.corrections_made,
		}


@dataclass
class EvaluationResult:
	"""Outcome of one run of the self-correcting validation loop.

	final_result is None when no candidate split could be obtained.
	excluded_pages lists pages the review identified as container pages
	and removed from the candidate.
	"""
	final_result: SplitResult | None
	iterations: list[AgentIteration] = field(default_factory=list)
	converged: bool = False
	excluded_pages: list[int] = field(default_factory=list)


@dataclass
class ProcessingPhase:
	phase: str
	duration_ms: float
	result: str

	def to_dict(self) -> dict[str, Any]:
		return {
			'phase': self.phase,
			'duration_ms': self.duration_ms,
			'result': self.result,
		}


@dataclass
class UniversalSplitResult:
	"""Final segmentation plus the full audit trail."""
	total_invoices: int
	page_groups: list[PageGroup]
	classifications: list[PageClassification] = field(default_factory=list)
	boundary_verifications: list[BoundaryVerification] = field(default_factory=list)
	processing_phases: list[ProcessingPhase] = field(default_factory=list)
	iterations: list[AgentIteration] = field(default_factory=list)
	container_pages: list[int] = field(default_factory=list)
	converged: bool = False
	selected: ResultSource = ResultSource.HEURISTIC
	heuristic_score: float = 0.0
	validation_loop_score: float | None = None
	processing_time_ms: float = 0.0

	@property
	def needs_review(self) -> bool:
		"""Check if any group has low confidence."""
		return any(g.confidence < 0.7 for g in self.page_groups)

	def to_dict(self) -> dict[str, Any]:
		return {
			'total_invoices': self.total_invoices,
			'page_groups': [g.to_dict() for g in self.page_groups],
			'classifications': [c.to_dict() for c in self.classifications],
			'boundary_verifications': [b.to_dict() for b in self.boundary_verifications],
			'processing_phases': [p.to_dict() for p in self.processing_phases],
			'iterations': [i.to_dict() for i in self.iterations],
			'container_pages': list(self.container_pages),
			'converged': self.converged,
			'selected': self.selected.value,
			'heuristic_score': self.heuristic_score,
			'validation_loop_score': self.validation_loop_score,
			'processing_time_ms': self.processing_time_ms,
			'needs_review': self.needs_review,
		}
