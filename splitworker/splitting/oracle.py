# (c) Copyright Datacraft, 2026
"""Oracle client adapter - the language model as a typed capability.

Every call returns a tagged result: ``Ok`` with the normalised value,
``Malformed`` when the model answered but nothing usable could be
recovered, or ``Unavailable`` when the model could not be reached.
Callers map the last two onto their own fallback values.
"""
import logging
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

import httpx

from ..llm.client import OllamaClient, OllamaResponseError
from ..llm.repair import parse_json_array, parse_json_object
from .models import (
	BoundaryDecision,
	BoundaryVerification,
	DocumentType,
	Page,
	PageClassification,
	PageGroup,
	SemanticIssue,
	SemanticIssueType,
	SplitResult,
)
from . import prompts

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class Ok(Generic[T]):
	value: T
	raw: str = ''


@dataclass
class Malformed:
	raw: str
	reason: str = ''


@dataclass
class Unavailable:
	reason: str


OracleResult = Ok[T] | Malformed | Unavailable


class Oracle(Protocol):
	"""Capabilities the splitting core needs from a language model."""

	async def classify(self, pages: list[Page]) -> OracleResult[list[PageClassification]]:
		...

	async def verify_boundary(self, page_a: Page, page_b: Page) -> OracleResult[BoundaryVerification]:
		...

	async def review_split(
		self,
		candidate: SplitResult,
		pages: list[Page],
	) -> OracleResult[list[SemanticIssue]]:
		...

	async def split_once(self, pages: list[Page]) -> OracleResult[SplitResult]:
		...


_NULL_STRINGS = frozenset({'', 'null', 'none', 'n/a', 'unknown'})


def _field(item: dict[str, Any], *names: str, default: Any = None) -> Any:
	for name in names:
		if name in item:
			return item[name]
	return default


def _as_optional_str(value: Any) -> str | None:
	if value is None:
		return None
	text = str(value).strip()
	if text.lower() in _NULL_STRINGS:
		return None
	return text


def _as_bool(value: Any) -> bool:
	if isinstance(value, str):
		return value.strip().lower() in ('true', 'yes', '1')
	return bool(value)


def _as_confidence(value: Any, default: float = 0.5) -> float:
	try:
		confidence = float(value)
	except (TypeError, ValueError):
		return default
	return max(0.0, min(1.0, confidence))


def _as_int(value: Any) -> int | None:
	try:
		return int(value)
	except (TypeError, ValueError):
		return None


def normalize_classifications(
	items: list[Any],
	pages: list[Page],
) -> list[PageClassification]:
	"""Map raw model objects onto the batch, one classification per page in page order.

	Objects are matched by page number first and by position second.
	Pages with no usable object get the default classification.
	"""
	by_number: dict[int, dict[str, Any]] = {}
	positional: list[dict[str, Any] | None] = []
	for item in items:
		if not isinstance(item, dict):
			positional.append(None)
			continue
		number = _as_int(_field(item, 'pageNumber', 'page_number', 'page'))
		if number is not None and number not in by_number:
			by_number[number] = item
		positional.append(item)

	wanted = {p.page_number for p in pages}
	classifications = []
	for index, page in enumerate(pages):
		item = by_number.get(page.page_number)
		if item is None and index < len(positional):
			candidate = positional[index]
			candidate_number = _as_int(_field(candidate or {}, 'pageNumber', 'page_number', 'page'))
			# Positional match only when the object does not claim another batch page
			if candidate is not None and candidate_number not in wanted:
				item = candidate
		if item is None:
			classifications.append(PageClassification.default(page.page_number))
			continue

		classifications.append(PageClassification(
			page_number=page.page_number,
			document_type=DocumentType.coerce(_field(item, 'documentType', 'document_type', 'type')),
			transaction_id=_as_optional_str(_field(item, 'transactionId', 'transaction_id')),
			merchant_name=_as_optional_str(_field(item, 'merchantName', 'merchant_name')),
			has_total=_as_bool(_field(item, 'hasTotal', 'has_total', default=False)),
			is_continuation=_as_bool(_field(item, 'isContinuation', 'is_continuation', default=False)),
			confidence=_as_confidence(_field(item, 'confidence')),
		))
	return classifications


def normalize_split(data: dict[str, Any], pages: list[Page]) -> SplitResult:
	"""Build a SplitResult from a raw model object.

	Groups are renumbered in the order given and page numbers outside
	the input are dropped. totalInvoices is kept as reported so the
	structural validator can compare it with the group count.
	"""
	known = {p.page_number for p in pages}
	raw_groups = _field(data, 'pageGroups', 'page_groups', 'groups', default=[]) or []
	if not isinstance(raw_groups, list):
		raise ValueError("pageGroups is not a list")

	groups = []
	for raw in raw_groups:
		if not isinstance(raw, dict):
			continue
		raw_pages = _field(raw, 'pages', default=[]) or []
		if not isinstance(raw_pages, list):
			raw_pages = [raw_pages]
		page_numbers = [n for n in (_as_int(p) for p in raw_pages) if n in known]
		groups.append(PageGroup(
			invoice_number=len(groups) + 1,
			pages=page_numbers,
			confidence=_as_confidence(_field(raw, 'confidence')),
			reasoning=str(_field(raw, 'reasoning', default='') or ''),
			transaction_id=_as_optional_str(_field(raw, 'transactionId', 'transaction_id')),
		))

	total = _as_int(_field(data, 'totalInvoices', 'total_invoices'))
	return SplitResult(
		total_invoices=total if total is not None else len(groups),
		page_groups=groups,
	)


def normalize_issues(items: list[Any]) -> list[SemanticIssue]:
	"""Keep only issues with a recognised type."""
	issues = []
	for item in items:
		if not isinstance(item, dict):
			continue
		try:
			issue_type = SemanticIssueType(str(_field(item, 'type', default='')).strip().lower())
		except ValueError:
			logger.debug(f"Ignoring semantic issue with unknown type: {item!r}")
			continue
		raw_numbers = _field(item, 'groupNumbers', 'group_numbers', default=[]) or []
		if not isinstance(raw_numbers, list):
			raw_numbers = [raw_numbers]
		issues.append(SemanticIssue(
			type=issue_type,
			group_numbers=[n for n in (_as_int(g) for g in raw_numbers) if n is not None],
			evidence=str(_field(item, 'evidence', default='') or ''),
			suggested_fix=str(_field(item, 'suggestedFix', 'suggested_fix', default='') or ''),
		))
	return issues


class SplitterOracle:
	"""Oracle backed by an Ollama chat model.

	Example usage:
		async with OllamaClient(base_url=url, model=model) as client:
			oracle = SplitterOracle(client)
			result = await oracle.classify(pages)
			if isinstance(result, Ok):
				...
	"""

	def __init__(
		self,
		client: OllamaClient,
		temperature: float = 0.1,
		classify_chars: int = 1500,
		boundary_chars: int = 1000,
		review_chars: int = 800,
	):
		self.client = client
		self.temperature = temperature
		self.classify_chars = classify_chars
		self.boundary_chars = boundary_chars
		self.review_chars = review_chars

	async def _ask(self, messages: list[dict[str, str]], task: str) -> str | Unavailable | Malformed:
		try:
			result = await self.client.chat(messages, temperature=self.temperature)
		except httpx.HTTPError as e:
			logger.warning(f"LLM unavailable for {task}: {e!r}")
			return Unavailable(reason=f"{type(e).__name__}: {e}")
		except OllamaResponseError as e:
			logger.warning(f"LLM reply unusable for {task}: {e}")
			return Malformed(raw=e.body, reason=str(e))
		return result.text

	async def classify(self, pages: list[Page]) -> OracleResult[list[PageClassification]]:
		messages = prompts.get_classification_messages(pages, self.classify_chars)
		text = await self._ask(messages, 'classification')
		if isinstance(text, (Unavailable, Malformed)):
			return text
		try:
			items = parse_json_array(text)
		except ValueError as e:
			return Malformed(raw=text, reason=str(e))
		return Ok(normalize_classifications(items, pages), raw=text)

	async def verify_boundary(self, page_a: Page, page_b: Page) -> OracleResult[BoundaryVerification]:
		messages = prompts.get_boundary_messages(page_a, page_b, self.boundary_chars)
		text = await self._ask(messages, 'boundary verification')
		if isinstance(text, (Unavailable, Malformed)):
			return text
		try:
			data = parse_json_object(text)
			decision = BoundaryDecision(str(data.get('decision', '')).strip().lower())
		except ValueError as e:
			return Malformed(raw=text, reason=str(e))
		return Ok(
			BoundaryVerification(
				page_a=page_a.page_number,
				page_b=page_b.page_number,
				decision=decision,
				reason=str(data.get('reason') or ''),
				confidence=_as_confidence(data.get('confidence')),
			),
			raw=text,
		)

	async def review_split(
		self,
		candidate: SplitResult,
		pages: list[Page],
	) -> OracleResult[list[SemanticIssue]]:
		summary = [
			{
				'group': g.invoice_number,
				'pages': g.pages,
				'transactionId': g.transaction_id or 'Not extracted',
				'reasoning': g.reasoning,
			}
			for g in candidate.page_groups
		]
		messages = prompts.get_review_messages(summary, pages, self.review_chars)
		text = await self._ask(messages, 'split review')
		if isinstance(text, (Unavailable, Malformed)):
			return text
		try:
			items = parse_json_array(text)
		except ValueError as e:
			return Malformed(raw=text, reason=str(e))
		return Ok(normalize_issues(items), raw=text)

	async def split_once(self, pages: list[Page]) -> OracleResult[SplitResult]:
		messages = prompts.get_split_messages(pages)
		text = await self._ask(messages, 'split')
		if isinstance(text, (Unavailable, Malformed)):
			return text
		try:
			split = normalize_split(parse_json_object(text), pages)
		except ValueError as e:
			return Malformed(raw=text, reason=str(e))
		return Ok(split, raw=text)


class OfflineOracle:
	"""Oracle used when the model server is known to be down.

	Every call answers ``Unavailable`` at once, so the pipeline runs on
	its fallback values without waiting for request timeouts.
	"""

	def __init__(self, reason: str = 'LLM server unavailable'):
		self.reason = reason

	async def classify(self, pages: list[Page]) -> OracleResult[list[PageClassification]]:
		return Unavailable(reason=self.reason)

	async def verify_boundary(self, page_a: Page, page_b: Page) -> OracleResult[BoundaryVerification]:
		return Unavailable(reason=self.reason)

	async def review_split(
		self,
		candidate: SplitResult,
		pages: list[Page],
	) -> OracleResult[list[SemanticIssue]]:
		return Unavailable(reason=self.reason)

	async def split_once(self, pages: list[Page]) -> OracleResult[SplitResult]:
		return Unavailable(reason=self.reason)
