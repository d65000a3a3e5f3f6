# (c) Copyright Datacraft, 2026
"""Repair chain for JSON returned by language models.

Each stage is a pure ``str -> str`` transform. ``parse_json_array`` and
``parse_json_object`` run the stages in order and return the first
candidate that decodes.
"""
import json
import logging
import re
from typing import Any, Callable

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r'```(?:json|JSON)?\s*([\s\S]*?)```')
_TRAILING_COMMA_RE = re.compile(r',\s*([\]}])')
# Flat objects only; nested structures are out of reach for a regex
_OBJECT_FRAGMENT_RE = re.compile(r'\{[^{}]*\}')

_QUOTE_MAP = str.maketrans({
	'“': '"',
	'”': '"',
	'„': '"',
	'‘': "'",
	'’': "'",
})


def strip_code_fences(text: str) -> str:
	"""Return the body of the first markdown code fence, or the text itself."""
	match = _FENCE_RE.search(text)
	if match:
		return match.group(1).strip()
	return text.replace('```', '').strip()


def extract_json_block(text: str, opening: str = '[') -> str:
	"""Cut the text down to the span between the first opening bracket and its last closer."""
	closing = ']' if opening == '[' else '}'
	start = text.find(opening)
	end = text.rfind(closing)
	if start == -1 or end == -1 or end < start:
		return text
	return text[start:end + 1]


def normalize_quotes(text: str) -> str:
	"""Replace typographic quotes with their ASCII counterparts."""
	return text.translate(_QUOTE_MAP)


def remove_trailing_commas(text: str) -> str:
	return _TRAILING_COMMA_RE.sub(r'\1', text)


def extract_object_fragments(text: str) -> str:
	"""Rebuild a JSON array from every flat object that decodes on its own."""
	fragments = []
	for match in _OBJECT_FRAGMENT_RE.finditer(text):
		candidate = remove_trailing_commas(match.group(0))
		try:
			fragments.append(json.loads(candidate))
		except json.JSONDecodeError:
			continue
	if not fragments:
		return text
	return json.dumps(fragments)


def _candidates(text: str, opening: str) -> list[str]:
	stages: list[Callable[[str], str]] = [
		strip_code_fences,
		lambda s: extract_json_block(s, opening),
		normalize_quotes,
		remove_trailing_commas,
	]
	candidates = [text.strip()]
	current = text
	for stage in stages:
		current = stage(current)
		candidates.append(current)
	if opening == '[':
		candidates.append(extract_object_fragments(current))
	return candidates


def _parse(text: str, opening: str, expected: type) -> Any:
	if text is None:
		raise ValueError("No response text to parse")

	last_error: Exception | None = None
	for candidate in _candidates(text, opening):
		if not candidate:
			continue
		try:
			value = json.loads(candidate)
		except json.JSONDecodeError as e:
			last_error = e
			continue
		if isinstance(value, expected):
			return value
		# A single object where an array was expected
		if expected is list and isinstance(value, dict):
			return [value]

	stripped = strip_code_fences(text)
	if expected is list and stripped in ('', '[]'):
		return []
	raise ValueError(f"Could not parse JSON {expected.__name__}: {last_error}")


def parse_json_array(text: str) -> list[Any]:
	"""Parse a JSON array out of a model response.

	Raises:
		ValueError: If no stage of the repair chain yields an array
	"""
	return _parse(text, '[', list)


def parse_json_object(text: str) -> dict[str, Any]:
	"""Parse a JSON object out of a model response.

	Raises:
		ValueError: If no stage of the repair chain yields an object
	"""
	return _parse(text, '{', dict)
