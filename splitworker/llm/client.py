import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)


@dataclass
class OllamaLLMResult:
	"""Result from an Ollama chat completion."""
	text: str
	model: str
	prompt_eval_count: int = 0
	eval_count: int = 0
	total_duration_ms: float = 0
	load_duration_ms: float = 0
	prompt_eval_duration_ms: float = 0
	eval_duration_ms: float = 0
	metadata: dict[str, Any] = field(default_factory=dict)


class OllamaResponseError(ValueError):
	"""The server answered, but not with a chat completion body."""

	def __init__(self, message: str, body: str = ''):
		super().__init__(message)
		self.body = body


class OllamaClient:
	"""Async HTTP client for the Ollama chat API."""

	DEFAULT_TIMEOUT = 120.0
	DEFAULT_MODEL = 'qwen2.5:7b-instruct'
	CONNECT_TIMEOUT = 10.0

	def __init__(
		self,
		base_url: str = 'http://localhost:11434',
		model: str | None = None,
		timeout: float = DEFAULT_TIMEOUT,
		transport: httpx.AsyncBaseTransport | None = None
	):
		self.base_url = base_url.rstrip('/')
		self.model = model or self.DEFAULT_MODEL
		self.timeout = timeout
		# The read timeout bounds idle time between received bytes
		self._client = httpx.AsyncClient(
			timeout=httpx.Timeout(timeout, connect=self.CONNECT_TIMEOUT),
			transport=transport
		)

	async def close(self):
		"""Close the HTTP client."""
		await self._client.aclose()

	async def __aenter__(self):
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb):
		await self.close()

	async def is_available(self) -> bool:
		"""Check if Ollama server is running and model is available."""
		try:
			response = await self._client.get(f"{self.base_url}/api/tags")
			if response.status_code != 200:
				return False

			data = response.json()
			models = (data.get('models') or []) if isinstance(data, dict) else []
			model_names = [
				m.get('name', '').split(':')[0] for m in models if isinstance(m, dict)
			]
			return self.model.split(':')[0] in model_names
		except (httpx.HTTPError, ValueError) as e:
			logger.debug(f"Ollama availability check failed: {e}")
			return False

	async def chat(
		self,
		messages: list[dict[str, str]],
		model: str | None = None,
		temperature: float = 0.1,
		max_tokens: int = 4096,
		json_mode: bool = False,
		**kwargs
	) -> OllamaLLMResult:
		"""
		Run a chat completion.

		Args:
			messages: Chat messages as {'role': ..., 'content': ...} dicts
			model: Model to use (defaults to instance model)
			temperature: Generation temperature
			max_tokens: Maximum tokens to generate
			json_mode: Ask the server to constrain output to JSON
			**kwargs: Additional generation parameters

		Returns:
			OllamaLLMResult with generated text and metrics

		Raises:
			httpx.HTTPError: On transport failures, timeouts and error statuses
			OllamaResponseError: On a reply that is not a chat completion
		"""
		start_time = time.time()

		payload: dict[str, Any] = {
			'model': model or self.model,
			'messages': messages,
			'stream': False,
			'options': {
				'temperature': temperature,
				'num_predict': max_tokens,
				**kwargs
			}
		}
		if json_mode:
			payload['format'] = 'json'

		try:
			response = await self._client.post(
				f"{self.base_url}/api/chat",
				json=payload
			)
			response.raise_for_status()
			data = response.json()
		except httpx.HTTPStatusError as e:
			logger.error(f"Ollama API error: {e.response.status_code} - {e.response.text}")
			raise
		except httpx.HTTPError as e:
			logger.error(f"Ollama request failed: {e!r}")
			raise
		except ValueError as e:
			logger.error(f"Ollama returned a non-JSON body: {response.text[:200]!r}")
			raise OllamaResponseError(f"Response is not JSON: {e}", body=response.text) from e

		message = data.get('message') if isinstance(data, dict) else None
		if not isinstance(message, dict):
			logger.error(f"Ollama response has no chat message: {response.text[:200]!r}")
			raise OllamaResponseError("Response has no chat message", body=response.text)

		total_duration = (time.time() - start_time) * 1000

		return OllamaLLMResult(
			text=message.get('content') or '',
			model=data.get('model', model or self.model),
			prompt_eval_count=data.get('prompt_eval_count', 0),
			eval_count=data.get('eval_count', 0),
			total_duration_ms=total_duration,
			load_duration_ms=data.get('load_duration', 0) / 1_000_000,
			prompt_eval_duration_ms=data.get('prompt_eval_duration', 0) / 1_000_000,
			eval_duration_ms=data.get('eval_duration', 0) / 1_000_000,
			metadata={'done': data.get('done', False)}
		)
