from .client import OllamaClient, OllamaLLMResult, OllamaResponseError

__all__ = [
	'OllamaClient',
	'OllamaLLMResult',
	'OllamaResponseError',
]
