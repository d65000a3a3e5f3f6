# (c) Copyright Datacraft, 2026
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
	splitworker__main__logging_cfg: Path | None = None

	# Ollama/LLM Configuration
	ollama_base_url: str = "http://localhost:11434"
	ollama_split_model: str = "qwen2.5:7b-instruct"
	ollama_timeout: float = 120.0
	ollama_temperature: float = 0.1

	# Input limits
	split_max_pages: int = 20
	split_max_file_size_mb: float = 30.0

	# Splitting Configuration
	split_classification_batch_size: int = 5
	split_max_iterations: int = 3
	split_merge_threshold: float = 0.7
	split_arbiter_margin: float = 0.1

	# Prompt truncation (characters of page text sent to the model)
	split_classify_chars: int = 1500
	split_boundary_chars: int = 1000
	split_review_chars: int = 800


@lru_cache()
def get_settings():
	return Settings()
