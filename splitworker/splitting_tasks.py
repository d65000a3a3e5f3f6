# (c) Copyright Datacraft, 2026
"""Celery tasks for multi-document splitting."""
import asyncio
import logging
import logging.config
import time

from celery import shared_task, signals

from splitworker import config
from splitworker import constants as const
from splitworker.llm.client import OllamaClient
from splitworker.splitting import (
	Page,
	SplitInputError,
	UniversalDocumentSplitter,
	UniversalSplitResult,
)
from splitworker.splitting.oracle import OfflineOracle, SplitterOracle

logger = logging.getLogger(__name__)
settings = config.get_settings()


@signals.setup_logging.connect
def setup_logging(**kwargs):
	"""Apply the configured logging file, else keep celery's default setup."""
	if settings.splitworker__main__logging_cfg:
		logging.config.fileConfig(
			settings.splitworker__main__logging_cfg,
			disable_existing_loggers=False,
		)
	else:
		logging.basicConfig(level=logging.INFO)


async def _run_split(pages: list[Page], file_size_mb: float | None) -> UniversalSplitResult:
	async with OllamaClient(
		base_url=settings.ollama_base_url,
		model=settings.ollama_split_model,
		timeout=settings.ollama_timeout,
	) as client:
		if await client.is_available():
			oracle = SplitterOracle(
				client,
				temperature=settings.ollama_temperature,
				classify_chars=settings.split_classify_chars,
				boundary_chars=settings.split_boundary_chars,
				review_chars=settings.split_review_chars,
			)
		else:
			logger.warning(
				f"Model {settings.ollama_split_model} not available at "
				f"{settings.ollama_base_url}, splitting with fallbacks only"
			)
			oracle = OfflineOracle()
		splitter = UniversalDocumentSplitter(oracle=oracle)
		return await splitter.split_document(pages, file_size_mb=file_size_mb)


@shared_task(name=const.SPLIT_DOCUMENT)
def split_document(
	job_id: str,
	pages: list[dict],
	file_size_mb: float | None = None,
) -> dict:
	"""
	Split an uploaded file's pages into individual receipts/invoices.

	Args:
		job_id: Identifier of the splitting job, echoed back
		pages: Page dicts with 'page_number' and 'text' keys, in order
		file_size_mb: Size of the uploaded file, checked against the limit

	Returns:
		Dict with job status and the serialized split result
	"""
	start_time = time.time()
	logger.info(f"Starting split job {job_id} with {len(pages)} pages")

	result = {
		"job_id": job_id,
		"status": "completed",
		"result": None,
		"error": None,
	}

	try:
		page_objects = [Page.from_dict(p) for p in pages]
	except (KeyError, TypeError, ValueError) as e:
		logger.error(f"Split job {job_id} rejected: malformed page payload: {e}")
		result["status"] = "rejected"
		result["error"] = f"Malformed page payload: {e}"
		return result

	loop = asyncio.new_event_loop()
	asyncio.set_event_loop(loop)
	try:
		split_result = loop.run_until_complete(_run_split(page_objects, file_size_mb))
		result["result"] = split_result.to_dict()
		logger.info(
			f"Split job {job_id} completed in {(time.time() - start_time) * 1000:.0f}ms: "
			f"{split_result.total_invoices} documents"
		)
	except SplitInputError as e:
		logger.error(f"Split job {job_id} rejected: {e}")
		result["status"] = "rejected"
		result["error"] = str(e)
	finally:
		loop.close()

	return result
