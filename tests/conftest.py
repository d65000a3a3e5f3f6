"""Shared fixtures for splitworker tests."""

from unittest.mock import AsyncMock

import pytest

from helpers import make_pages
from splitworker.splitting.models import PageClassification, SplitResult
from splitworker.splitting.oracle import Ok, SplitterOracle


@pytest.fixture
def oracle():
	"""Oracle mock answering every call with a neutral result."""
	mock = AsyncMock(spec=SplitterOracle)

	async def classify(pages):
		return Ok([PageClassification.default(p.page_number) for p in pages])

	mock.classify.side_effect = classify
	mock.review_split.return_value = Ok([])
	mock.split_once.return_value = Ok(SplitResult())
	return mock


@pytest.fixture
def receipt_pages():
	"""Four content pages: two two-page invoices."""
	return make_pages(
		"ACME Hotel\nInvoice #INV-001\nRoom charges 2 nights",
		"ACME Hotel\nInvoice #INV-001\nTotal due: 240.00 EUR",
		"City Taxi\nReceipt #R-77\nFare 18.00",
		"City Taxi\nReceipt #R-77\nTotal 18.00 EUR",
	)
