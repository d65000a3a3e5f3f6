"""Builders shared by the test modules."""

from splitworker.splitting.models import DocumentType, Page, PageClassification, PageGroup


def make_pages(*texts):
	"""Build 1-indexed pages from texts."""
	return [Page(page_number=i, text=text) for i, text in enumerate(texts, start=1)]


def make_classification(page_number, **kwargs):
	kwargs.setdefault("confidence", 0.9)
	if isinstance(kwargs.get("document_type"), str):
		kwargs["document_type"] = DocumentType(kwargs["document_type"])
	return PageClassification(page_number=page_number, **kwargs)


def make_group(invoice_number, pages, confidence=0.9, transaction_id=None):
	return PageGroup(
		invoice_number=invoice_number,
		pages=list(pages),
		confidence=confidence,
		reasoning=f"group {invoice_number}",
		transaction_id=transaction_id,
	)
