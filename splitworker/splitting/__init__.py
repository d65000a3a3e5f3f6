# (c) Copyright Datacraft, 2026
"""Multi-document splitting module.

Finds the individual receipts/invoices inside one multi-page upload.
"""
from .models import (
	DocumentType,
	Page,
	PageClassification,
	PageGroup,
	SplitResult,
	UniversalSplitResult,
)
from .splitter import SplitInputError, UniversalDocumentSplitter

__all__ = [
	'UniversalDocumentSplitter',
	'SplitInputError',
	'DocumentType',
	'Page',
	'PageClassification',
	'PageGroup',
	'SplitResult',
	'UniversalSplitResult',
]
