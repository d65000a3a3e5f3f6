# (c) Copyright Datacraft, 2026
"""LLM prompts for page classification, boundary checks and split review."""
import json
from typing import Any

from .models import Page

# Prompt to classify a batch of pages
CLASSIFICATION_SYSTEM_PROMPT = """You are a document classifier for expense reports.

For each page, extract:
1. documentType: One of: airline, hotel, bus, visa, telecom, receipt, terms, unknown
2. transactionId: The PRIMARY identifier (invoice #, ticket #, booking ref, etc.) or null
3. merchantName: The merchant/vendor name or null
4. hasTotal: Does this page show a final total amount? (true/false)
5. isContinuation: Does this page appear to continue from a previous page? (true/false)
6. confidence: How confident are you in this classification? (0.0-1.0)

DOCUMENT TYPE INDICATORS:
- airline: Flight itinerary, ticket number, PNR, boarding pass, airline name
- hotel: Hotel booking, reservation number, check-in/out dates
- bus: Bus ticket, route, departure time, bus company
- visa: Visa application, ESTA, passport info, government document
- telecom: Phone/internet bill, contract number, usage details
- receipt: Store receipt, restaurant bill, purchase receipt
- terms: Terms and conditions, legal text, policy information
- unknown: Cannot determine type

TRANSACTION ID HIERARCHY (extract the most specific):
1. Invoice/Receipt number: "Invoice #2024-001", "Receipt #12345"
2. Ticket number: "Ticket: 2202219875680", "E-ticket: 105 2485452619"
3. Booking reference: "Booking: UKGT44", "PNR: ABC123"
4. Order number: "Order #12345"
5. Application number: "Application: H1J09453F4P1271J"

Respond with a JSON array, one object per page, in page order:
[
  {
    "pageNumber": 3,
    "documentType": "airline",
    "transactionId": "Ticket: 2202219875680",
    "merchantName": "British Airways",
    "hasTotal": true,
    "isContinuation": false,
    "confidence": 0.95
  }
]"""


# Prompt to decide whether two consecutive pages belong together
BOUNDARY_PROMPT = """You are verifying if two consecutive pages belong to the SAME receipt/invoice.

PAGE {page_a}:
{text_a}

---

PAGE {page_b}:
{text_b}

DECISION CRITERIA:
- SAME if: Same transaction ID, continuation markers, building totals, same merchant context
- DIFFERENT if: Different transaction IDs, different merchants with new totals, complete transaction on first page

Respond with JSON:
{{
  "decision": "same" or "different",
  "reason": "brief explanation",
  "confidence": 0.0-1.0
}}"""


# Prompt for the single-shot split used by the validation loop
SPLIT_SYSTEM_PROMPT = """You are a document splitting expert for expense reports.

YOUR TASK: Identify individual receipts/invoices in this PDF.

STEP 1: IDENTIFY CONTAINER PAGES (SKIP THESE)
Look for Expensify report pages with:
- "Created: [datetime] UTC"
- "Submitted: [datetime] UTC"
- "Approved by [name]"
- Report IDs like "R00xxxxx"
These are typically pages 1-2. SKIP them entirely.

STEP 2: EXTRACT TRANSACTION IDs FROM EACH PAGE
For each remaining page, identify the PRIMARY transaction ID:
- Invoice Number: "Invoice #2024-001", "Fattura n° 123"
- Receipt Number: "Receipt #12345"
- Order Number: "Order #ABC123"
- Ticket Number: "Ticket: 2202219875680"
- Booking Reference: "Booking: XYZ789"
- Application Number: "Application: 123456"

STEP 3: GROUP BY TRANSACTION ID
Pages with the SAME transaction ID = ONE receipt
Pages with DIFFERENT transaction IDs = SEPARATE receipts

CRITICAL RULES:
1. Same transaction ID on consecutive pages: GROUP together
2. Different transaction IDs: SEPARATE receipts
3. No transaction ID + complete total: likely a standalone receipt
4. Building totals (subtotal, tax, total) across pages: ONE receipt

Respond with a JSON object:
{
  "totalInvoices": <number>,
  "pageGroups": [
    {
      "invoiceNumber": 1,
      "pages": [3, 4],
      "confidence": 0.95,
      "reasoning": "Pages 3-4 share Invoice #2024-001",
      "transactionId": "Invoice #2024-001"
    }
  ]
}

Before responding check that no page appears in multiple groups,
totalInvoices equals the number of pageGroups, container pages are
not included, and each group has a transaction ID or a rationale."""


# Prompt for the conservative semantic review of a candidate split
REVIEW_PROMPT = """You are a document splitting reviewer. Verify that the proposed split is semantically correct.

PROPOSED SPLIT:
{split_summary}

PAGE EXCERPTS:
{page_excerpts}

REVIEW CHECKLIST - BE CONSERVATIVE, ONLY REPORT CLEAR ERRORS:

1. included_container: Are Expensify container pages (with "Created:", "Submitted:", "Approved:" timestamps) included as receipts?
   Only flag if you see these specific Expensify keywords.

2. split_same_transaction: Are pages with the EXACT SAME transaction ID in DIFFERENT groups?
   Same merchant alone is NOT enough, the transaction ID must match exactly.

3. merged_different_transactions: Does one group contain pages with CLEARLY DIFFERENT transaction IDs?
   Example: group 1 has pages with "Invoice #001" AND "Invoice #002".

Do NOT flag:
- Different invoices from the same merchant
- Groups that look reasonable but you are uncertain about
- Minor formatting differences

When in doubt, return an empty array [].

OUTPUT FORMAT (JSON array):
[
  {{
    "type": "included_container",
    "groupNumbers": [1],
    "evidence": "Page 1 contains 'Created: 2024-01-15 UTC', 'Submitted:'",
    "suggestedFix": "Remove page 1 from all groups"
  }}
]"""


def format_pages(pages: list[Page], max_chars: int, header: str = '=== PAGE {number} ===') -> str:
	"""Render page texts with a header line, each truncated to max_chars."""
	return '\n\n'.join(
		f"{header.format(number=p.page_number)}\n{p.text[:max_chars]}"
		for p in pages
	)


def get_classification_messages(pages: list[Page], max_chars: int) -> list[dict[str, str]]:
	"""Get chat messages for classifying a batch of pages."""
	return [
		{'role': 'system', 'content': CLASSIFICATION_SYSTEM_PROMPT},
		{'role': 'user', 'content': f"Classify these pages:\n\n{format_pages(pages, max_chars)}"},
	]


def get_boundary_messages(page_a: Page, page_b: Page, max_chars: int) -> list[dict[str, str]]:
	"""Get chat messages for a same/different decision on two pages."""
	prompt = BOUNDARY_PROMPT.format(
		page_a=page_a.page_number,
		text_a=page_a.text[:max_chars],
		page_b=page_b.page_number,
		text_b=page_b.text[:max_chars],
	)
	return [
		{'role': 'system', 'content': prompt},
		{'role': 'user', 'content': 'Verify this boundary.'},
	]


def get_split_messages(pages: list[Page]) -> list[dict[str, str]]:
	"""Get chat messages for the single-shot split."""
	content = '\n\n---\n\n'.join(f"## Page {p.page_number}\n{p.text}" for p in pages)
	return [
		{'role': 'system', 'content': SPLIT_SYSTEM_PROMPT},
		{'role': 'user', 'content': f"Analyze these pages:\n\n{content}"},
	]


def get_review_messages(
	split_summary: list[dict[str, Any]],
	pages: list[Page],
	max_chars: int,
) -> list[dict[str, str]]:
	"""Get chat messages for reviewing a candidate split."""
	excerpts = '\n---\n'.join(
		f"Page {p.page_number}:\n{p.text[:max_chars]}\n" for p in pages
	)
	prompt = REVIEW_PROMPT.format(
		split_summary=json.dumps(split_summary, indent=2),
		page_excerpts=excerpts,
	)
	return [
		{'role': 'system', 'content': prompt},
		{'role': 'user', 'content': 'Review the split and identify any semantic issues.'},
	]
