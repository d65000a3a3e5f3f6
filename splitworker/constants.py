# (c) Copyright Datacraft, 2026
SPLIT_DOCUMENT = "splitworker.splitting_tasks.split_document"

# Pages inspected by the container detector
CONTAINER_SCAN_PAGES = 3
# Distinct indicators a page needs to be treated as a report wrapper
CONTAINER_MIN_INDICATORS = 2
# Page 3 below this many characters is part of the wrapper
CONTAINER_NEAR_EMPTY_CHARS = 100
# Pages the structural validator and container fix treat as wrapper pages
LEADING_CONTAINER_PAGES = (1, 2)

CONTAINER_INDICATORS = (
	'created:',
	'submitted:',
	'approved by',
	'exported to',
	'report id',
	'utc',
	'expensify',
	'thumbnails',
	'receipt preview',
	'expense report',
	'total reimbursable',
	'non-reimbursable',
)

# Defaults used when the model cannot be reached or parsed
FALLBACK_CONFIDENCE = 0.5
FAST_PATH_CONFIDENCE = 0.95
TERMS_FOLLOW_CONFIDENCE = 0.8
