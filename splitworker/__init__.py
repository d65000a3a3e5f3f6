# (c) Copyright Datacraft, 2026
"""splitworker - multi-document segmentation of OCR'd uploads."""
