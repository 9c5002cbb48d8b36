"""medparse: OCR layout normalization and resilient LLM result extraction."""

__version__ = "0.1.0"
