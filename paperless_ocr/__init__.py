"""Command-line OCR for PDF and image files backed by the Mistral AI API."""

__version__ = "0.1.0"
