"""Record mapping and reporting engine for spreadsheet-backed gratuity maps."""

__version__ = "0.3.0"
