"""Google Sheets transport and batch helpers."""
