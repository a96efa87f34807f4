"""sheetsguard: resilient decorators around the Google Sheets values API."""

__version__ = "0.1.0"
