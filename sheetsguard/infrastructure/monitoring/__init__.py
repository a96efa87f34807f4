"""Logging setup, metrics collection and performance monitoring."""
