"""API Resilience Implementations.

Contains the error classifier, the retry engine with exponential backoff,
and the adaptive and token-bucket rate limiters.
Bounded Context: API Resilience
"""
