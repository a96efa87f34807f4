"""Caching Service Implementation.

Provides the in-memory TTL cache and the read-through / write-invalidate
client decorator built on top of it.
Bounded Context: Cache Management
"""
