"""Infrastructure Layer.

Concrete transport, decorators (retry, cache, rate limiting, metrics),
configuration, logging and console output.
"""
