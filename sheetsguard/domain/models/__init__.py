"""Domain Models: value objects, policies and typed errors."""
