"""Domain Interfaces (Abstract Base Classes).

Define the contracts implemented by the transport, the decorators and the
supporting services.
"""
