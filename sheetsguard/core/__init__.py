"""Core Application Layer.

Composes the decorator stack and orchestrates CLI commands.
"""
