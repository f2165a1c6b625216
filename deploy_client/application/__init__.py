"""
Application layer.

Orchestrates key exchange, submission and completion waiting.
"""
