"""
Shared utilities: structured logging, error handling and rate limiting.
"""
