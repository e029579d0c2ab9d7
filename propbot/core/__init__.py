"""Core infrastructure: logging, errors and timeouts."""
