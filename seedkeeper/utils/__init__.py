"""Shared utilities: logging, console output, time and natural ordering."""
