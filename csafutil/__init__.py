"""Helpers for CSAF advisory tools: file names, JSON paths, hashes, HTTP clients, time ranges and options."""

__version__ = "0.1.0"