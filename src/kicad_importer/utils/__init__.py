"""Parsing, path and bookkeeping helpers."""
