"""Pydantic models and the exception hierarchy."""
