"""Pydantic request, result and pipeline models."""
