"""Application package for the course records backend.

This package exposes the manager, repository, unit-of-work and model
modules used by the FastAPI application. It is intentionally
lightweight; individual modules contain the concrete implementations
and documentation.
"""
