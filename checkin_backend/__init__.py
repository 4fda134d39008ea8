"""
Backend package for the weekly check-in service.

This package provides a FastAPI application over a storage abstraction that
can sit on Postgres, SQLite or plain JSON files, picked once at startup from
the environment.
"""
