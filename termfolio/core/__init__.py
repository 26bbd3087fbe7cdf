"""Core terminal primitives (virtual filesystem, path resolution, file rendering).

Kept free of FastAPI concerns so it can be reused by API routes, the REPL, and tests.
"""
