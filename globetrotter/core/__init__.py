"""Round engine primitives (option sampling, countdown, round state, scoring).

Kept free of FastAPI concerns so it can be reused by API routes, scripts, and tests.
"""
