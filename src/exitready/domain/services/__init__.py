"""
Domain Services

Scoring, valuation, signal risk and retirement calculations. None of these
services perform I/O; callers supply already-fetched inputs.
"""
