"""
Edge Gateway FastAPI Application.

Restores the original client IP for requests relayed by the trusted proxy
network and exposes health and metrics endpoints.
"""

__version__ = "0.1.0"
