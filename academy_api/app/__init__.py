"""
Application package initializer.

The project is split by concern: ``core`` holds configuration,
persistence, security and the error taxonomy; ``services`` holds the
transactional domain operations (belt promotions, monthly billing,
class enrollment); ``api`` holds the versioned route table and the
HTTP glue that exposes those services.
"""

from .main import app  # noqa: F401
