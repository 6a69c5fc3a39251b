"""
Service layer.

Each service encapsulates the business logic of one domain and owns
its transactions.  Services raise errors from ``core.errors`` and
return pydantic models; they know nothing about HTTP.
"""
