"""Endpoint functions referenced by the v1 route table."""
