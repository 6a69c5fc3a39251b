"""
Pydantic schema definitions for API payloads.

Each domain (auth, students, classes, belts, payments, enrollments)
defines its own request and response models.  Schemas are separated
from the SQL rows to decouple API representation from persistence.
"""
