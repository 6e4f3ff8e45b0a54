"""Pydantic Schemas — request/response validation for the HTTP API.

Invariants:
    - Schemas validate at the system boundary (request bodies, responses)
    - Domain enums from core/ are used for enum fields

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
