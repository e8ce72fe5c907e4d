"""Pydantic Schemas — request/response validation for the store and API boundaries.

Invariants:
    - Schemas validate at system boundary (store writes, user input, API responses)
    - Persisted field names are camelCase; snake_case accepted on input

Design Decisions:
    - Separate from models: schemas are contracts, models are persistence
"""
