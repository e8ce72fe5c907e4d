"""Infrastructure Layer — persistence backends, external service clients, cross-cutting concerns.

Invariants:
    - Depends inward only: core/ Protocols, errors, value types and parsers; never services/ or api/
    - Every external call has a timeout and maps failures to a domain error or an absence signal

Design Decisions:
    - Resilient wrappers over raw clients: callers see domain errors or absence signals
"""
