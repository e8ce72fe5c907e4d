"""Service Layer — async orchestration around the pure core (load → rules → store).

Invariants:
    - Services own IO sequencing; decisions live in core/
    - Services never import from api/
"""
