"""Reading Cohorts — quarterly cohort lifecycle and notification engine.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""

__version__ = "1.0.0"
