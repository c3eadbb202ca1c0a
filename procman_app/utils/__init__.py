"""
Utility functions module.

Common helpers for clock access, remaining-time formatting and id
allocation shared across the stores and the evaluator.

Time Semantics:
- All instance timestamps are epoch milliseconds
- The clock is always injected; instance timing never reads wall-clock time directly
- Remaining time is signed: zero or negative means complete
"""
