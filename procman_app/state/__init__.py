"""
Instance evaluation and notification state machine module.

Computes remaining time for running instances on every tick and drives
the per-instance PENDING → NOTIFIED transition that fires the completion
alert exactly once per run.
"""
