"""
Data models module.

Immutable records for plots, process definitions and active process
instances, with their JSON storage shapes.
"""
