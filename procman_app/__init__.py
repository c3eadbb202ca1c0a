"""
Procman - Timed Process Tracker

Tracks recurring processes bound to plots, monitors the running
instances until their duration elapses, and fires a one-time alert
when each instance completes.
"""

__version__ = "0.1.0"
__author__ = "Procman Team"
