"""
Trigger dispatch: turns decoded OSC messages into drag actions.
"""

from .dispatcher import TriggerDispatcher

__all__ = ["TriggerDispatcher"]
