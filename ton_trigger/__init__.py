"""
ton-trigger: holds the mouse on a window when VRChat sends an OSC trigger.

Listens for OSC messages over UDP and, when the avatar parameter
/avatar/parameters/ton_suicide becomes true, presses and holds the left mouse
button on the configured window for the configured time.
"""

__version__ = "0.1.0"
