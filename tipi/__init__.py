"""
Tipi - lifecycle orchestration core for a self-hosted app platform

Tracks the system-wide state machine and one state machine per hosted
application, validates transition requests, persists provisional state
and hands the real work off to an external runner as events.
"""

__version__ = "3.4.1"
