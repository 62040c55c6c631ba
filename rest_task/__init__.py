"""REST Task Engine.

Durable Functions unit that performs a configured HTTP call and, in poll
mode, re-executes it on an interval until the response matches the
expected status/pattern or the timeout elapses.
"""

__version__ = "0.1.0"
