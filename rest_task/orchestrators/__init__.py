"""Durable Functions orchestrator functions.

Drives one REST task:
1. Run a cycle (activity) → polling / completed / failed
2. While polling → durable timer for the task interval, run again
3. Terminal → return the cycle result with outputs or error
"""
