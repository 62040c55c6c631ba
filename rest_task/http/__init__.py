"""HTTP execution primitives.

- executor: Issue one request and build a bounded ``ResponseRecord``
- evaluator: Check a response against expected statuses and pattern
"""
