"""Durable Functions activity functions.

Each activity performs a single unit of work:
- execute_task: One cycle of the REST task poll state machine
- validate_endpoint: Static endpoint checks plus a GET probe
- preview_request: Perform a request once and render the response
"""
