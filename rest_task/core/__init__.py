"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Size limits, header names, fixed message formats
- exceptions: Engine exception taxonomy
- ingress: Host boundary deserialisation helpers
"""
