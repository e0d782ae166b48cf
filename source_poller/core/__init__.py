"""Core utilities and shared infrastructure.

- config: Transport configuration loading and validation
- constants: Polling contract constants and HTTP status codes
- exceptions: Custom exception hierarchy
"""
