# Middleware package init
"""
Plateful Backend — Middleware Package
=======================================

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [Session] → Route Handler

    1. Rate Limit first: reject floods before any processing
    2. Request ID: correlation id for logs and error bodies
    3. Logging: access line with the request id and duration
    4. Session: decodes the signed cookie for the "my votes" endpoints
"""
