"""
Middleware layer for Clinic Access.

Correlation IDs, security headers, request size limits and the login
rate limiter.
"""
