"""
Newsdesk Backend — Middleware
===============================

Execution order per request (outermost first):
    RateLimitMiddleware → RequestIDMiddleware → RequestLoggingMiddleware → GZip → CORS
"""
