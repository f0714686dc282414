"""
NewsNext Backend — Middleware Package
======================================

Middleware Chain (request direction):
    Request → [Rate Limit] → [Request ID] → [Logging] → [Headers] → [GZip] → [CORS] → Route

    1. Rate Limit first so abusive clients are rejected before any work
    2. Request ID before logging so access log lines carry the correlation id
    3. Headers sets the cross-origin policy headers on every response
    4. CORS innermost so preflight answers and error responses both get
       Access-Control-* headers
"""
