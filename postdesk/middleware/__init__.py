# Middleware package init
"""
PostDesk Backend — Middleware Package
=====================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: correlation ID for logs and error bodies
    2. Logging: one access line per request, tagged with that ID
    3. CORS: FastAPI's CORSMiddleware for the browser UI's origin
"""
