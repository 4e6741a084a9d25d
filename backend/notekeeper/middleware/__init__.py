# Middleware package init
"""
Notekeeper Backend — Middleware Package
=========================================

Middleware Chain (order matters!):
    Request → [CORS] → [Request ID] → [Logging] → [Rate Limit] → Route Handler

    1. CORS outermost (development mode only): answers built further in,
       429 and counter store 500s included, still carry the CORS headers
    2. Request ID: every later layer, including 429 bodies, carries the id
    3. Logging: records rejected requests too, with their status
    4. Rate Limit: the Admission Gate, before any route or store work
"""
