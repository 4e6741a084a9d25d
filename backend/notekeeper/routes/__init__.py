# Routes package init
"""
Notekeeper Backend — API Routes Package
=========================================

Route Inventory:
    - notes.py:   GET/POST        /api/notes
                  GET/PUT/DELETE  /api/notes/{id}
    - health.py:  GET             /health
    - frontend.py: built single-page client (production mode only)

Routes stay thin: read the request, call NoteService, shape the response.
"""
