# Services package init
"""
Notekeeper Backend — Services Layer
=====================================

What:  Business logic between routes (HTTP) and the two stores.
How:   Services accept plain values, enforce the note rules and translate
       driver failures into domain exceptions. Routes only shape HTTP.

Service Inventory:
    - NoteService: list / get / create / update / delete against the Note Store
    - AdmissionGate: shared sliding window request counter kept in Redis
"""
