# Routes package init
"""
Task Management API: Routes Package
===================================

What:  HTTP route handlers. Each module owns one resource.

Route Inventory:
    - auth.py:    POST /auth/login                       (issue bearer token)
                  GET  /auth/test-users                  (demo credentials)
    - tasks.py:   GET/POST       /tasks
                  GET/PUT/DELETE /tasks/{id}
                  GET  /tasks/filter/status?completed=
                  GET  /tasks/filter/priority/{priority}
    - health.py:  GET  /health                           (liveness + database probe)
    - diagnostics.py: GET /diagnostics/slow, /error, /load-test (only with
                  enable_diagnostics)

Routes stay thin: validate, call a service, pick the status code.
"""
