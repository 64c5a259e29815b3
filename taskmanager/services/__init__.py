# Services package init
"""
Task Management API: Services Layer
===================================

What:  Business logic between routes (HTTP) and stores (persistence).
How:   Services receive their collaborators at construction; the application
       factory builds one of each and keeps them on `app.state`.

Service Inventory:
    - TaskService: task CRUD, filtering and view projection
    - TokenService: JWT issuance and verification
    - CredentialVerifier: username/password checks with login telemetry
    - TelemetryService: fire-and-forget business events
    - passwords: bcrypt hash/verify primitive
"""
