"""
Task Management API: Application Package
========================================

What: Marks `taskmanager` as a Python package and exposes the version.
Who:  Imported by uvicorn (`taskmanager.main:app`), pytest and every module.

Architecture Note:
    ┌─────────────────────────────────────┐
    │  Middleware Pipeline (cross-cutting)│  ← correlation, errors, rate limit, timing
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← auth gate, validation, HTTP mapping
    ├─────────────────────────────────────┤
    │   Validation Engine │ Services      │  ← rule sets, task rules, tokens, logins
    ├─────────────────────────────────────┤
    │        Stores (Persistence)         │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
