"""
Common Utilities

Shared modules used by the controller, agent and worker services:
- auth.py - X-API-Key request authentication
- logging_setup.py - Process-wide logging configuration
"""
