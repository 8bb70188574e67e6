"""
Application layer - Application Business Rules.

This layer contains the RBAC pipeline and the authorization gate:
- Route catalog building and permission synthesis
- System role templates and role management
- Role and permission checks
"""
