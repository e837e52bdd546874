"""Building Management System notification service package.

Ensures the local ``bms`` package is resolved as a regular package rather than
through namespace package resolution.
"""
