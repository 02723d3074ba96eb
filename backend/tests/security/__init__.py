"""Security tests for the publication library

This module contains security-focused tests including:
- Authentication bypass attempts
- Privilege escalation between roles
- Path traversal through upload filenames
- SQL injection through search parameters
"""
