"""
Infrastructure layer - external service integrations.

- storage: Object storage (S3-compatible) listing and URL signing

These wrappers translate between external formats and our domain models.
"""
