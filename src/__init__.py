"""
Device Image Catalog - read-only browsing of inspection images.

This package contains the complete application:
- core: Framework-agnostic catalog logic
- infrastructure: Object storage integration
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
