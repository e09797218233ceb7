"""
FastAPI RESTful API for the Book Review service.

This module provides a small REST API for:
- Book catalogue browsing and search
- User registration and login
- Bearer token authentication
- Per-user book reviews
"""
