"""
Core modules for imagegc.

This package contains the core business logic for:
- Configuration management
- Request payload validation
- Vision analysis, description enhancement, and image regeneration
- Pipeline orchestration
"""
