"""
HTTP API for imagegc (FastAPI).
"""

from imagegc.server.app import create_app

__all__ = ["create_app"]
