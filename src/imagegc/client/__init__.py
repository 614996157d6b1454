"""
Client side of the imagegc API: retrying gateway and analysis client.
"""

from imagegc.client.analysis import ImageAnalysisClient, build_request
from imagegc.client.gateway import GET_POLICY, POST_POLICY, RetryingGateway, RetryPolicy

__all__ = [
    "GET_POLICY",
    "POST_POLICY",
    "ImageAnalysisClient",
    "RetryPolicy",
    "RetryingGateway",
    "build_request",
]
