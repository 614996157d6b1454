"""
Model providers: protocols, shared HTTP handling, and the Azure OpenAI implementation.
"""

from imagegc.core.providers.azure_openai import AzureOpenAIProvider
from imagegc.core.providers.base import (
    ChatCompletion,
    ChatCompletionProvider,
    GeneratedImage,
    ImageGenerationProvider,
)

__all__ = [
    "AzureOpenAIProvider",
    "ChatCompletion",
    "ChatCompletionProvider",
    "GeneratedImage",
    "ImageGenerationProvider",
]
