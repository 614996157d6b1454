"""
Azure OpenAI provider for chat completions and image generation.

Handles HTTP communication with an Azure OpenAI resource through its REST API:
{endpoint}/openai/deployments/{deployment}/chat/completions and
{endpoint}/openai/deployments/{deployment}/images/generations.
"""

import base64
import binascii
from typing import Any

from imagegc.core.config import Config
from imagegc.core.providers import http
from imagegc.core.providers.base import ChatCompletion, GeneratedImage
from imagegc.logging_config import get_logger
from imagegc.utils.exceptions import APIError

logger = get_logger(__name__)

SERVICE_NAME = "Azure OpenAI"


class AzureOpenAIProvider:
    """Chat and image provider for one Azure OpenAI resource."""

    def __init__(self, config: Config) -> None:
        self._config = config

    def _url(self, deployment: str, operation: str) -> str:
        endpoint = self._config.openai_endpoint.rstrip("/")
        return f"{endpoint}/openai/deployments/{deployment}/{operation}"

    def _headers(self) -> dict[str, str]:
        return {
            "api-key": self._config.openai_api_key,
            "Content-Type": "application/json",
        }

    def _post(self, deployment: str, operation: str, payload: dict[str, Any], timeout: int) -> Any:
        response = http.post(
            self._url(deployment, operation),
            service=SERVICE_NAME,
            headers=self._headers(),
            timeout=timeout,
            json_body=payload,
            params={"api-version": self._config.openai_api_version},
            debug=self._config.debug_api,
        )
        http.check_response(response, SERVICE_NAME, deployment)
        try:
            return response.json()
        except ValueError as e:
            raise APIError(
                f"Failed to parse API response as JSON: {str(e)}",
                status_code=response.status_code,
                response=response.text,
            ) from e

    def complete_chat(
        self,
        deployment: str,
        messages: list[dict[str, Any]],
        *,
        max_tokens: int,
        temperature: float,
        top_p: float,
        timeout: int,
    ) -> ChatCompletion:
        """Run a chat completion and return the first choice's text."""
        payload = {
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "top_p": top_p,
        }
        result = self._post(deployment, "chat/completions", payload, timeout)
        try:
            content = result["choices"][0]["message"].get("content") or ""
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise APIError(
                f"Failed to extract completion from API response: {str(e)}",
                response=str(result),
            ) from e
        text = content.strip()
        if not text:
            raise APIError(f"{deployment} returned an empty response", response=str(result))
        usage = result.get("usage") or {}
        return ChatCompletion(
            text=text,
            total_tokens=int(usage.get("total_tokens", 0)),
            model=result.get("model") or deployment,
        )

    def generate_image(
        self,
        deployment: str,
        prompt: str,
        *,
        size: str,
        quality: str,
        style: str,
        timeout: int,
    ) -> GeneratedImage:
        """Generate one image and return its decoded bytes."""
        payload = {
            "prompt": prompt,
            "n": 1,
            "size": size,
            "quality": quality,
            "style": style,
            "response_format": "b64_json",
        }
        result = self._post(deployment, "images/generations", payload, timeout)
        try:
            item = result["data"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise APIError(
                "No images in API response. The deployment may not support image generation.",
                response=str(http.truncate_image_data_for_log(result)),
            ) from e
        b64 = item.get("b64_json") if isinstance(item, dict) else None
        if not b64:
            raise APIError("No image data in response", response=str(item))
        try:
            image_bytes = base64.b64decode(b64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise APIError(f"Failed to decode image data from API response: {str(e)}") from e
        return GeneratedImage(
            image_bytes=image_bytes,
            model=deployment,
            revised_prompt=item.get("revised_prompt"),
        )
