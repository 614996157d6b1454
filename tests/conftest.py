"""
Pytest configuration: default runs most tests; use --run-slow to include slow tests.
"""

import base64
import io

import pytest
from PIL import Image

from imagegc.core.config import Config


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests (live Azure Vision / Azure OpenAI). Default: skip them.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-slow", False):
        return
    skip_slow = pytest.mark.skip(reason="Slow test; run with --run-slow to include")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def _image_bytes(fmt: str, color: str) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (16, 16), color=color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _image_bytes("PNG", "orange")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _image_bytes("JPEG", "blue")


@pytest.fixture
def png_b64(png_bytes: bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def config() -> Config:
    """Valid configuration pointing at fake Azure resources."""
    return Config(
        vision_endpoint="https://vision.example.cognitiveservices.azure.com/",
        vision_key="vision-key",
        openai_endpoint="https://openai.example.openai.azure.com/",
        openai_api_key="openai-key",
        chat_deployment="gpt-4o-mini",
        fallback_chat_deployment="gpt-35-turbo",
        image_deployment="dall-e-3",
    )
