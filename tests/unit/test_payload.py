"""Unit tests for inbound payload decoding and validation."""

import base64
from unittest.mock import patch

import pytest

from imagegc.core.config import MAX_UPLOAD_BYTES
from imagegc.core.models import AnalysisRequest
from imagegc.core.payload import (
    decode_image_payload,
    strip_data_url_prefix,
    validate_image_bytes,
    validate_request,
)
from imagegc.utils.exceptions import (
    InvalidImageDataError,
    PayloadTooLargeError,
    UnsupportedContentTypeError,
)


@pytest.mark.unit
class TestStripDataUrlPrefix:
    @pytest.mark.parametrize(
        "raw",
        [
            "data:image/png;base64,QUJD",
            "DATA:image/jpeg;BASE64,QUJD",
            "data:;base64,QUJD",
            "  data:image/png;base64,QUJD",
            "data:image/png;name=cat.png;base64,QUJD",
            "data:image/jpeg;charset=binary;name=a.jpg;base64,QUJD",
        ],
    )
    def test_strips_prefix(self, raw):
        assert strip_data_url_prefix(raw) == "QUJD"

    def test_plain_base64_unchanged(self):
        assert strip_data_url_prefix("QUJD") == "QUJD"


@pytest.mark.unit
class TestDecodeImagePayload:
    def test_prefixed_and_plain_decode_identically(self, png_bytes, png_b64):
        assert decode_image_payload(png_b64) == png_bytes
        assert decode_image_payload(f"data:image/png;base64,{png_b64}") == png_bytes

    def test_line_wrapped_base64_decodes(self, png_bytes):
        wrapped = base64.encodebytes(png_bytes).decode("ascii")
        assert "\n" in wrapped
        assert decode_image_payload(wrapped) == png_bytes

    def test_crlf_wrapped_data_url_decodes(self, png_bytes):
        wrapped = base64.encodebytes(png_bytes).decode("ascii").replace("\n", "\r\n")
        assert decode_image_payload(f"data:image/png;base64,{wrapped}") == png_bytes

    def test_data_url_with_parameters_decodes(self, png_bytes, png_b64):
        payload = f"data:image/png;name=cat.png;base64,{png_b64}"
        assert decode_image_payload(payload) == png_bytes

    def test_whitespace_does_not_hide_bad_characters(self):
        with pytest.raises(InvalidImageDataError):
            decode_image_payload("QUJD\nQU@D\n")

    @pytest.mark.parametrize("bad", ["not base64!!", "QUJ", "data:image/png;base64,@@@@"])
    def test_invalid_base64(self, bad):
        with pytest.raises(InvalidImageDataError) as exc_info:
            decode_image_payload(bad)
        assert str(exc_info.value) == "Invalid image data format"

    @pytest.mark.parametrize("empty", ["", "data:image/png;base64,"])
    def test_empty_payload(self, empty):
        with pytest.raises(InvalidImageDataError):
            decode_image_payload(empty)


@pytest.mark.unit
class TestValidateImageBytes:
    def test_accepts_png_and_jpeg(self, png_bytes, jpeg_bytes):
        validate_image_bytes(png_bytes, "image/png")
        validate_image_bytes(jpeg_bytes, "IMAGE/JPEG ")

    def test_exactly_at_limit_accepted(self):
        validate_image_bytes(b"\x00" * MAX_UPLOAD_BYTES, "image/png")

    def test_over_limit_rejected(self):
        with pytest.raises(PayloadTooLargeError) as exc_info:
            validate_image_bytes(b"\x00" * (MAX_UPLOAD_BYTES + 1), "image/png")
        assert str(exc_info.value) == "File size exceeds the maximum allowed (20MB)."
        assert exc_info.value.size == MAX_UPLOAD_BYTES + 1

    @pytest.mark.parametrize("content_type", ["image/gif", "image/webp", "", "text/plain"])
    def test_unsupported_content_type(self, png_bytes, content_type):
        with pytest.raises(UnsupportedContentTypeError) as exc_info:
            validate_image_bytes(png_bytes, content_type)
        assert str(exc_info.value) == "Only JPG and PNG files are supported."

    def test_mismatched_magic_only_warns(self, png_bytes, caplog):
        with caplog.at_level("WARNING", logger="imagegc"):
            validate_image_bytes(png_bytes, "image/jpeg")
        assert "does not match" in caplog.text


@pytest.mark.unit
class TestValidateRequest:
    def test_returns_decoded_bytes(self, png_bytes, png_b64):
        req = AnalysisRequest(image_data=png_b64, content_type="image/png")
        assert validate_request(req) == png_bytes

    def test_size_checked_before_content_type(self):
        oversized = base64.b64encode(b"\x00" * 16).decode()
        req = AnalysisRequest(image_data=oversized, content_type="image/gif")
        with patch("imagegc.core.payload.MAX_UPLOAD_BYTES", 8):
            with pytest.raises(PayloadTooLargeError):
                validate_request(req)

    def test_decode_checked_first(self):
        req = AnalysisRequest(image_data="%%%", content_type="image/gif")
        with pytest.raises(InvalidImageDataError):
            validate_request(req)
