"""Tests for the OpenAI recognition adapter."""

import asyncio
import json

import pytest
from openai import OpenAIError

from meditect.adapters.openai_recognition_client import (
    SCAN_FORMAT_NAME,
    MedicineScanRequest,
    OpenAIRecognitionClient,
    parse_scan_output,
)
from meditect.errors import RecognitionError


class _FakeResponses:
    def __init__(self, output_text: str, error: Exception | None = None) -> None:
        self.output_text = output_text
        self.error = error
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        if self.error:
            raise self.error
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, output_text: str, error: Exception | None = None) -> None:
        self.responses = _FakeResponses(output_text, error)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def _extract(client: OpenAIRecognitionClient, reasoning_effort: str | None):  # type: ignore[no-untyped-def]
    return client.extract(
        model="gpt-5.2",
        reasoning_effort=reasoning_effort,
        store=False,
        image_data_url="data:image/jpeg;base64,ZmFrZQ==",
        schema={"type": "object"},
        prompt="Read the package",
    )


def test_scan_request_payload() -> None:
    request = MedicineScanRequest(
        model="gpt-5.2",
        image_data_url="data:image/png;base64,ZmFrZQ==",
        schema={"type": "object"},
        prompt="Read the package",
    )

    payload = request.to_payload()

    assert payload["store"] is False
    assert "reasoning" not in payload
    content = payload["input"][0]["content"]  # type: ignore[index]
    assert content[0]["image_url"] == "data:image/png;base64,ZmFrZQ=="
    assert content[0]["detail"] == "high"
    assert content[1] == {"type": "input_text", "text": "Read the package"}
    text_format = payload["text"]["format"]  # type: ignore[index]
    assert text_format["name"] == SCAN_FORMAT_NAME
    assert text_format["strict"] is True


def test_extract_sends_strict_schema_and_parses_output() -> None:
    fake = _FakeOpenAI(json.dumps({"medicine": {}, "confidence": 0.5}))
    client = OpenAIRecognitionClient(client=fake)

    result = asyncio.run(_extract(client, "medium"))

    assert result == {"medicine": {}, "confidence": 0.5}
    payload = fake.responses.last_payload
    assert payload is not None
    assert payload["reasoning"] == {"effort": "medium"}
    assert payload["text"]["format"]["schema"] == {"type": "object"}


def test_extract_omits_reasoning_when_unset() -> None:
    fake = _FakeOpenAI("{}")
    client = OpenAIRecognitionClient(client=fake)

    asyncio.run(_extract(client, None))

    assert fake.responses.last_payload is not None
    assert "reasoning" not in fake.responses.last_payload


def test_extract_wraps_api_errors() -> None:
    client = OpenAIRecognitionClient(
        client=_FakeOpenAI("", error=OpenAIError("rate limited"))
    )

    with pytest.raises(RecognitionError) as exc_info:
        asyncio.run(_extract(client, None))

    assert exc_info.value.reason == "rate limited"
    assert exc_info.value.code == "RECOGNITION_FAILED"


@pytest.mark.parametrize(
    ("output_text", "reason"),
    [
        ("", "empty model output"),
        (None, "empty model output"),
        ("[1, 2]", "model output is not a JSON object"),
    ],
)
def test_parse_scan_output_rejects_unusable_replies(
    output_text: str | None, reason: str
) -> None:
    with pytest.raises(RecognitionError) as exc_info:
        parse_scan_output(output_text)

    assert exc_info.value.reason == reason


def test_parse_scan_output_rejects_truncated_json() -> None:
    with pytest.raises(RecognitionError) as exc_info:
        parse_scan_output('{"medicine": ')

    assert exc_info.value.reason.startswith("model output is not JSON")


def test_close_closes_underlying_client() -> None:
    fake = _FakeOpenAI("{}")

    asyncio.run(OpenAIRecognitionClient(client=fake).close())

    assert fake.closed
