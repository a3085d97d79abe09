"""OpenAI Responses API client for medicine recognition."""

import json
import logging
from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from meditect.errors import RecognitionError
from meditect.services.recognition import RecognitionClient

logger = logging.getLogger(__name__)

SCAN_FORMAT_NAME = "medicine_scan"
# Batch numbers and expiry dates are printed small.
IMAGE_DETAIL = "high"


@dataclass(frozen=True)
class MedicineScanRequest:
    """A package photo and the structured output it should be read into."""

    model: str
    image_data_url: str
    schema: dict[str, object]
    prompt: str
    store: bool = False
    reasoning_effort: str | None = None

    def to_payload(self) -> dict[str, object]:
        """Build keyword arguments for ``responses.create``."""
        payload: dict[str, object] = {
            "model": self.model,
            "store": self.store,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "input_image",
                            "image_url": self.image_data_url,
                            "detail": IMAGE_DETAIL,
                        },
                        {"type": "input_text", "text": self.prompt},
                    ],
                }
            ],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": SCAN_FORMAT_NAME,
                    "strict": True,
                    "schema": self.schema,
                }
            },
        }
        if self.reasoning_effort:
            payload["reasoning"] = {"effort": self.reasoning_effort}
        return payload


def parse_scan_output(output_text: str | None) -> dict[str, object]:
    """Decode the model's JSON reply into a scan payload."""
    if not output_text:
        raise RecognitionError("empty model output")
    try:
        parsed = json.loads(output_text)
    except json.JSONDecodeError as exc:
        raise RecognitionError(f"model output is not JSON: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise RecognitionError("model output is not a JSON object")
    return parsed


@dataclass
class OpenAIRecognitionClient(RecognitionClient):
    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIRecognitionClient":
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        request = MedicineScanRequest(
            model=model,
            image_data_url=image_data_url,
            schema=schema,
            prompt=prompt,
            store=store,
            reasoning_effort=reasoning_effort,
        )
        return await self.scan(request)

    async def scan(self, request: MedicineScanRequest) -> dict[str, object]:
        """Send one scan request and return the decoded reply."""
        try:
            response = await self.client.responses.create(**request.to_payload())
        except OpenAIError as exc:
            logger.warning("Medicine scan request failed", extra={"model": request.model})
            raise RecognitionError(str(exc)) from exc
        return parse_scan_output(response.output_text)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
