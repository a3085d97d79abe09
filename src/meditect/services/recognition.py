"""Medicine recognition from package photos."""

import base64
from dataclasses import dataclass
from typing import Protocol

from meditect.domain.recognition import ScanResult

_NULLABLE_STRING = {"anyOf": [{"type": "string"}, {"type": "null"}]}

SCAN_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "medicine": {
            "type": "object",
            "properties": {
                "name": _NULLABLE_STRING,
                "manufacturer": _NULLABLE_STRING,
                "expiry_date": _NULLABLE_STRING,
                "batch_number": _NULLABLE_STRING,
                "dosage": _NULLABLE_STRING,
            },
            "required": [
                "name",
                "manufacturer",
                "expiry_date",
                "batch_number",
                "dosage",
            ],
            "additionalProperties": False,
        },
        "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
    },
    "required": ["medicine", "confidence"],
    "additionalProperties": False,
}

SCAN_PROMPT = (
    "Read the medicine package in the image. "
    "Return the product name, manufacturer, expiry date as YYYY-MM-DD "
    "(or YYYY-MM when no day is printed), batch or lot number, and dosage. "
    "Use null for anything that is not legible, and give an overall "
    "confidence between 0 and 1."
)


class RecognitionClient(Protocol):
    """Interface for LLM-backed image extraction."""

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
        """Return structured extraction data for an image."""


@dataclass
class RecognitionService:
    """Turns a captured photo into a validated scan result."""

    client: RecognitionClient
    model: str
    reasoning_effort: str | None
    store: bool

    async def recognize(self, image_bytes: bytes) -> ScanResult:
        """Extract medicine attributes and a confidence score from an image."""
        raw = await self.client.extract(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            image_data_url=to_data_url(image_bytes),
            schema=SCAN_SCHEMA,
            prompt=SCAN_PROMPT,
        )
        return ScanResult.model_validate(raw)


def to_data_url(image_bytes: bytes) -> str:
    """Encode image bytes as a base64 data URL."""
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{_sniff_mime_type(image_bytes)};base64,{encoded}"


def _sniff_mime_type(image_bytes: bytes) -> str:
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    # ISO base media box: size(4) + "ftyp" + brand
    if image_bytes[4:8] == b"ftyp" and image_bytes[8:12] in {b"heic", b"heix", b"mif1"}:
        return "image/heic"
    return "image/jpeg"
