"""Models for medicine recognition results."""

from pydantic import BaseModel, Field

HIGH_CONFIDENCE = 0.9
MEDIUM_CONFIDENCE = 0.7


class MedicineGuess(BaseModel):
    """Best-effort medicine attributes read from a package photo."""

    name: str | None = None
    manufacturer: str | None = None
    expiry_date: str | None = None
    batch_number: str | None = None
    dosage: str | None = None


class ScanResult(BaseModel):
    """Structured output for a medicine scan."""

    medicine: MedicineGuess
    confidence: float = Field(ge=0.0, le=1.0)

    @property
    def confidence_level(self) -> str:
        if self.confidence >= HIGH_CONFIDENCE:
            return "high"
        if self.confidence >= MEDIUM_CONFIDENCE:
            return "medium"
        return "low"
