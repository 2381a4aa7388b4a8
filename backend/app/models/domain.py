from enum import Enum
from datetime import datetime
from typing import Literal, Union
from pydantic import BaseModel, Field


class JobType(str, Enum):
    STANDARD = "STANDARD"
    DUMPSTER_CLEANOUT = "DUMPSTER_CLEANOUT"
    DUMPSTER_OVERFLOW = "DUMPSTER_OVERFLOW"
    CONTAINER_SERVICE = "CONTAINER_SERVICE"


class Confidence(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ImageBlob(BaseModel):
    """One uploaded image, already read into memory."""
    filename: str | None = None
    media_type: str = "image/jpeg"
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class PhotoPair(BaseModel):
    """A photo and the overlay drawn over it, if any. Built once at intake."""
    index: int = Field(ge=0)
    photo: ImageBlob
    overlay: ImageBlob | None = None


class EstimationRequest(BaseModel):
    job_type: JobType = JobType.STANDARD
    dumpster_size: float | None = Field(default=None, gt=0)
    agent_label: str | None = None
    notes: str | None = None
    pairs: list[PhotoPair]

    @property
    def photo_count(self) -> int:
        return len(self.pairs)

    @property
    def overlay_count(self) -> int:
        return sum(1 for pair in self.pairs if pair.overlay is not None)


class TextSegment(BaseModel):
    kind: Literal["text"] = "text"
    text: str


class ImageSegment(BaseModel):
    kind: Literal["image"] = "image"
    role: Literal["photo", "overlay"]
    photo_index: int
    image: ImageBlob


Segment = Union[TextSegment, ImageSegment]


class PromptDocument(BaseModel):
    """Ordered text/image segments sent to the model as one user message."""
    segments: list[Segment] = []

    def images(self, role: str | None = None) -> list[ImageSegment]:
        return [
            s for s in self.segments
            if isinstance(s, ImageSegment) and (role is None or s.role == role)
        ]

    def outline(self) -> list[str]:
        """Compact description of the segment order, e.g. for debugging."""
        labels = []
        for segment in self.segments:
            if isinstance(segment, ImageSegment):
                labels.append(f"{segment.role}{segment.photo_index + 1}-image")
            else:
                labels.append(segment.text.splitlines()[0] if segment.text else "")
        return labels


class Interpretation(BaseModel):
    text: str
    confidence: Confidence | None = None


class NewEstimate(BaseModel):
    """Everything the store needs to append one record."""
    agent_label: str | None = None
    job_type: JobType
    dumpster_size: float | None = None
    notes: str | None = None
    photo_count: int
    model_name: str
    result_text: str
    confidence: Confidence | None = None
    policy_version: str | None = None


class EstimateRecord(BaseModel):
    """A stored estimate as read back. Job type and confidence stay plain strings."""
    id: int
    created_at: datetime
    agent_label: str | None = None
    job_type: str
    dumpster_size: float | None = None
    notes: str | None = None
    photo_count: int
    model_name: str
    result_text: str
    confidence: str | None = None
    policy_version: str | None = None


class EstimateSummary(BaseModel):
    id: int
    created_at: datetime
    agent_label: str | None = None
    job_type: str
    dumpster_size: float | None = None
    photo_count: int
    confidence: str | None = None
    result_preview: str


class Saved(BaseModel):
    kind: Literal["saved"] = "saved"
    id: int
    created_at: datetime


class Unsaved(BaseModel):
    """Inference succeeded but the record could not be persisted."""
    kind: Literal["unsaved"] = "unsaved"
    reason: str


SaveOutcome = Union[Saved, Unsaved]


class EstimateOutcome(BaseModel):
    interpretation: Interpretation
    saved: SaveOutcome

    @property
    def id(self) -> int | None:
        return self.saved.id if isinstance(self.saved, Saved) else None

    @property
    def created_at(self) -> datetime | None:
        return self.saved.created_at if isinstance(self.saved, Saved) else None
