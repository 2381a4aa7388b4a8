"""
Builds the ordered multimodal prompt for one estimation request.

Order carries meaning: the model is told that an overlay immediately
following a photo annotates that photo, so each overlay is emitted right
after its own photo and nowhere else. Job types are not branched on here;
they travel as text and the policy decides what they mean.
"""
from app.models.domain import EstimationRequest, ImageSegment, PhotoPair, PromptDocument, TextSegment

SCOPE_RULES = (
    "Overlay rules (if provided after a photo):\n"
    "- Green marks = INCLUDE in estimate (count/remove)\n"
    "- Red marks = EXCLUDE from estimate (stays/ignore)\n"
    "- If a photo has no green marks, assume everything is in-scope EXCEPT red-marked areas.\n"
    "- The job's container (dumpster, cart, or rolltainer) itself should NEVER be counted as junk volume.\n"
)


def format_dumpster_size(size: float | None) -> str:
    if size is None:
        return "UNKNOWN"
    return f"{size:g} yard"


def metadata_text(request: EstimationRequest) -> str:
    return (
        f"Job type: {request.job_type.value}\n"
        f"Dumpster size: {format_dumpster_size(request.dumpster_size)}\n"
        f"Agent label: {request.agent_label or 'None'}\n"
        f"Notes: {request.notes or 'None'}\n\n"
        f"{SCOPE_RULES}"
    )


def photo_label(pair: PhotoPair) -> str:
    return f"Photo {pair.index + 1} (original)"


def overlay_label(pair: PhotoPair) -> str:
    return f"Photo {pair.index + 1} overlay: Green = include/count. Red = exclude/ignore."


def build_prompt_document(request: EstimationRequest) -> PromptDocument:
    segments = [TextSegment(text=metadata_text(request))]
    for pair in sorted(request.pairs, key=lambda p: p.index):
        segments.append(TextSegment(text=photo_label(pair)))
        segments.append(ImageSegment(role="photo", photo_index=pair.index, image=pair.photo))
        if pair.overlay is not None:
            segments.append(TextSegment(text=overlay_label(pair)))
            segments.append(ImageSegment(role="overlay", photo_index=pair.index, image=pair.overlay))
    return PromptDocument(segments=segments)
