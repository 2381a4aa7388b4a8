"""
Offline check of an estimate submission.

Assembles the same prompt the API would build from photo/overlay files on
disk, prints the segment order and overlay markup counts, and with --call
sends it to the configured model (nothing is saved).

  python scripts/estimate_debug.py photo1.jpg photo2.jpg --overlay 1=overlay1.png
"""
import argparse
import asyncio
import json
import mimetypes
import sys
from pathlib import Path

# Add backend directory to sys.path to allow imports like 'app.services'
backend_dir = str(Path(__file__).resolve().parent.parent)
sys.path.append(backend_dir)

from app.config import settings
from app.errors import EstimatorError
from app.models.domain import EstimationRequest, ImageBlob
from app.services.inference import InferenceInvoker
from app.services.intake import clean_text, pair_photos, parse_dumpster_size, parse_job_type, NOTES_MAX_CHARS
from app.services.interpreter import interpret
from app.services.llm_provider import get_llm_provider
from app.services.overlay_stats import analyze_overlay
from app.services.policy import load_policy
from app.services.prompt_assembler import build_prompt_document
from app.services.security import normalize_media_type


def load_blob(path: str) -> ImageBlob:
    media_type, _ = mimetypes.guess_type(path)
    return ImageBlob(filename=Path(path).name, media_type=normalize_media_type(media_type), data=Path(path).read_bytes())


def parse_overlay_args(values: list[str], photo_count: int) -> list[ImageBlob | None]:
    overlays: list[ImageBlob | None] = [None] * photo_count
    for value in values:
        number, _, path = value.partition("=")
        index = int(number) - 1
        if not path or not 0 <= index < photo_count:
            raise SystemExit(f"Bad --overlay '{value}', expected N=path with 1 <= N <= {photo_count}")
        overlays[index] = load_blob(path)
    return overlays


async def main() -> int:
    parser = argparse.ArgumentParser(description="Inspect (and optionally run) an estimate submission.")
    parser.add_argument("photos", nargs="+", help="Photo files, in submission order")
    parser.add_argument("--overlay", action="append", default=[], help="N=path: overlay for photo N (1-based)")
    parser.add_argument("--job-type", default="STANDARD")
    parser.add_argument("--dumpster-size", default="")
    parser.add_argument("--notes", default="")
    parser.add_argument("--call", action="store_true", help="Send the prompt to the configured model")
    args = parser.parse_args()

    photos = [load_blob(path) for path in args.photos]
    try:
        request = EstimationRequest(
            job_type=parse_job_type(args.job_type),
            dumpster_size=parse_dumpster_size(args.dumpster_size),
            notes=clean_text(args.notes, NOTES_MAX_CHARS),
            pairs=pair_photos(photos, parse_overlay_args(args.overlay, len(photos))),
        )
    except EstimatorError as e:
        print(f"Error: {e.message}")
        return 1

    document = build_prompt_document(request)
    report = {
        "photo_count": request.photo_count,
        "overlay_count": request.overlay_count,
        "segments": document.outline(),
        "overlays": {
            f"photo {pair.index + 1}": analyze_overlay(pair.overlay)
            for pair in request.pairs if pair.overlay is not None
        },
    }
    print(json.dumps(report, indent=2))

    if args.call:
        policy = load_policy(settings)
        invoker = InferenceInvoker(get_llm_provider(settings))
        try:
            text = await invoker.invoke(policy.text, document, max_output_tokens=settings.output_token_limit)
        except EstimatorError as e:
            print(f"Model call failed: {e.message}")
            return 1
        result = interpret(text)
        print(f"\n--- {invoker.model} ({policy.version}), confidence={result.confidence} ---")
        print(result.text)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
