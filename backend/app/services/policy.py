"""
Policy profiles: the fixed instruction documents sent to the model with
every estimate. The text is delivered verbatim; nothing here interprets it.

``standard`` is the canonical profile and produces the three-line format the
Response Interpreter and history UI expect. ``scene-analysis`` is an
alternate profile with a longer, sectioned answer. Each stored estimate
records the version of the profile that produced it.
"""
import logging
from dataclasses import dataclass
from pathlib import Path

from app.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolicyProfile:
    name: str
    version: str
    text: str


_SHARED_HEURISTICS = """\
JOB TYPES (given in the job details):
- STANDARD: a loose pile or room of junk. Estimate everything in scope.
- DUMPSTER_CLEANOUT: estimate only the material INSIDE the dumpster that must be removed. The dumpster walls, floor and lid are never volume.
- DUMPSTER_OVERFLOW: estimate only the material ABOVE the rim of the dumpster and any material on the ground around it. Material below the rim is already paid for and is NOT counted. If the dumpster size is given, use it to calibrate the rim height and footprint.
- CONTAINER_SERVICE: estimate the material in and around carts or rolltainers. The carts and rolltainers themselves are never volume.

SCOPE MARKUP:
- An overlay image that immediately follows a photo annotates that photo.
- Green marks = include. Red marks = exclude.
- If an overlay has no green marks, everything visible is in scope except red-marked areas.
- Never count the container (dumpster, cart, rolltainer) itself.

REFERENCE DIMENSIONS (use visible objects to set scale):
- Standard interior door: 80 in tall, 30-36 in wide.
- Kitchen counter: 36 in high. Dining chair seat: 18 in high.
- 96-gallon cart: 46 in tall, 0.5 cubic yards. 64-gallon cart: 42 in tall.
- Rolltainer: about 2 cubic yards.
- Roll-off dumpsters: 10 yd (about 3.5 ft walls), 20 yd (about 4 ft), 30 yd (about 6 ft), 40 yd (about 8 ft); most are 7.5-8 ft wide.
- Pickup truck bed: about 2-3 cubic yards level.

PACKING / VOID FACTORS (multiply the bounding volume):
- Loose bagged trash: 0.8-0.9.
- Furniture, appliances, boxes: 0.6-0.75 (large voids between items).
- Construction debris (drywall, lumber, tile): 0.7-0.85.
- Brush and yard waste: 0.4-0.6 unless compacted.
- Mattresses and box springs: count at full bounding size.

METHOD:
- Identify the in-scope area in each photo, using overlays where provided.
- Cross-reference photos that show the same pile from different angles. Do not double count.
- Estimate the bounding dimensions against reference objects, apply the packing factor, and convert to cubic yards (27 cubic feet per cubic yard).
- Round the final range to whole or half cubic yards and keep it tight (spread of 1-3 yards for most jobs).
"""

STANDARD_POLICY = PolicyProfile(
    name="standard",
    version="standard-v1",
    text=(
        "You are an experienced junk-removal estimator. You look at job-site photos and estimate "
        "the volume of material that must be hauled away, in cubic yards.\n\n"
        + _SHARED_HEURISTICS
        + "\nOUTPUT FORMAT (exactly these three lines, nothing else):\n"
        "Estimated Volume: <low>-<high> cubic yards\n"
        "Confidence: <Low|Medium|High>\n"
        "Notes: <one short sentence, or None>\n"
    ),
)

SCENE_ANALYSIS_POLICY = PolicyProfile(
    name="scene-analysis",
    version="scene-analysis-v1",
    text=(
        "You are an experienced junk-removal estimator. You look at job-site photos and estimate "
        "the volume of material that must be hauled away, in cubic yards.\n\n"
        + _SHARED_HEURISTICS
        + "\nOUTPUT FORMAT:\n"
        "SCENE ANALYSIS:\n<two or three sentences describing what is in scope and the scale references used>\n\n"
        "BREAKDOWN BY AREA:\n- <area>: <low>-<high> cubic yards\n(one line per distinct area or pile)\n\n"
        "Estimated Volume: <low>-<high> cubic yards\n"
        "Confidence: <Low|Medium|High>\n"
        "Notes: <one short sentence, or None>\n"
    ),
)

PROFILES = {profile.name: profile for profile in (STANDARD_POLICY, SCENE_ANALYSIS_POLICY)}


def load_policy(settings: Settings) -> PolicyProfile:
    """Resolves the configured profile, with an optional file override for its text."""
    try:
        profile = PROFILES[settings.policy_profile]
    except KeyError:
        raise ValueError(
            f"Unknown POLICY_PROFILE '{settings.policy_profile}'. "
            f"Known profiles: {', '.join(sorted(PROFILES))}"
        )

    if settings.policy_text_path:
        text = Path(settings.policy_text_path).read_text(encoding="utf-8")
        logger.info(f"Loaded policy text override from {settings.policy_text_path}")
        return PolicyProfile(name=profile.name, version=f"{profile.name}-file", text=text)

    return profile
