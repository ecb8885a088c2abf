"""Photo sharpness result models."""

from dataclasses import dataclass
from typing import Dict, Any, Union


BLURRY_MESSAGE = "Photo appears blurry. Try again with steadier hands."
ACCEPTABLE_MESSAGE = "Photo quality is acceptable but could be clearer."
SHARP_MESSAGE = "Great photo! Clear and sharp."
UNANALYZABLE_MESSAGE = "Unable to analyze"


@dataclass(frozen=True)
class SharpnessResult:
    """
    Verdict returned to the caller for one photo.

    Attributes:
        is_blurry: Whether the photo should be flagged as blurry
        score: Quality score, 0 to 100 (saturating)
        message: User-facing feedback text
    """
    is_blurry: bool
    score: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isBlurry": self.is_blurry,
            "score": self.score,
            "message": self.message,
        }


@dataclass(frozen=True)
class Analyzed:
    """
    A photo that was decoded and measured.

    Attributes:
        variance: Laplacian variance of the downscaled grayscale image
        score: Normalized score derived from the variance
        is_blurry: variance below the blur threshold
        message: Feedback text chosen from blur state and score
    """
    variance: float
    score: int
    is_blurry: bool
    message: str

    def to_result(self) -> SharpnessResult:
        return SharpnessResult(
            is_blurry=self.is_blurry,
            score=self.score,
            message=self.message,
        )


@dataclass(frozen=True)
class Unanalyzable:
    """A photo the detector could not measure; never blocks the claim."""
    reason: str

    def to_result(self) -> SharpnessResult:
        return SharpnessResult(
            is_blurry=False,
            score=100,
            message=UNANALYZABLE_MESSAGE,
        )


SharpnessOutcome = Union[Analyzed, Unanalyzable]
