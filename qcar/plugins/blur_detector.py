"""Photo sharpness check using the variance of the Laplacian."""

import asyncio
import io
import logging
import math
import time
from typing import Dict, Hashable, Iterable, Optional, Tuple

import numpy as np
from PIL import Image

from ..models.sharpness import (
    ACCEPTABLE_MESSAGE,
    BLURRY_MESSAGE,
    SHARP_MESSAGE,
    Analyzed,
    SharpnessOutcome,
    SharpnessResult,
    Unanalyzable,
)
from ..utils.config import SharpnessConfig
from ..utils.errors import ImageProcessingError

logger = logging.getLogger(__name__)

# Luma weights (ITU-R BT.601)
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


def scale_factor(
    width: int,
    height: int,
    max_dimension: int = 200,
    clamp_upscale: bool = True
) -> float:
    """
    Factor that maps the longer side of an image onto max_dimension.

    With clamp_upscale the factor never exceeds 1.0, so images already
    smaller than max_dimension are analyzed at their native size.
    """
    scale = min(max_dimension / width, max_dimension / height)
    if clamp_upscale:
        return min(scale, 1.0)
    return scale


def scaled_size(width: int, height: int, scale: float) -> Tuple[int, int]:
    # Truncate like a canvas size assignment; keep at least one pixel
    return max(1, int(width * scale)), max(1, int(height * scale))


def to_grayscale(rgb: np.ndarray) -> np.ndarray:
    """
    Convert an (H, W, 3+) pixel array to luminance.

    Any alpha channel is ignored.
    """
    return rgb[..., :3].astype(np.float64) @ LUMA_WEIGHTS


def laplacian_variance(gray: np.ndarray) -> float:
    """
    Mean squared response of the 4-neighbour Laplacian over interior pixels.

    Kernel:
        [0,  1, 0]
        [1, -4, 1]
        [0,  1, 0]

    Args:
        gray: 2-D luminance array, at least 3x3

    Returns:
        Sum of squared responses divided by the interior pixel count

    Raises:
        ValueError: If the array has no interior pixels
    """
    height, width = gray.shape
    if height < 3 or width < 3:
        raise ValueError(f"Image too small for Laplacian ({width}x{height})")

    center = gray[1:-1, 1:-1]
    laplacian = (
        gray[:-2, 1:-1]
        + gray[1:-1, :-2]
        + gray[1:-1, 2:]
        + gray[2:, 1:-1]
        - 4.0 * center
    )
    return float(np.mean(laplacian * laplacian))


def score_from_variance(variance: float, threshold: float = 100.0) -> int:
    """Normalize variance to 0-100, saturating at 100."""
    # Round half up, matching the scores users have already seen
    return min(100, int(math.floor(variance / threshold * 100 + 0.5)))


def message_for(is_blurry: bool, score: int, acceptable_score: int = 60) -> str:
    if is_blurry:
        return BLURRY_MESSAGE
    if score < acceptable_score:
        return ACCEPTABLE_MESSAGE
    return SHARP_MESSAGE


class BlurDetector:
    """
    Classifies accident-scene photos as usably sharp or blurry.

    The check fails open: anything that cannot be decoded or measured is
    reported as not blurry with score 100 so a failed check never blocks
    claim submission.

    Evaluations share no state, so any number may run concurrently.
    `analyzing` tracks which caller-supplied photo ids are in flight.
    """

    def __init__(self, config: Optional[SharpnessConfig] = None):
        """
        Initialize blur detector.

        Args:
            config: Threshold and downscale settings; defaults when omitted
        """
        self.config = config or SharpnessConfig()
        self.analyzing: Dict[Hashable, bool] = {}
        logger.info(
            f"Initialized BlurDetector: threshold={self.config.blur_threshold}, "
            f"max_dimension={self.config.max_dimension}, "
            f"clamp_upscale={self.config.clamp_upscale}"
        )

    def is_analyzing(self, photo_id: Hashable) -> bool:
        return self.analyzing.get(photo_id, False)

    async def analyze_image(
        self,
        image_bytes: bytes,
        photo_id: Hashable = 0
    ) -> SharpnessResult:
        """
        Score one photo.

        Args:
            image_bytes: Raw image bytes in any format Pillow can decode
            photo_id: Caller correlation id, used only for in-flight state

        Returns:
            SharpnessResult; never raises for bad image data
        """
        self.analyzing[photo_id] = True
        try:
            start_time = time.time()
            outcome = await asyncio.to_thread(self.assess_bytes, image_bytes, str(photo_id))
            result = outcome.to_result()
            logger.info(
                f"Sharpness check for photo {photo_id}: score={result.score}, "
                f"blurry={result.is_blurry} in {time.time() - start_time:.3f}s"
            )
            return result
        finally:
            self.analyzing.pop(photo_id, None)

    async def batch_analyze(
        self,
        images: Iterable[Tuple[Hashable, bytes]]
    ) -> Dict[Hashable, SharpnessResult]:
        """
        Score several photos concurrently.

        Args:
            images: (photo_id, bytes) pairs

        Returns:
            Results keyed by photo id
        """
        pairs = list(images)
        results = await asyncio.gather(
            *(self.analyze_image(content, photo_id) for photo_id, content in pairs)
        )
        logger.info(f"Batch sharpness check complete: {len(results)} photos")
        return {photo_id: result for (photo_id, _), result in zip(pairs, results)}

    def assess_bytes(self, image_bytes: bytes, image_name: str = "image") -> SharpnessOutcome:
        """Decode and assess; decode failures become Unanalyzable."""
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                image.load()
                return self.assess(image)
        except Exception as e:
            error = ImageProcessingError.decode_failed(image_name, e)
            logger.warning(f"Sharpness check skipped: {error}")
            return Unanalyzable(reason=str(e))

    def assess(self, image: Image.Image) -> SharpnessOutcome:
        """
        Assess a decoded image.

        Args:
            image: Pillow image in any mode

        Returns:
            Analyzed with variance and verdict, or Unanalyzable when the
            image is too small to have interior pixels
        """
        width, height = image.size
        if width == 0 or height == 0:
            return Unanalyzable(reason="Empty image")

        scale = scale_factor(
            width,
            height,
            max_dimension=self.config.max_dimension,
            clamp_upscale=self.config.clamp_upscale,
        )
        target = scaled_size(width, height, scale)

        rgb = image.convert("RGB")
        if target != (width, height):
            rgb = rgb.resize(target, Image.BILINEAR)
        logger.debug(f"Analyzing {width}x{height} at {target[0]}x{target[1]} (scale={scale:.3f})")

        gray = to_grayscale(np.asarray(rgb))
        try:
            variance = laplacian_variance(gray)
        except ValueError as e:
            logger.warning(f"Sharpness check skipped: {e}")
            return Unanalyzable(reason=str(e))

        threshold = self.config.blur_threshold
        is_blurry = variance < threshold
        score = score_from_variance(variance, threshold)
        if is_blurry:
            # Variances just under the threshold would otherwise round up to 100
            score = min(score, 99)
        logger.debug(f"Laplacian variance={variance:.2f}, score={score}")

        return Analyzed(
            variance=variance,
            score=score,
            is_blurry=is_blurry,
            message=message_for(is_blurry, score, self.config.acceptable_score),
        )
