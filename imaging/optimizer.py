"""
Image optimization pipeline for menu and logo uploads.

    validate -> resize to fit 600x427 -> re-encode as WebP at falling quality

Compression tries qualities 80, 70, 60, 50, 40 in that order and stops at the
first encoding within the target budget (150 KB), at the quality floor, or at
the attempt limit, whichever comes first. Any encoding above the hard cap
(1 MB) fails the whole operation; no oversized file is ever returned.

For a given input the sequence of qualities tried is always the same.
"""

import io
import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from shared.config import Settings

logger = logging.getLogger("image_optimizer")


ALLOWED_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")
OUTPUT_TYPE = "image/webp"

TARGET_WIDTH = 600
TARGET_HEIGHT = 427
TARGET_BYTES = 150 * 1024
MAX_BYTES = 1024 * 1024

MAX_QUALITY = 80
MIN_QUALITY = 40
QUALITY_STEP = 10
MAX_ATTEMPTS = 8


class ImageOptimizationError(ValueError):
    """The image can't be optimized; the message is shown to the user."""


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int


@dataclass(frozen=True)
class OptimizedFile:
    name: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class OptimizationResult:
    file: OptimizedFile
    original_size: int
    final_size: int
    compression_ratio: float  # percent saved
    dimensions: Dimensions
    qualities_tried: tuple[int, ...] = ()


def validate_image(content_type: str) -> None:
    """
    Check the upload's format. Size is not limited here.

    Raises:
        ImageOptimizationError: If the type isn't on the allow-list
    """
    if (content_type or "").lower() not in ALLOWED_TYPES:
        raise ImageOptimizationError("Formato não permitido. Use apenas JPG, PNG ou WEBP.")


def fit_within(width: int, height: int, box_width: int, box_height: int) -> Dimensions:
    """
    Scale (width, height) to fit the box, keeping the aspect ratio.

    Wider-than-box images are limited by width, the rest by height.
    """
    if width <= 0 or height <= 0:
        raise ImageOptimizationError("Erro ao carregar imagem")
    aspect = width / height
    if aspect > box_width / box_height:
        final_width, final_height = box_width, box_width / aspect
    else:
        final_width, final_height = box_height * aspect, box_height
    return Dimensions(
        width=min(box_width, max(1, round(final_width))),
        height=min(box_height, max(1, round(final_height))),
    )


def quality_schedule(
    max_quality: int = MAX_QUALITY,
    min_quality: int = MIN_QUALITY,
    step: int = QUALITY_STEP,
    max_attempts: int = MAX_ATTEMPTS,
) -> list[int]:
    """The qualities compression will try, in order."""
    qualities = []
    quality = max_quality
    while len(qualities) < max_attempts:
        qualities.append(quality)
        if quality <= min_quality:
            break
        quality = max(min_quality, quality - step)
    return qualities


class ImageOptimizer:
    """
    Resize and recompress uploads to a small WebP.

    Example:
        optimizer = ImageOptimizer()
        result = optimizer.optimize(data, "image/jpeg", filename="pizza.jpg")
        upload(result.file.data, result.file.name)
    """

    def __init__(
        self,
        target_width: int = TARGET_WIDTH,
        target_height: int = TARGET_HEIGHT,
        target_bytes: int = TARGET_BYTES,
        max_bytes: int = MAX_BYTES,
    ):
        self.target_width = target_width
        self.target_height = target_height
        self.target_bytes = target_bytes
        self.max_bytes = max_bytes

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImageOptimizer":
        return cls(
            target_width=settings.image_target_width,
            target_height=settings.image_target_height,
            target_bytes=settings.image_target_kb * 1024,
            max_bytes=settings.image_max_kb * 1024,
        )

    def optimize(self, data: bytes, content_type: str, filename: str = "upload") -> OptimizationResult:
        """
        Run the full pipeline on an uploaded file.

        Raises:
            ImageOptimizationError: Bad format, undecodable data, or output
                still above the hard cap
        """
        original_size = len(data)
        logger.info(f"Optimizing {filename} ({round(original_size / 1024)}KB)")

        validate_image(content_type)
        image = self.resize(self._load(data))
        encoded, qualities = self.compress(image)

        optimized = OptimizedFile(
            name=f"optimized_{int(time.time() * 1000)}.webp",
            content_type=OUTPUT_TYPE,
            data=encoded,
        )
        ratio = (original_size - optimized.size) / original_size * 100
        logger.info(
            f"Result: {round(original_size / 1024)}KB -> {round(optimized.size / 1024)}KB "
            f"({ratio:.1f}% smaller)"
        )
        return OptimizationResult(
            file=optimized,
            original_size=original_size,
            final_size=optimized.size,
            compression_ratio=ratio,
            dimensions=Dimensions(image.width, image.height),
            qualities_tried=tuple(qualities),
        )

    @staticmethod
    def _load(data: bytes) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ImageOptimizationError("Erro ao carregar imagem") from e
        image = ImageOps.exif_transpose(image)
        if image.mode not in ("RGB", "RGBA"):
            image = image.convert("RGBA" if "A" in image.getbands() or image.mode == "P" else "RGB")
        return image

    def resize(self, image: Image.Image) -> Image.Image:
        """Scale the image to fit the target box."""
        size = fit_within(image.width, image.height, self.target_width, self.target_height)
        logger.debug(f"Dimensions: {image.width}x{image.height} -> {size.width}x{size.height}")
        return image.resize((size.width, size.height), Image.Resampling.LANCZOS)

    def compress(self, image: Image.Image, qualities: Optional[list[int]] = None) -> tuple[bytes, list[int]]:
        """
        Encode at falling qualities until the result fits the target budget.

        Returns:
            The chosen encoding and the qualities tried, in order
        """
        qualities = qualities or quality_schedule()
        tried: list[int] = []
        encoded = b""
        for quality in qualities:
            tried.append(quality)
            encoded = self._encode(image, quality)
            size_kb = round(len(encoded) / 1024)
            logger.debug(f"Attempt {len(tried)}: quality {quality} -> {size_kb}KB")

            if len(encoded) > self.max_bytes:
                raise ImageOptimizationError(
                    f"Imagem muito grande mesmo após otimização ({size_kb}KB). "
                    "Tente uma imagem menor."
                )
            if len(encoded) <= self.target_bytes:
                break
        return encoded, tried

    @staticmethod
    def _encode(image: Image.Image, quality: int) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, format="WEBP", quality=quality)
        return buffer.getvalue()


def optimize_image(data: bytes, content_type: str, filename: str = "upload") -> OptimizationResult:
    """Optimize with the default targets."""
    return ImageOptimizer().optimize(data, content_type, filename)
