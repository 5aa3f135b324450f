"""
Upload image optimization (resize + recompress to WebP).
"""

from imaging.optimizer import (
    ImageOptimizationError,
    ImageOptimizer,
    OptimizationResult,
    optimize_image,
)

__all__ = [
    "ImageOptimizationError",
    "ImageOptimizer",
    "OptimizationResult",
    "optimize_image",
]
