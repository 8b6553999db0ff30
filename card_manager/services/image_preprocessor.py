"""
Image preprocessing for OCR.

Standard filters (grayscale, thresholding, contrast normalisation,
denoising, sharpening) and an image quality analysis used to decide which
preprocessing presets are worth running. All functions take and return
numpy arrays in OpenCV layout (BGR for color, 2-D uint8 for gray).
"""

import logging
from typing import Callable, Dict, List

import cv2
import numpy as np

from ..exceptions import OCRError
from ..models.ocr import QualityReport

logger = logging.getLogger(__name__)

# Quality thresholds
BLUR_VARIANCE_THRESHOLD = 100.0
DARK_THRESHOLD = 80.0
BRIGHT_THRESHOLD = 200.0
LOW_CONTRAST_THRESHOLD = 40.0
MIN_SHORT_SIDE = 600


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode encoded image bytes into a BGR array, flattening alpha onto white.

    Raises:
        OCRError: bytes are not a decodable image
    """
    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED) if buffer.size else None
    if image is None:
        raise OCRError("Could not decode image")

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)

    if image.shape[2] == 4:
        # Transparent areas become white paper
        alpha = image[:, :, 3:4].astype(np.float32) / 255.0
        color = image[:, :, :3].astype(np.float32)
        white = np.full_like(color, 255.0)
        return (color * alpha + white * (1.0 - alpha)).astype(np.uint8)

    return image


def encode_png(image: np.ndarray) -> bytes:
    ok, encoded = cv2.imencode(".png", image)
    if not ok:
        raise OCRError("Could not encode image")
    return encoded.tobytes()


def upscale(image: np.ndarray, factor: float = 2.0) -> np.ndarray:
    """Resize by factor with cubic interpolation (small text reads better larger)."""
    if factor == 1.0:
        return image
    height, width = image.shape[:2]
    size = (max(1, int(round(width * factor))), max(1, int(round(height * factor))))
    return cv2.resize(image, size, interpolation=cv2.INTER_CUBIC)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """ITU-R BT.601 luma: 0.299 R + 0.587 G + 0.114 B."""
    if image.ndim == 2:
        return image
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def global_threshold(gray: np.ndarray, threshold: int = 128) -> np.ndarray:
    """Pixels brighter than threshold become white, the rest black."""
    _, binary = cv2.threshold(gray, threshold, 255, cv2.THRESH_BINARY)
    return binary


def otsu_threshold(gray: np.ndarray) -> np.ndarray:
    """Global threshold chosen by Otsu's method."""
    _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    return binary


def adaptive_threshold(gray: np.ndarray, block_size: int = 31, c: int = 10) -> np.ndarray:
    """Local Gaussian-weighted threshold; handles uneven lighting."""
    if block_size % 2 == 0:
        block_size += 1
    return cv2.adaptiveThreshold(
        gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, block_size, c
    )


def normalize_contrast(gray: np.ndarray, alpha: float = 1.0, beta: float = 0.0) -> np.ndarray:
    """
    Stretch gray levels to the full 0-255 range, then apply
    brightness (beta) and contrast (alpha) adjustment.
    """
    stretched = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX)
    if alpha == 1.0 and beta == 0.0:
        return stretched
    return cv2.convertScaleAbs(stretched, alpha=alpha, beta=beta)


def denoise(gray: np.ndarray, method: str = "bilateral") -> np.ndarray:
    """Remove noise with a bilateral, median or Gaussian filter."""
    if method == "bilateral":
        return cv2.bilateralFilter(gray, 9, 75, 75)
    if method == "median":
        return cv2.medianBlur(gray, 3)
    if method == "gaussian":
        return cv2.GaussianBlur(gray, (5, 5), 0)
    raise ValueError(f"Unknown denoise method: {method}")


def unsharp_mask(gray: np.ndarray, amount: float = 1.5, sigma: float = 1.0) -> np.ndarray:
    """Sharpen by adding back the difference from a blurred copy."""
    blurred = cv2.GaussianBlur(gray, (0, 0), sigma)
    return cv2.addWeighted(gray, 1.0 + amount, blurred, -amount, 0)


def analyze_quality(image: np.ndarray) -> QualityReport:
    """
    Measure sharpness, brightness, contrast and noise of a photo.

    The overall score averages four 0-1 sub-scores; it feeds the OCR
    candidate scoring and preset selection.
    """
    gray = to_grayscale(image)
    height, width = gray.shape[:2]

    sharpness = float(cv2.Laplacian(gray, cv2.CV_64F).var())
    brightness = float(gray.mean())
    contrast = float(gray.std())
    noise = float(np.abs(gray.astype(np.int16) - cv2.medianBlur(gray, 3).astype(np.int16)).mean())

    sharpness_score = min(1.0, sharpness / (BLUR_VARIANCE_THRESHOLD * 3))
    brightness_score = max(0.0, 1.0 - abs(brightness - 170.0) / 170.0)
    contrast_score = min(1.0, contrast / 80.0)
    resolution_score = min(1.0, min(width, height) / float(MIN_SHORT_SIDE))
    score = (sharpness_score + brightness_score + contrast_score + resolution_score) / 4.0

    return QualityReport(
        width=width,
        height=height,
        sharpness=round(sharpness, 2),
        brightness=round(brightness, 2),
        contrast=round(contrast, 2),
        noise=round(noise, 2),
        is_blurry=sharpness < BLUR_VARIANCE_THRESHOLD,
        is_dark=brightness < DARK_THRESHOLD,
        is_bright=brightness > BRIGHT_THRESHOLD,
        is_low_contrast=contrast < LOW_CONTRAST_THRESHOLD,
        is_low_resolution=min(width, height) < MIN_SHORT_SIDE,
        score=round(max(0.0, min(1.0, score)), 4),
    )


# Presets

def preset_standard(image: np.ndarray, scale: float = 2.0) -> np.ndarray:
    """Upscale, grayscale and a fixed 128 threshold."""
    return global_threshold(to_grayscale(upscale(image, scale)))


def preset_otsu(image: np.ndarray, scale: float = 2.0) -> np.ndarray:
    gray = denoise(to_grayscale(upscale(image, scale)), "gaussian")
    return otsu_threshold(gray)


def preset_adaptive(image: np.ndarray, scale: float = 2.0) -> np.ndarray:
    gray = denoise(to_grayscale(upscale(image, scale)), "median")
    return adaptive_threshold(gray)


def preset_enhanced(image: np.ndarray, scale: float = 2.0) -> np.ndarray:
    """Contrast stretch, edge-preserving denoise and sharpening before binarising."""
    gray = normalize_contrast(to_grayscale(upscale(image, scale)))
    gray = denoise(gray, "bilateral")
    gray = unsharp_mask(gray)
    return adaptive_threshold(gray)


def preset_soft(image: np.ndarray, scale: float = 2.0) -> np.ndarray:
    """Grayscale only, for images where binarising destroys thin strokes."""
    gray = denoise(to_grayscale(upscale(image, scale)), "median")
    return normalize_contrast(gray)


PREPROCESS_PRESETS: Dict[str, Callable[..., np.ndarray]] = {
    "standard": preset_standard,
    "otsu": preset_otsu,
    "adaptive": preset_adaptive,
    "enhanced": preset_enhanced,
    "soft": preset_soft,
}


def select_presets(quality: QualityReport, max_presets: int = 3) -> List[str]:
    """
    Order presets by how likely they are to help this photo.
    """
    if quality.is_dark or quality.is_bright or quality.is_low_contrast:
        order = ["enhanced", "adaptive", "otsu", "soft", "standard"]
    elif quality.is_blurry:
        order = ["enhanced", "soft", "otsu", "adaptive", "standard"]
    else:
        order = ["otsu", "standard", "adaptive", "enhanced", "soft"]

    return order[:max(1, max_presets)]


def preprocess(image: np.ndarray, preset: str, scale: float = 2.0) -> np.ndarray:
    """Run a named preset."""
    try:
        pipeline = PREPROCESS_PRESETS[preset]
    except KeyError:
        raise ValueError(f"Unknown preprocessing preset: {preset}") from None

    logger.debug(f"Applying preset '{preset}' to {image.shape[1]}x{image.shape[0]} image")
    return pipeline(image, scale=scale)
