"""
OCR pipeline for business card photos.

quality analysis -> preprocessing presets -> multi-config tesseract runs
-> score fusion -> field extraction
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pytesseract
from PIL import Image

from . import image_preprocessor as prep
from .text_parser import field_coverage, parse_ocr_text
from ..exceptions import OCRError
from ..models.ocr import OCRCandidate, OCRResponse, OCRResult, QualityReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OCRConfig:
    """A tesseract invocation variant."""
    label: str
    psm: int
    oem: int = 3

    def to_tesseract(self) -> str:
        return f"--oem {self.oem} --psm {self.psm} -c preserve_interword_spaces=1"


OCR_CONFIGS = [
    OCRConfig(label="single_block", psm=6),
    OCRConfig(label="single_column", psm=4),
    OCRConfig(label="auto", psm=3),
]

# Score fusion weights
WEIGHT_ENGINE_CONFIDENCE = 0.45
WEIGHT_TEXT_QUALITY = 0.2
WEIGHT_FIELD_COVERAGE = 0.25
WEIGHT_IMAGE_QUALITY = 0.1

# Characters expected on a card: latin, digits, kana, CJK and common punctuation
_PLAUSIBLE_CHARS = re.compile(
    r"[A-Za-z0-9\u3040-\u30FF\u4E00-\u9FFF\uFF10-\uFF5A@.,:;()+\-/#&\u3012\u30FB\s]"
)


class OCREngine:
    """
    Thin wrapper over pytesseract.

    recognize() returns text and the mean confidence of recognised words.
    """

    def __init__(self, languages: str = "jpn+eng", tesseract_cmd: Optional[str] = None):
        self.languages = languages
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def recognize(self, image: np.ndarray, config: OCRConfig, preset: str) -> OCRResult:
        """
        Run tesseract on a preprocessed image.

        Raises:
            OCRError: tesseract missing or failed
        """
        pil_image = Image.fromarray(image)
        try:
            data = pytesseract.image_to_data(
                pil_image,
                lang=self.languages,
                config=config.to_tesseract(),
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractNotFoundError as e:
            raise OCRError("Tesseract is not installed or not on PATH") from e
        except pytesseract.TesseractError as e:
            raise OCRError(f"Tesseract failed: {e}") from e

        return self._assemble(data, config.label, preset)

    @staticmethod
    def _assemble(data: dict, config_label: str, preset: str) -> OCRResult:
        """Rebuild line text from word boxes and average word confidences."""
        lines = {}
        confidences = []

        for i, word in enumerate(data.get("text", [])):
            word = (word or "").strip()
            conf = float(data["conf"][i])
            if not word or conf < 0:
                continue

            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            lines.setdefault(key, []).append(word)
            confidences.append(conf)

        text = "\n".join(" ".join(words) for _, words in sorted(lines.items()))
        mean_conf = sum(confidences) / len(confidences) if confidences else 0.0

        return OCRResult(
            text=text,
            confidence=round(max(0.0, min(100.0, mean_conf)), 2),
            word_count=len(confidences),
            config=config_label,
            preset=preset,
        )


def text_quality(text: str) -> float:
    """Share of characters that plausibly belong on a business card."""
    stripped = text.strip()
    if not stripped:
        return 0.0
    plausible = len(_PLAUSIBLE_CHARS.findall(stripped))
    return round(plausible / len(stripped), 4)


def fuse_score(result: OCRResult, quality: Optional[QualityReport]) -> OCRCandidate:
    """
    Combine engine confidence, text plausibility, parsed field coverage and
    image quality into a single 0-1 score.
    """
    if not result.text.strip():
        return OCRCandidate(result=result, score=0.0)

    tq = text_quality(result.text)
    coverage = field_coverage(parse_ocr_text(result.text))
    image_score = quality.score if quality else 0.5

    score = (
        WEIGHT_ENGINE_CONFIDENCE * (result.confidence / 100.0)
        + WEIGHT_TEXT_QUALITY * tq
        + WEIGHT_FIELD_COVERAGE * coverage
        + WEIGHT_IMAGE_QUALITY * image_score
    )
    return OCRCandidate(
        result=result,
        score=round(max(0.0, min(1.0, score)), 4),
        text_quality=tq,
        field_coverage=coverage,
    )


class OCRService:
    """
    Runs the full OCR pipeline on an uploaded image.
    """

    def __init__(
        self,
        engine: OCREngine,
        configs: Optional[List[OCRConfig]] = None,
        upscale_factor: float = 2.0,
        max_presets: int = 3,
    ):
        self.engine = engine
        self.configs = configs or OCR_CONFIGS
        self.upscale_factor = upscale_factor
        self.max_presets = max_presets

    def process(self, image_bytes: bytes, presets: Optional[List[str]] = None) -> OCRResponse:
        """
        Recognise and parse a business card photo.

        Args:
            image_bytes: Encoded image (JPEG, PNG, WebP)
            presets: Force specific preprocessing presets instead of choosing by quality

        Returns:
            OCRResponse with the best candidate's text and parsed fields

        Raises:
            OCRError: image could not be decoded or the engine failed on every run
        """
        image = prep.decode_image(image_bytes)
        quality = prep.analyze_quality(image)
        logger.info(
            f"Image {quality.width}x{quality.height} quality={quality.score:.2f} "
            f"(sharpness={quality.sharpness}, brightness={quality.brightness}, contrast={quality.contrast})"
        )

        presets = presets or prep.select_presets(quality, self.max_presets)
        candidates: List[OCRCandidate] = []
        errors: List[str] = []

        for preset in presets:
            processed = prep.preprocess(image, preset, scale=self.upscale_factor)
            for config in self.configs:
                try:
                    result = self.engine.recognize(processed, config, preset)
                except OCRError as e:
                    logger.warning(f"OCR run {preset}/{config.label} failed: {e}")
                    errors.append(str(e))
                    continue
                candidates.append(fuse_score(result, quality))

        if not candidates:
            raise OCRError(errors[0] if errors else "OCR produced no result")

        candidates.sort(key=lambda c: c.score, reverse=True)
        best = candidates[0]
        logger.info(
            f"Best OCR candidate {best.result.preset}/{best.result.config} "
            f"score={best.score:.3f} conf={best.result.confidence:.1f}"
        )

        warnings = []
        if quality.is_blurry:
            warnings.append("Image looks blurry; retake the photo for better results")
        if quality.is_low_resolution:
            warnings.append("Image resolution is low")
        if not best.result.text.strip():
            warnings.append("No text recognised")

        return OCRResponse(
            text=best.result.text,
            parsed=parse_ocr_text(best.result.text),
            quality=quality,
            preset=best.result.preset,
            config=best.result.config,
            score=best.score,
            candidates=candidates,
            warnings=warnings,
        )
