"""
Tests for the OCR pipeline with a fake engine standing in for tesseract.
"""

import pytest

from card_manager.exceptions import OCRError
from card_manager.models.ocr import OCRResult
from card_manager.services.ocr_service import (
    OCR_CONFIGS,
    OCRConfig,
    OCREngine,
    OCRService,
    fuse_score,
    text_quality,
)
from card_manager.tests.samples import JAPANESE_CARD_TEXT, FakeOCREngine


class FailingEngine:
    def recognize(self, image, config, preset):
        raise OCRError("Tesseract is not installed or not on PATH")


def test_tesseract_config_string():
    assert OCRConfig(label="single_block", psm=6).to_tesseract() == "--oem 3 --psm 6 -c preserve_interword_spaces=1"
    assert [config.psm for config in OCR_CONFIGS] == [6, 4, 3]


def test_assemble_groups_words_into_lines():
    data = {
        "text": ["株式会社サンプル", "", "山田", "太郎", "noise"],
        "conf": [90, -1, 80, 70, -1],
        "block_num": [1, 1, 1, 1, 1],
        "par_num": [1, 1, 1, 1, 1],
        "line_num": [1, 1, 2, 2, 3],
    }
    result = OCREngine._assemble(data, "single_block", "otsu")

    assert result.text == "株式会社サンプル\n山田 太郎"
    assert result.word_count == 3
    assert result.confidence == 80.0


def test_text_quality():
    assert text_quality("") == 0.0
    assert text_quality("Acme Corp 03-1234-5678") == 1.0
    assert text_quality("§§§¶¶¶") == 0.0


def test_fuse_score_empty_text_scores_zero():
    candidate = fuse_score(OCRResult(text="", config="auto", preset="soft"), None)
    assert candidate.score == 0.0


def test_fuse_score_prefers_parsable_text():
    good = fuse_score(OCRResult(text=JAPANESE_CARD_TEXT, confidence=80, config="auto", preset="otsu"), None)
    noise = fuse_score(OCRResult(text="~~ ## ^^", confidence=80, config="auto", preset="otsu"), None)
    assert good.score > noise.score


class TestOCRService:
    """Test the full pipeline from image bytes to parsed fields."""

    def test_process_runs_each_preset_with_each_config(self, png_bytes, fake_engine):
        service = OCRService(fake_engine, max_presets=2)

        response = service.process(png_bytes)

        assert len(fake_engine.calls) == 2 * len(OCR_CONFIGS)
        assert len(response.candidates) == 2 * len(OCR_CONFIGS)
        assert response.parsed.get("company_name") == "Acme Corporation"
        assert response.quality is not None
        assert 0.0 < response.score <= 1.0

    def test_candidates_are_sorted_best_first(self, png_bytes, fake_engine):
        response = OCRService(fake_engine).process(png_bytes)
        scores = [candidate.score for candidate in response.candidates]
        assert scores == sorted(scores, reverse=True)
        assert response.score == scores[0]

    def test_images_are_upscaled_before_recognition(self, png_bytes, fake_engine):
        OCRService(fake_engine, upscale_factor=2.0).process(png_bytes, presets=["standard"])
        assert fake_engine.calls[0][2] == (800, 1400)

    def test_empty_text_is_a_warning_not_an_error(self, png_bytes):
        response = OCRService(FakeOCREngine(text="")).process(png_bytes)

        assert response.text == ""
        assert response.parsed.fields == {}
        assert "No text recognised" in response.warnings

    def test_engine_failure_on_every_run_raises(self, png_bytes):
        with pytest.raises(OCRError, match="not installed"):
            OCRService(FailingEngine()).process(png_bytes)

    def test_undecodable_image_raises(self, fake_engine):
        with pytest.raises(OCRError):
            OCRService(fake_engine).process(b"definitely not an image")
