"""
Unit tests for the cli_workflow runner.
"""
import asyncio
import json

import pytest

import cli_workflow
from conftest import FakeOCREngine
from core.exceptions import OCRError
from services.editing_session import EditingSession


@pytest.fixture
def use_engine(monkeypatch):
    def install(engine):
        monkeypatch.setattr(
            cli_workflow,
            "get_editing_session",
            lambda settings, coordinator=None: EditingSession(ocr_engine=engine, coordinator=coordinator)
        )
    return install


class TestProcessImageCli:
    """Tests for process_image_cli."""

    def test_writes_json_and_preview(self, use_engine, fake_ocr_engine, sample_image_path, temp_dir):
        use_engine(fake_ocr_engine)
        json_path = temp_dir / "regions.json"
        preview_path = temp_dir / "preview.png"

        code = asyncio.run(cli_workflow.process_image_cli(
            sample_image_path,
            json_path=str(json_path),
            annotate_path=str(preview_path)
        ))

        assert code == 0
        # Only HELLO falls inside the 200x100 sample image
        regions = json.loads(json_path.read_text(encoding="utf-8"))
        assert [r['text'] for r in regions] == ["HELLO"]
        assert regions[0]['style']['fontFamily']
        assert preview_path.exists()

    def test_missing_image(self, use_engine, fake_ocr_engine, temp_dir):
        use_engine(fake_ocr_engine)

        code = asyncio.run(cli_workflow.process_image_cli(str(temp_dir / "missing.png")))

        assert code == 1

    def test_ocr_failure(self, use_engine, sample_image_path):
        use_engine(FakeOCREngine(error=OCRError("engine down")))

        code = asyncio.run(cli_workflow.process_image_cli(sample_image_path))

        assert code == 1
