"""End-to-end tests for the sheet rectification pipeline."""

from pathlib import Path

import cv2
import numpy as np
import pytest

from sheet_rectifier import SheetPipeline, rectify_image
from sheet_rectifier.config import Config, get_default_config
from sheet_rectifier.exceptions import BoundaryNotFoundError, DirectoryError
from sheet_rectifier.pipeline import main
from sheet_rectifier.processors import Region


def _write(path: Path, image: np.ndarray) -> Path:
    cv2.imwrite(str(path), image)
    return path


@pytest.fixture
def quadrilateral_config(test_config: Config) -> Config:
    test_config.boundary.strategy = "quadrilateral"
    return test_config


class TestRectifyImage:
    """Single in-memory photographs."""

    def test_upright_sheet(self, sheet_photo):
        output, context = rectify_image(sheet_photo)

        assert context.boundary.region == Region(200, 340, 1580, 2320)
        assert not context.boundary.used_full_frame
        assert context.orientation.total_rotation == 0

        # Rule ends at sheet row 114, text starts at row 140
        assert context.content_top.strategy == "rule_line"
        assert 135 <= context.content_top.row <= 139
        assert output.shape == (2320 - context.content_top.row, 1550, 3)

    def test_landscape_sheet_is_turned_portrait(self, landscape_photo):
        output, context = rectify_image(landscape_photo)

        assert context.orientation.portrait_rotation == 270
        assert not context.orientation.flipped
        assert context.content_top.strategy == "rule_line"
        assert output.shape[0] > output.shape[1]

    def test_upside_down_sheet_is_flipped(self, upside_down_photo):
        output, context = rectify_image(upside_down_photo)

        assert context.orientation.flipped
        assert context.orientation.total_rotation == 180
        assert context.content_top.strategy == "rule_line"
        assert 135 <= context.content_top.row <= 139
        assert output.shape[1] == 1550

    def test_input_is_not_modified(self, sheet_photo):
        original = sheet_photo.copy()

        rectify_image(sheet_photo)

        np.testing.assert_array_equal(sheet_photo, original)

    def test_quadrilateral_strategy(self, sheet_photo, quadrilateral_config):
        output, context = rectify_image(sheet_photo, quadrilateral_config)

        assert context.boundary.strategy == "quadrilateral"
        assert context.boundary.quadrilateral is not None
        assert context.orientation.total_rotation == 0
        # Sheet is 1600 columns wide before the right margin
        assert abs(output.shape[1] - 1570) <= 6

    def test_quadrilateral_failure_uses_full_frame(self, quadrilateral_config):
        image = np.full((600, 400, 3), 50, dtype=np.uint8)

        output, context = rectify_image(image, quadrilateral_config)

        assert context.boundary.used_full_frame
        assert context.content_top.strategy == "ink_density"
        assert output.shape == (600, 370, 3)

    def test_quadrilateral_failure_can_raise(self, quadrilateral_config):
        quadrilateral_config.boundary.use_full_frame_on_failure = False
        image = np.full((600, 400, 3), 50, dtype=np.uint8)

        with pytest.raises(BoundaryNotFoundError):
            rectify_image(image, quadrilateral_config)

    def test_fallback_reserve_used_when_cascade_inconclusive(self, test_config):
        test_config.content_top.strategies = ["rule_line"]
        image = np.full((600, 400, 3), 128, dtype=np.uint8)

        output, context = rectify_image(image, test_config)

        assert context.boundary.used_full_frame
        assert context.content_top.strategy == "fallback"
        assert context.content_top.row == 6
        assert output.shape == (594, 370, 3)


class TestSheetPipeline:
    """Pipeline object, files and directories."""

    def test_pipeline_initialization(self):
        pipeline = SheetPipeline()
        assert isinstance(pipeline.config, Config)

        custom = get_default_config()
        custom.boundary.strategy = "quadrilateral"
        assert SheetPipeline(custom).boundary_locator.strategy == "quadrilateral"

    def test_contexts_are_independent(self, test_config):
        test_config.content_top.strategies = ["rule_line"]
        pipeline = SheetPipeline(test_config)

        short_sheet = np.zeros((200, 300, 3), dtype=np.uint8)
        short_sheet[100:120, 20:280] = 255  # top margin skipped, reserve 6 + 40
        _, first = pipeline.process_image(short_sheet)
        _, second = pipeline.process_image(np.full((600, 400, 3), 128, dtype=np.uint8))

        assert first.content_top.row == 19  # clamped to the 20-row sheet
        assert second.content_top.row == 6

    def test_process_file(self, temp_dir, sheet_photo, test_config):
        source = _write(temp_dir / "sheet.png", sheet_photo)
        target = temp_dir / "out" / "sheet_new.jpg"

        result = SheetPipeline(test_config).process_file(source, target)

        assert result == target
        written = cv2.imread(str(target))
        assert written.shape[1] == 1550

    def test_process_file_failure_returns_none(self, temp_dir, test_config):
        broken = temp_dir / "broken.jpg"
        broken.write_bytes(b"\xff\xd8 truncated")
        target = temp_dir / "broken_new.jpg"

        assert SheetPipeline(test_config).process_file(broken, target) is None
        assert not target.exists()

    def test_boundary_failure_writes_nothing(self, temp_dir, quadrilateral_config):
        quadrilateral_config.boundary.use_full_frame_on_failure = False
        source = _write(temp_dir / "blank.png", np.full((600, 400, 3), 50, dtype=np.uint8))
        target = temp_dir / "blank_new.jpg"

        assert SheetPipeline(quadrilateral_config).process_file(source, target) is None
        assert not target.exists()

    def test_debug_images_written(self, temp_dir, test_config):
        test_config.save_debug_images = True
        test_config.debug_dir = str(temp_dir / "debug")
        source = _write(temp_dir / "page.png", np.full((600, 400, 3), 128, dtype=np.uint8))

        SheetPipeline(test_config).process_file(source, temp_dir / "page_new.jpg")

        written = {p.name for p in (temp_dir / "debug" / "page").iterdir()}
        assert "boundary_overlay.png" in written
        assert "content_top_overlay.png" in written

    def test_debug_save_failure_writes_no_output(self, temp_dir, test_config):
        blocker = temp_dir / "debug"
        blocker.write_text("not a directory", encoding="utf-8")
        test_config.save_debug_images = True
        test_config.debug_dir = str(blocker)
        source = _write(temp_dir / "page.png", np.full((600, 400, 3), 128, dtype=np.uint8))
        target = temp_dir / "page_new.jpg"

        assert SheetPipeline(test_config).process_file(source, target) is None
        assert not target.exists()

    def test_process_directory(self, temp_dir, sheet_photo, test_config):
        _write(temp_dir / "page1.jpg", sheet_photo)
        _write(temp_dir / "page2.jpeg", sheet_photo)
        _write(temp_dir / "old_new.jpg", sheet_photo)  # earlier output
        (temp_dir / "broken.jpg").write_bytes(b"not an image")
        (temp_dir / "notes.txt").write_text("skip me", encoding="utf-8")

        outputs = SheetPipeline(test_config).process_directory(temp_dir)

        assert sorted(p.name for p in outputs) == ["page1_new.jpg", "page2_new.jpg"]
        assert not (temp_dir / "broken_new.jpg").exists()
        assert not (temp_dir / "old_new_new.jpg").exists()

    def test_process_directory_into_output_dir(self, temp_dir, sheet_photo, test_config):
        input_dir = temp_dir / "in"
        input_dir.mkdir()
        _write(input_dir / "page.jpg", sheet_photo)

        outputs = SheetPipeline(test_config).process_directory(input_dir, temp_dir / "out")

        assert outputs == [temp_dir / "out" / "page_new.jpg"]
        assert outputs[0].exists()

    def test_missing_directory(self, temp_dir, test_config):
        with pytest.raises(DirectoryError):
            SheetPipeline(test_config).process_directory(temp_dir / "missing")

    def test_run_missing_file(self, temp_dir, test_config):
        assert SheetPipeline(test_config).run(temp_dir / "missing.jpg") == []


class TestCommandLine:
    """The sheet-rectify entry point."""

    def test_single_file(self, temp_dir, sheet_photo):
        source = _write(temp_dir / "photo.png", sheet_photo)
        target = temp_dir / "photo_out.jpg"

        assert main([str(source), "-o", str(target), "--no-rich"]) == 0
        assert target.exists()

    def test_missing_input(self, temp_dir, capsys):
        assert main([str(temp_dir / "missing.jpg"), "--no-rich"]) == 1
        assert "missing.jpg" in capsys.readouterr().out

    def test_directory(self, temp_dir, sheet_photo):
        _write(temp_dir / "a.jpg", sheet_photo)

        assert main([str(temp_dir), "--no-rich", "--rotation", "clockwise"]) == 0
        assert (temp_dir / "a_new.jpg").exists()

    def test_invalid_config(self, temp_dir):
        config_path = temp_dir / "bad.yaml"
        config_path.write_text("boundary:\n  blur_ksize: 4\n", encoding="utf-8")

        assert main([str(temp_dir), "-c", str(config_path), "--no-rich"]) == 2

    def test_config_file_and_overrides(self, temp_dir):
        config_path = temp_dir / "config.yaml"
        config_path.write_text("final_crop:\n  right_margin: 10\n", encoding="utf-8")
        source = _write(temp_dir / "blank.png", np.full((600, 400, 3), 50, dtype=np.uint8))
        target = temp_dir / "blank_out.png"

        code = main([
            str(source), "-o", str(target), "-c", str(config_path),
            "--strategy", "quadrilateral", "--no-rich",
        ])

        assert code == 0
        assert cv2.imread(str(target)).shape[1] == 390
