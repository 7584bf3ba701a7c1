"""
Tests for configuration loading and candidate size files.
"""

import pytest
import tempfile
from pathlib import Path

from preview_geometry.config import (
    PreviewConfig,
    CameraSettings,
    FilePaths,
    Size,
    ScalePolicy,
)
from preview_geometry.data_loader import CandidateSource, load_candidate_sizes


class TestSize:
    """Tests for the Size value type."""

    def test_parse(self):
        assert Size.parse("1920x1080") == Size(1920, 1080)
        assert Size.parse(" 640X480 ") == Size(640, 480)
        assert Size.parse("1280*720") == Size(1280, 720)

    @pytest.mark.parametrize("text", ["1920", "axb", "1x2x3", ""])
    def test_parse_invalid(self, text):
        with pytest.raises(ValueError):
            Size.parse(text)

    def test_properties(self):
        size = Size(1920, 1080)
        assert size.area == 2073600
        assert size.aspect_ratio == pytest.approx(16 / 9)
        assert size.transposed() == Size(1080, 1920)
        assert str(size) == "1920x1080"
        assert not size.is_degenerate
        assert Size(0, 10).is_degenerate

    def test_hashable(self):
        assert len({Size(1, 2), Size(1, 2), Size(2, 1)}) == 2


class TestScalePolicy:
    """Tests for scale policy lookup."""

    @pytest.mark.parametrize("name, expected", [
        ("crop_fill", ScalePolicy.CROP_FILL),
        ("FIT_INSIDE", ScalePolicy.FIT_INSIDE),
        ("center_crop", ScalePolicy.CROP_FILL),
        ("center_inside", ScalePolicy.FIT_INSIDE),
        ("fit_xy", ScalePolicy.STRETCH_FILL),
        ("center", ScalePolicy.NATIVE_SIZE),
    ])
    def test_from_name(self, name, expected):
        assert ScalePolicy.from_name(name) is expected

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            ScalePolicy.from_name("zoom")


class TestPreviewConfig:
    """Tests for YAML configuration loading."""

    @pytest.fixture
    def config_file(self, tmp_path):
        content = """
viewport:
  width: 1080
  height: 2400
camera:
  facing: front
  sensor_orientation: 270
display_rotation: 90
scale_policy: center_inside
mirror: true
aspect_tolerance: 0.1
candidate_sizes:
  - 1920x1080
  - {width: 1280, height: 720}
files:
  candidate_sizes: sizes.txt
"""
        path = tmp_path / "preview.yaml"
        path.write_text(content)
        return path

    def test_load(self, config_file):
        config = PreviewConfig.from_yaml(str(config_file))

        assert config.viewport == Size(1080, 2400)
        assert config.camera.is_front_facing
        assert config.camera.sensor_orientation == 270
        assert config.display_rotation == 90
        assert config.scale_policy is ScalePolicy.FIT_INSIDE
        assert config.mirror is True
        assert config.aspect_tolerance == pytest.approx(0.1)
        assert config.candidate_sizes == [Size(1920, 1080), Size(1280, 720)]

    def test_file_paths_relative_to_config(self, config_file):
        config = PreviewConfig.from_yaml(str(config_file))
        assert config.files.candidate_sizes == str(config_file.parent / "sizes.txt")

    def test_defaults(self, tmp_path):
        path = tmp_path / "minimal.yaml"
        path.write_text("viewport: 1080x1920\n")
        config = PreviewConfig.from_yaml(str(path))

        assert config.viewport == Size(1080, 1920)
        assert not config.camera.is_front_facing
        assert config.camera.sensor_orientation == 0
        assert config.scale_policy is ScalePolicy.CROP_FILL
        assert config.aspect_tolerance == pytest.approx(0.15)
        assert config.files.candidate_sizes is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PreviewConfig.from_yaml(str(tmp_path / "nope.yaml"))

    def test_missing_viewport(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("mirror: true\n")
        with pytest.raises(ValueError):
            PreviewConfig.from_yaml(str(path))

    def test_unknown_facing(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("viewport: 1080x1920\ncamera:\n  facing: sideways\n")
        with pytest.raises(ValueError):
            PreviewConfig.from_yaml(str(path))

    def test_save_and_reload(self, tmp_path):
        config = PreviewConfig(
            viewport=Size(1080, 1920),
            camera=CameraSettings(sensor_orientation=90, is_front_facing=False),
            scale_policy=ScalePolicy.STRETCH_FILL,
            candidate_sizes=[Size(1920, 1080)],
        )
        path = tmp_path / "saved.yaml"
        config.to_yaml(str(path))

        loaded = PreviewConfig.from_yaml(str(path))
        assert loaded.viewport == config.viewport
        assert loaded.camera == config.camera
        assert loaded.scale_policy is ScalePolicy.STRETCH_FILL
        assert loaded.candidate_sizes == [Size(1920, 1080)]

    def test_save_and_reload_keeps_candidate_file(self, tmp_path, monkeypatch):
        """Relative config paths survive a save/load cycle."""
        monkeypatch.chdir(tmp_path)
        cfg_dir = Path("cfg")
        cfg_dir.mkdir()
        (cfg_dir / "sizes.txt").write_text("1920x1080\n1280x720\n")
        (cfg_dir / "preview.yaml").write_text(
            "viewport: 1080x1920\nfiles:\n  candidate_sizes: sizes.txt\n"
        )

        first = PreviewConfig.from_yaml("cfg/preview.yaml")
        first.to_yaml("cfg/saved.yaml")
        reloaded = PreviewConfig.from_yaml("cfg/saved.yaml")

        assert Path(reloaded.files.candidate_sizes) == Path(first.files.candidate_sizes)
        assert CandidateSource(reloaded).load() == [Size(1920, 1080), Size(1280, 720)]

    def test_save_to_other_folder_rewrites_relative_path(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        Path("cfg").mkdir()
        Path("out").mkdir()
        Path("cfg/sizes.txt").write_text("640x480\n")
        config = PreviewConfig(
            viewport=Size(1080, 1920),
            files=FilePaths(candidate_sizes="cfg/sizes.txt"),
        )

        config.to_yaml("out/saved.yaml")
        reloaded = PreviewConfig.from_yaml("out/saved.yaml")

        assert CandidateSource(reloaded).load() == [Size(640, 480)]

    def test_save_keeps_absolute_path(self, tmp_path):
        sizes = tmp_path / "sizes.txt"
        sizes.write_text("640x480\n")
        config = PreviewConfig(
            viewport=Size(1080, 1920),
            files=FilePaths(candidate_sizes=str(sizes)),
        )
        path = tmp_path / "nested" / "saved.yaml"
        path.parent.mkdir()

        config.to_yaml(str(path))
        assert PreviewConfig.from_yaml(str(path)).files.candidate_sizes == str(sizes)

    def test_empty_sections_use_defaults(self, tmp_path):
        path = tmp_path / "sparse.yaml"
        path.write_text("viewport: 1080x1920\ncamera:\nfiles:\ncandidate_sizes:\n")
        config = PreviewConfig.from_yaml(str(path))

        assert config.camera == CameraSettings()
        assert config.files.candidate_sizes is None
        assert config.candidate_sizes == []

    @pytest.mark.parametrize("content", [
        "- 1080x1920\n",
        "just a string\n",
        "viewport: 1080x1920\ncamera: front\n",
        "viewport: 1080x1920\nfiles: [sizes.txt]\n",
    ])
    def test_malformed_structure_raises_value_error(self, tmp_path, content):
        path = tmp_path / "bad.yaml"
        path.write_text(content)
        with pytest.raises(ValueError):
            PreviewConfig.from_yaml(str(path))


class TestCandidateSizeFiles:
    """Tests for candidate size list loading."""

    @pytest.fixture
    def csv_file(self):
        content = """width, height
1920, 1080
1280, 720
640, 480
"""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.csv', delete=False) as f:
            f.write(content)
            return f.name

    @pytest.fixture
    def text_file(self):
        content = """# supported preview sizes
1920x1080

1280x720
1440x1080
"""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.txt', delete=False) as f:
            f.write(content)
            return f.name

    def test_load_csv(self, csv_file):
        sizes = load_candidate_sizes(csv_file)
        assert sizes == [Size(1920, 1080), Size(1280, 720), Size(640, 480)]

    def test_load_text(self, text_file):
        sizes = load_candidate_sizes(text_file)
        assert sizes == [Size(1920, 1080), Size(1280, 720), Size(1440, 1080)]

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            load_candidate_sizes("/nonexistent/sizes.csv")

    def test_invalid_csv_row(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("width,height\n1920,abc\n")
        with pytest.raises(ValueError):
            load_candidate_sizes(str(path))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_text("# nothing here\n")
        assert load_candidate_sizes(str(path)) == []

    def test_candidate_source_merges_and_dedupes(self, text_file):
        config = PreviewConfig(
            viewport=Size(1080, 1920),
            candidate_sizes=[Size(1280, 720), Size(3840, 2160)],
            files=FilePaths(candidate_sizes=text_file),
        )
        sizes = CandidateSource(config).load()
        assert sizes == [
            Size(1280, 720),
            Size(3840, 2160),
            Size(1920, 1080),
            Size(1440, 1080),
        ]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
