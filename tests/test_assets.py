"""Tests for asset resolution and loading."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from moodlens.config import Settings
from moodlens.ml.assets import AssetLoader
from moodlens.ml.errors import ResourceLoadError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_settings(assets_dir: Path, **overrides: object) -> Settings:
    defaults: dict[str, object] = {
        "assets_dir": assets_dir,
        "assets_repo_id": None,
        "model_filename": "emotions.onnx",
        "labels_filename": "labels.txt",
    }
    defaults.update(overrides)
    return Settings(**defaults)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------


class TestLoadLabels:
    def test_one_label_per_line_in_order(self, tmp_path: Path) -> None:
        (tmp_path / "labels.txt").write_text("calm\nhappy\nsad\n", encoding="utf-8")
        loader = AssetLoader(_make_settings(tmp_path))

        assert loader.load_labels() == ("calm", "happy", "sad")

    def test_crlf_line_endings(self, tmp_path: Path) -> None:
        (tmp_path / "labels.txt").write_bytes(b"calm\r\nhappy\r\n")
        loader = AssetLoader(_make_settings(tmp_path))

        assert loader.load_labels() == ("calm", "happy")

    def test_unicode_separators_stay_inside_label(self, tmp_path: Path) -> None:
        (tmp_path / "labels.txt").write_text("calm\nhap\x85py\nsad\x0bly x\n", encoding="utf-8")
        loader = AssetLoader(_make_settings(tmp_path))

        assert loader.load_labels() == ("calm", "hap\x85py", "sad\x0bly x")

    def test_blank_middle_line_keeps_its_index(self, tmp_path: Path) -> None:
        (tmp_path / "labels.txt").write_bytes(b"calm\r\rsad")
        loader = AssetLoader(_make_settings(tmp_path))

        assert loader.load_labels() == ("calm", "", "sad")

    def test_missing_label_file_raises(self, tmp_path: Path) -> None:
        loader = AssetLoader(_make_settings(tmp_path))
        with pytest.raises(ResourceLoadError, match="Asset not found"):
            loader.load_labels()

    def test_empty_label_file_raises(self, tmp_path: Path) -> None:
        (tmp_path / "labels.txt").write_text("", encoding="utf-8")
        loader = AssetLoader(_make_settings(tmp_path))
        with pytest.raises(ResourceLoadError, match="empty"):
            loader.load_labels()


# ---------------------------------------------------------------------------
# Resolution and download
# ---------------------------------------------------------------------------


class TestEnsureAvailable:
    @patch("moodlens.ml.assets.hf_hub_download")
    def test_local_file_skips_download(self, mock_download: MagicMock, tmp_path: Path) -> None:
        model_file = tmp_path / "emotions.onnx"
        model_file.touch()
        loader = AssetLoader(_make_settings(tmp_path, assets_repo_id="acme/moods"))

        path = loader.ensure_available("emotions.onnx")

        mock_download.assert_not_called()
        assert path == model_file

    @patch("moodlens.ml.assets.hf_hub_download")
    def test_missing_file_downloaded_from_repo(self, mock_download: MagicMock, tmp_path: Path) -> None:
        mock_download.return_value = str(tmp_path / "emotions.onnx")
        loader = AssetLoader(_make_settings(tmp_path, assets_repo_id="acme/moods"))

        path = loader.ensure_available("emotions.onnx")

        mock_download.assert_called_once_with(
            repo_id="acme/moods",
            filename="emotions.onnx",
            local_dir=str(tmp_path),
        )
        assert path == tmp_path / "emotions.onnx"

    @patch("moodlens.ml.assets.hf_hub_download")
    def test_download_failure_raises_resource_error(self, mock_download: MagicMock, tmp_path: Path) -> None:
        mock_download.side_effect = OSError("network unreachable")
        loader = AssetLoader(_make_settings(tmp_path, assets_repo_id="acme/moods"))

        with pytest.raises(ResourceLoadError, match="acme/moods"):
            loader.ensure_available("emotions.onnx")

    def test_invalid_repo_id_raises_resource_error(self, tmp_path: Path) -> None:
        loader = AssetLoader(_make_settings(tmp_path, assets_repo_id="not a/valid//repo id"))

        with pytest.raises(ResourceLoadError, match="not a/valid//repo id") as exc_info:
            loader.ensure_available("emotions.onnx")
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_missing_file_without_repo_raises(self, tmp_path: Path) -> None:
        loader = AssetLoader(_make_settings(tmp_path))
        with pytest.raises(ResourceLoadError):
            loader.ensure_available("emotions.onnx")


# ---------------------------------------------------------------------------
# Full load
# ---------------------------------------------------------------------------


class TestLoad:
    def test_loads_labels_and_model(self, tmp_path: Path) -> None:
        (tmp_path / "labels.txt").write_text("calm\nhappy\n", encoding="utf-8")
        (tmp_path / "emotions.onnx").touch()
        engine = MagicMock()
        engine.load.return_value = "session"

        assets = AssetLoader(_make_settings(tmp_path)).load(engine)

        engine.load.assert_called_once_with(tmp_path / "emotions.onnx")
        assert assets.model == "session"
        assert assets.labels == ("calm", "happy")
        assert assets.model_name == "emotions"

    def test_missing_model_raises_before_engine_load(self, tmp_path: Path) -> None:
        (tmp_path / "labels.txt").write_text("calm\n", encoding="utf-8")
        engine = MagicMock()

        with pytest.raises(ResourceLoadError):
            AssetLoader(_make_settings(tmp_path)).load(engine)
        engine.load.assert_not_called()
