"""Asset loading: resolve, download, and read the model and label files.

Assets are looked up in the configured assets directory first. When a file
is missing there and MOODLENS_ASSETS_REPO_ID is set, it is fetched once from
the HuggingFace Hub into that directory.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from huggingface_hub import hf_hub_download
from huggingface_hub.errors import HfHubHTTPError

from moodlens.ml.errors import ResourceLoadError

if TYPE_CHECKING:
    from moodlens.config import Settings
    from moodlens.ml.engine import InferenceEngine


logger = logging.getLogger(__name__)

# Only CR, LF and CRLF end a label line.
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class LoadedAssets:
    """A ready model handle and the label set it was trained on."""

    model_name: str
    model: object
    labels: tuple[str, ...]


class AssetLoader:
    """Resolves asset files and loads them through an inference engine."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._assets_dir = Path(settings.assets_dir)

    # -- Public API ---------------------------------------------------------

    def ensure_available(self, filename: str) -> Path:
        """Return a local path for ``filename``, downloading it if configured.

        Raises:
            ResourceLoadError: If the file is neither present nor downloadable.
        """
        local = self._assets_dir / filename
        if local.is_file():
            return local

        repo_id = self._settings.assets_repo_id
        if repo_id is None:
            raise ResourceLoadError(f"Asset not found: {local}")

        self._assets_dir.mkdir(parents=True, exist_ok=True)
        try:
            downloaded = Path(
                hf_hub_download(
                    repo_id=repo_id,
                    filename=filename,
                    local_dir=str(self._assets_dir),
                )
            )
        except (HfHubHTTPError, OSError, ValueError) as exc:
            raise ResourceLoadError(f"Cannot download {filename} from {repo_id}: {exc}") from exc
        logger.info("Downloaded %s to %s", filename, downloaded)
        return downloaded

    def load_labels(self) -> tuple[str, ...]:
        """Read the label file, one label per line, in model output order."""
        path = self.ensure_available(self._settings.labels_filename)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ResourceLoadError(f"Cannot read labels from {path}: {exc}") from exc

        lines = _LINE_BREAK.split(text)
        if lines[-1] == "":
            lines.pop()
        labels = tuple(lines)
        if not labels:
            raise ResourceLoadError(f"Label file {path} is empty")
        logger.info("Loaded %d labels from %s", len(labels), path)
        return labels

    def load(self, engine: InferenceEngine) -> LoadedAssets:
        """Load labels and model. Either both succeed or ResourceLoadError is raised."""
        labels = self.load_labels()
        model_path = self.ensure_available(self._settings.model_filename)
        model = engine.load(model_path)
        return LoadedAssets(model_name=model_path.stem, model=model, labels=labels)
