"""Mood classifier: preprocess, run the model, rank the labels."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from moodlens.ml.assets import AssetLoader
from moodlens.ml.engine import OnnxInferenceEngine
from moodlens.ml.errors import ShapeMismatchError
from moodlens.ml.preprocessing import PixelBuffer, decode_image, load_image, preprocess
from moodlens.ml.topk import select_top_k
from moodlens.presenter import format_result

if TYPE_CHECKING:
    from pathlib import Path

    from PIL import Image

    from moodlens.config import Settings
    from moodlens.ml.engine import InferenceEngine
    from moodlens.ml.image_classifier import ClassificationResult

logger = logging.getLogger(__name__)


class MoodClassifier:
    """Classifies photos with a loaded model and label set.

    Each worker thread owns one pixel buffer, rewound and rewritten for
    every request it serves. ONNX Runtime sessions accept concurrent runs.
    """

    def __init__(
        self,
        settings: Settings,
        engine: InferenceEngine,
        model: object,
        labels: tuple[str, ...],
        model_name: str = "",
    ) -> None:
        self._settings = settings
        self._engine = engine
        self._model = model
        self._labels = labels
        self._model_name = model_name
        self._local = threading.local()

    @classmethod
    def from_settings(cls, settings: Settings, engine: InferenceEngine | None = None) -> MoodClassifier:
        """Load assets and build a classifier.

        Raises:
            ResourceLoadError: If the labels or the model cannot be loaded.
        """
        engine = engine or OnnxInferenceEngine(settings)
        assets = AssetLoader(settings).load(engine)
        return cls(settings, engine, assets.model, assets.labels, model_name=assets.model_name)

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def labels(self) -> tuple[str, ...]:
        return self._labels

    def _thread_buffer(self) -> PixelBuffer:
        buffer: PixelBuffer | None = getattr(self._local, "buffer", None)
        if buffer is None:
            buffer = PixelBuffer(self._settings.input_width, self._settings.input_height, self._settings.channels)
            self._local.buffer = buffer
        return buffer

    def classify(self, image: Image.Image, top_k: int | None = None) -> list[ClassificationResult]:
        """Return the top-K labels for ``image``, highest confidence first.

        Raises:
            ShapeMismatchError: If the model emits a score count that differs
                from the label count.
            InferenceError: If the engine fails.
        """
        k = self._settings.results_to_show if top_k is None else top_k
        pixels = preprocess(
            image,
            self._settings.input_width,
            self._settings.input_height,
            self._settings.channels,
            buffer=self._thread_buffer(),
        )
        scores = self._engine.run(self._model, pixels)

        if len(scores) != len(self._labels):
            raise ShapeMismatchError(labels=len(self._labels), scores=len(scores))

        ranked = select_top_k(self._labels, scores, k)
        if ranked:
            logger.debug("Top label %s (%.3f)", ranked[0].label, ranked[0].confidence)
        return ranked

    def classify_bytes(self, image_bytes: bytes, top_k: int | None = None) -> list[ClassificationResult]:
        image = decode_image(image_bytes, self._settings.max_image_pixels)
        return self.classify(image, top_k=top_k)

    def classify_path(self, path: Path, top_k: int | None = None) -> list[ClassificationResult]:
        image = load_image(path, self._settings.max_image_pixels)
        return self.classify(image, top_k=top_k)

    def describe(self, image: Image.Image) -> str:
        """Classify ``image`` and render the configured rank as a mood sentence."""
        return format_result(self.classify(image), self._settings.display_rank)
