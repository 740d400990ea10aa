"""Inference engine adapter.

The classifier only sees the InferenceEngine protocol: ``load`` turns a model
artifact into an opaque handle, ``run`` maps the packed pixel buffer to one
unsigned byte score per label. OnnxInferenceEngine backs it with ONNX Runtime.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import numpy as np
from onnxruntime import InferenceSession, SessionOptions
from onnxruntime.capi.onnxruntime_pybind11_state import ExecutionMode

from moodlens.ml.errors import InferenceError, ResourceLoadError

if TYPE_CHECKING:
    from pathlib import Path

    from moodlens.config import Settings
    from moodlens.ml.preprocessing import PixelBuffer

logger = logging.getLogger(__name__)


class InferenceEngine(Protocol):
    """Protocol for the external model interpreter."""

    def load(self, path: Path) -> object:
        """Open a model artifact and return an opaque handle."""
        ...

    def run(self, model: object, pixels: PixelBuffer) -> bytes:
        """Evaluate the model and return one unsigned byte score per label."""
        ...


class OnnxInferenceEngine:
    """Runs quantized (uint8 in, uint8 out) ONNX classifiers."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._providers = self._build_providers()
        self._session_options = self._build_session_options()

    def load(self, path: Path) -> InferenceSession:
        try:
            session = InferenceSession(
                str(path),
                sess_options=self._session_options,
                providers=self._providers,
            )
        except Exception as exc:  # noqa: BLE001
            raise ResourceLoadError(f"Cannot load model {path}: {exc}") from exc
        logger.info("Loaded session for %s (providers=%s)", path.name, session.get_providers())
        return session

    def run(self, model: object, pixels: PixelBuffer) -> bytes:
        session: InferenceSession = model  # type: ignore[assignment]
        input_name = session.get_inputs()[0].name
        try:
            outputs = session.run(None, {input_name: pixels.as_array()})
        except Exception as exc:  # noqa: BLE001
            raise InferenceError(f"Inference failed: {exc}") from exc

        scores = np.asarray(outputs[0])
        if scores.dtype != np.uint8:
            raise InferenceError(f"Expected uint8 scores, model produced {scores.dtype}")
        return scores.reshape(-1).tobytes()

    def _build_providers(self) -> list[str | tuple[str, dict[str, object]]]:
        if self._settings.device == "cuda":
            return [
                ("CUDAExecutionProvider", {"device_id": 0}),
                "CPUExecutionProvider",
            ]
        return ["CPUExecutionProvider"]

    def _build_session_options(self) -> SessionOptions:
        opts = SessionOptions()
        opts.intra_op_num_threads = self._settings.intra_op_threads
        opts.inter_op_num_threads = self._settings.inter_op_threads
        opts.execution_mode = ExecutionMode.ORT_SEQUENTIAL
        return opts
