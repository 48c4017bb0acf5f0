from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

import matplotlib.pyplot as plt
import numpy as np

from .sinks import FrameSink

if TYPE_CHECKING:
    from .frame_decoder import DecodedFrame


logger = logging.getLogger(__name__)


class NoOpPreview(FrameSink):
    def write(self, frame: DecodedFrame) -> None:
        return None


class PreviewSink(FrameSink):
    """
    Shows frames in a matplotlib window as they are decoded.

    Frames are downscaled by nearest-neighbour sampling (every `step`-th
    pixel) to keep redraws cheap for large sensors.
    """

    def __init__(self, step: int = 2, title: str = "SEQ Preview"):
        self.step = max(1, int(step))
        plt.ion()
        self._fig, self._ax = plt.subplots(num=title)
        self._ax.set_axis_off()
        self._image = None

    def write(self, frame: DecodedFrame) -> None:
        data = np.clip(frame.pixels[:: self.step, :: self.step], 0.0, 1.0)
        if data.shape[2] == 1:
            data = data[:, :, 0]

        if self._image is None or self._image.get_array().shape != data.shape:
            self._ax.clear()
            self._ax.set_axis_off()
            self._image = self._ax.imshow(data, cmap="gray", vmin=0.0, vmax=1.0)
        else:
            self._image.set_data(data)
        self._ax.set_title(f"#{frame.index}  {frame.timestamp}")
        plt.pause(0.001)

    def close(self) -> None:
        plt.close(self._fig)


def make_preview(step: int = 2, title: str = "SEQ Preview") -> FrameSink:
    """
    Create a preview sink.

    Behavior:
    - If env `HEADLESS=1` returns a no-op sink.
    - Otherwise returns a matplotlib preview, falling back to a no-op sink
      when no figure can be created.
    """
    headless = os.environ.get("HEADLESS", "0") in ("1", "true", "True")
    if headless:
        return NoOpPreview()
    try:
        return PreviewSink(step=step, title=title)
    except Exception as e:
        logger.warning(f"Preview unavailable ({e}); continuing without it")
        return NoOpPreview()
