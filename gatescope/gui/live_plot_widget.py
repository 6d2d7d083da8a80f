"""
Live plot widget

Two pyqtgraph plots fed by the stream controller:
- Frequency: magnitude of every spectrum bin of the latest block
- Output: rolling RMS history of the gated blocks

Series arrive on the acquisition thread and are handed to the GUI
thread through a queued Qt signal. Each delivery replaces the curve.
"""

import numpy as np
from PySide6.QtWidgets import QWidget, QVBoxLayout
from PySide6.QtCore import Signal, Slot
import pyqtgraph as pg

from ..core.stream_controller import SPECTRUM_SERIES, ROLLING_SERIES


class LivePlotWidget(QWidget):
    """Renderer for the spectrum and rolling RMS series."""

    series_ready = Signal(str, object)  # series name, (n, 2) array

    def __init__(self, parent=None):
        super().__init__(parent)
        self._curves: dict[str, pg.PlotDataItem] = {}
        self._init_ui()
        self.series_ready.connect(self._on_series_ready)

    def _init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        # Spectrum
        self.spectrum_plot = pg.PlotWidget(title="Frequency")
        self.spectrum_plot.setLabel('bottom', 'Frequency', units='Hz')
        self.spectrum_plot.setLabel('left', 'Magnitude')
        self.spectrum_plot.showGrid(x=True, y=True, alpha=0.3)
        self.spectrum_plot.setBackground('#181825')
        self._curves[SPECTRUM_SERIES] = self.spectrum_plot.plot(
            pen=pg.mkPen('#89b4fa', width=1)
        )
        layout.addWidget(self.spectrum_plot, stretch=1)

        # Rolling output
        self.output_plot = pg.PlotWidget(title="Output")
        self.output_plot.setLabel('bottom', 'Window position')
        self.output_plot.setLabel('left', 'RMS', units='V')
        self.output_plot.showGrid(x=True, y=True, alpha=0.3)
        self.output_plot.setBackground('#181825')
        self.output_plot.setXRange(0, 0.5)
        self._curves[ROLLING_SERIES] = self.output_plot.plot(
            pen=pg.mkPen('#f38ba8', width=2)
        )
        layout.addWidget(self.output_plot, stretch=1)

    def replace_series(self, name: str, points) -> None:
        """Replace a curve with new points (callable from any thread)."""
        if name not in self._curves:
            raise KeyError(f"Unknown series: {name}")
        data = np.array(list(points), dtype=np.float64).reshape(-1, 2)
        self.series_ready.emit(name, data)

    def clear(self) -> None:
        for curve in self._curves.values():
            curve.setData([], [])

    @Slot(str, object)
    def _on_series_ready(self, name: str, data: np.ndarray):
        self._curves[name].setData(data[:, 0], data[:, 1])
