"""
Main window of the gatescope application

Structure:
- Left: channel parameters, timing parameters, start/stop, threshold
- Right: live spectrum (top) + rolling RMS output (bottom)
- Status bar: latest block level
"""

from dataclasses import replace
from typing import Optional
import logging
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QFormLayout,
    QGroupBox, QMessageBox, QLabel, QStatusBar, QPushButton,
    QComboBox, QDoubleSpinBox, QSpinBox, QSlider,
)
from PySide6.QtCore import Qt, Signal, Slot, QTimer

from ..core.acquisition import SIMULATED_CHANNEL, create_source
from ..core.config import AcquisitionConfig, THRESHOLD_RAW_MAX, THRESHOLD_SCALE, save_config
from ..core.errors import GateScopeError, PersistenceFailure
from ..core.persistence import ScalarFileWriter
from ..core.stream_controller import StreamController, RunState
from ..utils.formatting import format_db, format_voltage, format_frequency, format_sample_rate
from .live_plot_widget import LivePlotWidget

log = logging.getLogger("MainWindow")


def _available_channels() -> list[str]:
    channels = [SIMULATED_CHANNEL]
    try:
        from ..core.soundcard import DEFAULT_DEVICE, list_input_devices
    except OSError as exc:
        # sounddevice raises OSError when the PortAudio library is missing
        log.warning("Sound card input unavailable: %s", exc)
        return channels
    return channels + [DEFAULT_DEVICE] + list_input_devices()


class MainWindow(QMainWindow):
    """Acquisition control window."""

    error_occurred = Signal(object)

    def __init__(self, config: Optional[AcquisitionConfig] = None, config_path=None):
        super().__init__()

        self._config = config or AcquisitionConfig()
        self._config_path = config_path
        self._controller: Optional[StreamController] = None

        self._init_ui()
        self._apply_theme()
        self._load_config_into_ui(self._config)
        self._update_buttons()

        self.error_occurred.connect(self._on_error)

        # Status bar refresh
        self._status_timer = QTimer(self)
        self._status_timer.setInterval(200)
        self._status_timer.timeout.connect(self._update_status)
        self._status_timer.start()

    def _init_ui(self):
        """Build UI."""
        self.setWindowTitle("gatescope - Continuous Acquisition with Spectral Gate")
        self.setMinimumSize(1100, 700)

        central = QWidget()
        self.setCentralWidget(central)
        layout = QHBoxLayout(central)
        layout.setContentsMargins(8, 8, 8, 8)

        # === Controls ===
        controls = QWidget()
        controls.setFixedWidth(300)
        controls_layout = QVBoxLayout(controls)
        controls_layout.setContentsMargins(0, 0, 0, 0)

        channel_box = QGroupBox("Channel Parameters")
        channel_form = QFormLayout(channel_box)

        self.channel_combo = QComboBox()
        self.channel_combo.setEditable(True)
        self.channel_combo.addItems(_available_channels())
        channel_form.addRow("Physical Channel:", self.channel_combo)

        self.min_voltage_spin = QDoubleSpinBox()
        self.min_voltage_spin.setRange(-10.0, 10.0)
        self.min_voltage_spin.setDecimals(2)
        channel_form.addRow("Minimum Value (V):", self.min_voltage_spin)

        self.max_voltage_spin = QDoubleSpinBox()
        self.max_voltage_spin.setRange(-10.0, 10.0)
        self.max_voltage_spin.setDecimals(2)
        channel_form.addRow("Maximum Value (V):", self.max_voltage_spin)

        controls_layout.addWidget(channel_box)

        timing_box = QGroupBox("Timing Parameters")
        timing_form = QFormLayout(timing_box)

        self.rate_spin = QDoubleSpinBox()
        self.rate_spin.setRange(1.0, 100000.0)
        self.rate_spin.setDecimals(0)
        timing_form.addRow("Rate (Hz):", self.rate_spin)

        self.samples_spin = QSpinBox()
        self.samples_spin.setRange(1, 100000)
        timing_form.addRow("Samples / Block:", self.samples_spin)

        self.resolution_label = QLabel()
        self.resolution_label.setStyleSheet("color: #888;")
        timing_form.addRow("Bin spacing:", self.resolution_label)
        self.rate_spin.valueChanged.connect(self._update_resolution_label)
        self.samples_spin.valueChanged.connect(self._update_resolution_label)

        controls_layout.addWidget(timing_box)

        buttons = QHBoxLayout()
        self.btn_start = QPushButton("Start")
        self.btn_start.clicked.connect(self._start)
        buttons.addWidget(self.btn_start)
        self.btn_stop = QPushButton("Stop")
        self.btn_stop.clicked.connect(self._stop)
        buttons.addWidget(self.btn_stop)
        controls_layout.addLayout(buttons)

        threshold_box = QGroupBox("Threshold")
        threshold_layout = QHBoxLayout(threshold_box)
        self.threshold_slider = QSlider(Qt.Orientation.Horizontal)
        self.threshold_slider.setRange(0, THRESHOLD_RAW_MAX)
        self.threshold_slider.valueChanged.connect(self._on_threshold_changed)
        threshold_layout.addWidget(self.threshold_slider, stretch=1)
        self.threshold_label = QLabel("0")
        self.threshold_label.setMinimumWidth(32)
        threshold_layout.addWidget(self.threshold_label)
        controls_layout.addWidget(threshold_box)

        controls_layout.addStretch()
        layout.addWidget(controls)

        # === Plots ===
        self.plots = LivePlotWidget()
        layout.addWidget(self.plots, stretch=1)

        # Status bar
        self.statusBar = QStatusBar()
        self.setStatusBar(self.statusBar)
        self.status_label = QLabel("Idle")
        self.statusBar.addWidget(self.status_label)

    def _apply_theme(self):
        """Apply dark theme."""
        self.setStyleSheet("""
            QMainWindow, QWidget {
                background-color: #1e1e2e;
                color: #cdd6f4;
                font-family: 'SF Pro Display', 'Segoe UI', sans-serif;
            }
            QPushButton {
                background-color: #313244;
                color: #cdd6f4;
                border: 1px solid #45475a;
                padding: 8px 16px;
                border-radius: 6px;
            }
            QPushButton:hover {
                background-color: #45475a;
                border-color: #89b4fa;
            }
            QPushButton:disabled {
                background-color: #181825;
                color: #585b70;
            }
            QGroupBox {
                border: 1px solid #45475a;
                border-radius: 6px;
                margin-top: 12px;
                padding-top: 8px;
            }
            QGroupBox::title {
                subcontrol-origin: margin;
                left: 8px;
                color: #89b4fa;
            }
            QComboBox, QSpinBox, QDoubleSpinBox {
                background-color: #313244;
                color: #cdd6f4;
                border: 1px solid #45475a;
                padding: 4px 8px;
                border-radius: 4px;
            }
        """)

    def _load_config_into_ui(self, config: AcquisitionConfig):
        self.channel_combo.setCurrentText(config.physical_channel)
        self.min_voltage_spin.setValue(config.min_voltage)
        self.max_voltage_spin.setValue(config.max_voltage)
        self.rate_spin.setValue(config.sample_rate)
        self.samples_spin.setValue(config.block_size)
        self.threshold_slider.setValue(round(config.initial_threshold * THRESHOLD_SCALE))
        self._update_resolution_label()

    def _config_from_ui(self) -> AcquisitionConfig:
        return replace(
            self._config,
            physical_channel=self.channel_combo.currentText().strip(),
            min_voltage=self.min_voltage_spin.value(),
            max_voltage=self.max_voltage_spin.value(),
            sample_rate=self.rate_spin.value(),
            block_size=self.samples_spin.value(),
            initial_threshold=self.threshold_slider.value() / THRESHOLD_SCALE,
        )

    def _update_resolution_label(self):
        config = self._config_from_ui()
        self.resolution_label.setText(
            f"{format_frequency(config.frequency_resolution())} @ "
            f"{format_sample_rate(config.sample_rate)}, "
            f"buffer {config.buffer_latency:.2f} s"
        )

    def _update_buttons(self):
        running = self._controller is not None and self._controller.is_running
        self.btn_start.setEnabled(not running)
        self.btn_stop.setEnabled(running)
        for widget in (self.channel_combo, self.min_voltage_spin,
                       self.max_voltage_spin, self.rate_spin, self.samples_spin):
            widget.setEnabled(not running)

    # ------------------------------------------------------------------
    # Run control
    # ------------------------------------------------------------------

    def _start(self):
        if self._controller is not None and self._controller.is_running:
            return

        config = self._config_from_ui()
        try:
            source = create_source(config)
        except OSError as e:
            QMessageBox.critical(self, "Error", f"Sound card input unavailable:\n{e}")
            return

        controller = StreamController(
            config,
            source,
            renderer=self.plots,
            sink=ScalarFileWriter(config.output_path),
            on_error=self.error_occurred.emit,
        )
        self.plots.clear()

        try:
            controller.start()
        except GateScopeError as e:
            QMessageBox.critical(self, "Error", str(e))
            self._update_buttons()
            return

        self._controller = controller
        self._config = config
        if self._config_path is not None:
            try:
                save_config(config, self._config_path)
            except OSError as e:
                log.warning("Could not save configuration: %s", e)
        self._update_buttons()

    def _stop(self):
        if self._controller is not None:
            self._controller.stop()
        self._update_buttons()

    @Slot(int)
    def _on_threshold_changed(self, raw: int):
        self.threshold_label.setText(f"{raw:d}")
        if self._controller is not None:
            self._controller.set_threshold_raw(raw)

    @Slot(object)
    def _on_error(self, exc: Exception):
        if isinstance(exc, PersistenceFailure):
            self.statusBar.showMessage(str(exc), 3000)
            return
        QMessageBox.critical(self, "Error", str(exc))
        self._update_buttons()

    def _update_status(self):
        controller = self._controller
        if controller is None:
            return
        result = controller.last_result
        text = controller.state.value.capitalize()
        if result is not None:
            stats = result.statistics
            text += (
                f" | RMS {format_db(stats.rms_db())}"
                f" | mean |x| {format_voltage(stats.mean_abs)}"
                f" | blocks {controller.blocks_processed}"
            )
            if controller.blocks_dropped:
                text += f" ({controller.blocks_dropped} dropped)"
        self.status_label.setText(text)
        if controller.state is RunState.STOPPED and self.btn_stop.isEnabled():
            self._update_buttons()

    def closeEvent(self, event):
        if self._controller is not None:
            self._controller.stop()
        super().closeEvent(event)
