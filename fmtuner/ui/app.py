import logging
from typing import Optional

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.coordinate import Coordinate
from textual.events import Key
from textual.reactive import reactive
from textual.widgets import Button, DataTable, Footer, Header, Input, Static

from ..config import TunerConfig
from ..core.events import (
    ErrorRaised,
    FrequencyChanged,
    PresetsChanged,
    ScanFinished,
    ScanProgress,
    TuneRequested,
)
from ..core.stations import UNNAMED, PresetStore
from ..core.storage import JsonFileStorage
from ..core.tuner import TunerDevice, TunerError, TunerSession
from ..devices.simulated import SimulatedTuner
from .styles import RADIO_APP_CSS
from .validators import is_valid_station_name, parse_frequency

logger = logging.getLogger(__name__)

UNNAMED_CLASS = "unnamed"


class RadioApp(App):
    """Textual TUI Application for the FM tuner."""

    CSS = RADIO_APP_CSS
    TITLE = "FM Tuner"

    BINDINGS = [
        ("q", "quit_app", "Quit"),
        ("s", "start_scan", "Scan"),
        ("c", "stop_scan", "Stop Scan"),
        ("m", "toggle_mute", "Mute"),
        ("left", "tune_down", "Tune -"),
        ("right", "tune_up", "Tune +"),
        ("[", "seek_down", "Seek -"),
        ("]", "seek_up", "Seek +"),
        ("p", "prev_station", "Prev Preset"),
        ("n", "next_station", "Next Preset"),
    ]

    status_line = reactive("Welcome! Tune to an FM station or start a scan.")
    is_muted = reactive(False)

    def __init__(self, config: Optional[TunerConfig] = None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.config = config or TunerConfig()
        self.storage = JsonFileStorage(self.config.STORAGE_PATH)
        self.stations = PresetStore(self.storage)
        self.device = self._create_device()
        self.session = TunerSession(self.device, self.stations, tune_step=self.config.TUNE_STEP)
        # Set while a seek is in flight so repeated presses do not overlap
        self.button_block = False
        logger.info("Radio app initialized")

    def _create_device(self) -> TunerDevice:
        if self.config.SIMULATE:
            return SimulatedTuner(
                self.config.SIMULATED_STATIONS,
                self.config.MIN_FREQUENCY,
                self.config.MAX_FREQUENCY,
                dispatch=self.call_later,
            )
        from ..devices.rtlsdr import RtlSdrTuner

        return RtlSdrTuner(
            self.config.DEVICE_INDEX,
            self.config.MIN_FREQUENCY,
            self.config.MAX_FREQUENCY,
            dispatch=self.call_from_thread,
        )

    def compose(self) -> ComposeResult:
        """Create child widgets for the app's layout."""
        yield Header()
        with Vertical(id="main_container"):
            yield Static(UNNAMED, id="station_name")
            yield Static("", id="frequency_display")
            yield Static(id="status_display")
            with Horizontal(id="input_area"):
                yield Input(placeholder="Frequency (MHz, e.g., 100.7)", id="freq_input")
                yield Button("Tune", id="tune_button", variant="primary")
            with Horizontal(id="name_area"):
                yield Input(placeholder="Station name", id="name_input")
                yield Button("Save Name", id="save_name_button", variant="primary")
            with Horizontal(id="control_area"):
                yield Button("<< Seek", id="seek_down_button")
                yield Button("- 0.1", id="tune_down_button")
                yield Button("+ 0.1", id="tune_up_button")
                yield Button("Seek >>", id="seek_up_button")
                yield Button("Mute", id="mute_button")
            with Horizontal(id="preset_area"):
                yield Button("Prev Preset", id="prev_station_button")
                yield Button("Next Preset", id="next_station_button")
            with Horizontal(id="scan_area"):
                yield Button("Start Scan", id="scan_button", variant="primary")
                yield Button("Stop Scan", id="stop_scan_button", variant="error")
            yield DataTable(id="stations_table", zebra_stripes=True, cursor_type="row")
            with Horizontal(id="list_area"):
                yield Button("Remove", id="remove_button", variant="error")
                yield Button("Remove All", id="remove_all_button", variant="error")
        yield Footer()

    def on_mount(self) -> None:
        """Called when the app is first mounted."""
        self.query_one("#status_display", Static).update(self.status_line)
        table = self.query_one("#stations_table", DataTable)
        table.add_columns("Station", "Frequency")

        self.session.subscribe(self.on_session_event)
        self.stations.load()
        self.storage.open()

        self.initialize_receiver()
        self.stations.subscribe(self.on_store_event)
        self._update_station_list()

    def initialize_receiver(self) -> None:
        try:
            self.device.open()
        except TunerError as e:
            self.status_line = f"{e.title}: {e}"
            logger.error("Receiver initialization failed: %s", e)
            return
        self.session.initialize()

    def on_session_event(self, event) -> None:
        if isinstance(event, FrequencyChanged):
            self.refresh_station(event.frequency)
        elif isinstance(event, ScanProgress):
            self.status_line = f"Scanning... {int(event.percent)}%  Stations found: {event.count}"
        elif isinstance(event, ScanFinished):
            self.status_line = f"Scan complete. Found {len(event.frequencies)} stations."
            self._update_station_list()
        elif isinstance(event, ErrorRaised):
            self.button_block = False
            self.status_line = f"{event.title}: {event.message}"

    def on_store_event(self, event) -> None:
        if isinstance(event, PresetsChanged):
            self._update_station_list()
        elif isinstance(event, TuneRequested):
            self.session.tune(event.frequency)

    def refresh_station(self, frequency: float) -> None:
        """Show the current frequency and its preset name, and remember it."""
        name = self.stations.get_station_name(frequency)
        self.button_block = False

        self.query_one("#frequency_display", Static).update(f"{frequency:.1f} MHz")
        name_label = self.query_one("#station_name", Static)
        name_label.update(name)
        name_label.set_class(name == UNNAMED, UNNAMED_CLASS)

        self.stations.set_last_frequency(frequency)
        self.status_line = f"Playing {frequency:.1f} MHz"
        self._refresh_station_buttons()

    def _refresh_station_buttons(self) -> None:
        count = len(self.stations)
        self.query_one("#prev_station_button", Button).disabled = count < 2
        self.query_one("#next_station_button", Button).disabled = count < 2
        self.query_one("#remove_button", Button).disabled = count == 0
        self.query_one("#remove_all_button", Button).disabled = count == 0

    def _update_station_list(self) -> None:
        """Update the stations table."""
        table = self.query_one("#stations_table", DataTable)
        table.clear()
        for station in self.stations.get_station_list():
            table.add_row(station.name, f"{station.frequency:.1f} MHz", key=str(station.frequency))
        self._refresh_station_buttons()

    def _selected_frequency(self) -> Optional[float]:
        table = self.query_one("#stations_table", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(Coordinate(table.cursor_row, 0))
        return float(row_key.value)

    def watch_status_line(self, new_status: str) -> None:
        self.query_one("#status_display", Static).update(new_status)

    def watch_is_muted(self, is_muted: bool) -> None:
        """Update UI when mute state changes."""
        self.query_one("#mute_button", Button).label = "Unmute" if is_muted else "Mute"

    async def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Tune to the preset picked in the table."""
        self.session.tune(float(event.row_key.value))

    async def on_key(self, event: Key) -> None:
        """Step the frequency field with the arrow keys."""
        if event.key not in ("up", "down"):
            return
        freq_input = self.query_one("#freq_input", Input)
        if freq_input.has_focus:
            current = parse_frequency(freq_input.value or str(self.session.frequency))
            if current is None:
                self.status_line = "Invalid frequency format"
                return
            step = self.config.TUNE_STEP if event.key == "up" else -self.config.TUNE_STEP
            freq_input.value = f"{current + step:.1f}"

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        """Handle Enter key in the input fields."""
        if event.input.id == "freq_input":
            self.tune_from_input()
        elif event.input.id == "name_input":
            self.save_station_name()

    def tune_from_input(self) -> None:
        freq_input = self.query_one("#freq_input", Input)
        frequency = parse_frequency(freq_input.value)
        if frequency is None:
            self.status_line = "Frequency must be a number."
            return
        self.session.tune(frequency)

    def save_station_name(self) -> None:
        name_input = self.query_one("#name_input", Input)
        name = name_input.value.strip()
        if not is_valid_station_name(name, self.config.STATION_NAME_LENGTH_MIN, self.config.STATION_NAME_LENGTH_MAX):
            self.status_line = (
                f"Station name length should be between {self.config.STATION_NAME_LENGTH_MIN}"
                f" and {self.config.STATION_NAME_LENGTH_MAX}"
            )
            return
        frequency = self.session.frequency
        self.stations.save(name, frequency, overwrite=True)
        name_input.value = ""
        self.refresh_station(frequency)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button press events."""
        actions = {
            "tune_button": self.tune_from_input,
            "save_name_button": self.save_station_name,
            "seek_down_button": self.action_seek_down,
            "seek_up_button": self.action_seek_up,
            "tune_down_button": self.action_tune_down,
            "tune_up_button": self.action_tune_up,
            "prev_station_button": self.action_prev_station,
            "next_station_button": self.action_next_station,
            "mute_button": self.action_toggle_mute,
            "scan_button": self.action_start_scan,
            "stop_scan_button": self.action_stop_scan,
            "remove_button": self.action_remove_station,
            "remove_all_button": self.action_remove_all,
        }
        action = actions.get(event.button.id)
        if action:
            action()

    def action_tune_down(self) -> None:
        self.session.tune_down()

    def action_tune_up(self) -> None:
        self.session.tune_up()

    def action_seek_down(self) -> None:
        if not self.button_block:
            self.button_block = self.session.seek_down()

    def action_seek_up(self) -> None:
        if not self.button_block:
            self.button_block = self.session.seek_up()

    def action_next_station(self) -> None:
        frequency = self.stations.next_station(self.session.frequency)
        if frequency is not None:
            self.session.tune(frequency)

    def action_prev_station(self) -> None:
        frequency = self.stations.prev_station(self.session.frequency)
        if frequency is not None:
            self.session.tune(frequency)

    def action_start_scan(self) -> None:
        """Start scanning for stations."""
        if self.button_block:
            return
        if self.session.scan_start():
            self.status_line = "Scanning...  Stations found: 0"

    def action_stop_scan(self) -> None:
        self.session.scan_stop()

    def action_toggle_mute(self) -> None:
        self.is_muted = not self.is_muted
        self.session.set_muted(self.is_muted)
        logger.info("Audio %s", "muted" if self.is_muted else "unmuted")

    def action_remove_station(self) -> None:
        frequency = self._selected_frequency()
        if frequency is not None:
            self.stations.remove(frequency)
            self.refresh_station(self.session.frequency)

    def action_remove_all(self) -> None:
        self.stations.remove_all()
        self.refresh_station(self.session.frequency)

    def action_quit_app(self) -> None:
        """Called when 'q' is pressed or quit is triggered."""
        self.status_line = "Shutting down..."
        logger.info("Initiating shutdown")
        self.device.close()
        self.exit("Radio resources released.")
