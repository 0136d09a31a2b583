"""RailML schema constraints and export defaults for railway track layouts."""
from typing import Dict, Tuple

# Schema identity
RAILML_VERSION = "3.1"
RAILML_NAMESPACE = "https://www.railml.org/schemas/3.1"
EXPORT_VERSION = "1.0.0"
CREATOR = "Railway Design Tool"
DEFAULT_INFRASTRUCTURE_NAME = "Exported Railway Design"

# Canvas defaults (pixels), used when the drawing surface reports no size
DEFAULT_CANVAS_WIDTH = 1200
DEFAULT_CANVAS_HEIGHT = 800

# Editor / advisory thresholds (pixels)
DEFAULT_SNAP_DISTANCE = 10.0
COMPONENT_PROXIMITY = 50.0
SHORT_TRACK_LENGTH = 10.0

# Undo/redo snapshot log size
HISTORY_CAPACITY = 50

# Track defaults
DEFAULT_TRACK_COLOR = "#333333"
DEFAULT_STROKE_WIDTH = 4

# Valid enumerations
VALID_COMPONENT_TYPES: Tuple[str, ...] = ("signal", "switch", "station", "platform")
VALID_SIGNAL_ASPECTS: Tuple[str, ...] = ("red", "yellow", "green", "off", "danger", "caution", "clear")
VALID_SIGNAL_TYPES: Tuple[str, ...] = ("main", "distant", "shunting", "repeater")
VALID_SWITCH_STATES: Tuple[str, ...] = ("normal", "reverse")
VALID_SWITCH_TYPES: Tuple[str, ...] = ("simple", "english", "diamond", "doubleSlip")
VALID_STATION_TYPES: Tuple[str, ...] = ("passenger", "freight", "junction", "depot")
VALID_CRS: Tuple[str, ...] = (
    "EPSG:4326",  # WGS84
    "EPSG:3857",  # Web Mercator
    "pixel",
    "local",
)

# Per-type property defaults applied by the document builder
COMPONENT_DEFAULTS: Dict[str, Dict[str, object]] = {
    "signal": {"aspect": "red", "signalType": "main"},
    "switch": {"state": "normal", "switchType": "simple"},
    "station": {"stationType": "passenger"},
    "platform": {"length": 80, "height": 1.2},
}

# ISO-8601 pattern accepted for export timestamps
TIMESTAMP_PATTERN = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{3})?Z?$"
