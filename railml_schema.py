"""RailML schema validation, validation reports and RailML helper utilities.

The validator checks a RailML-shaped JSON document (as produced by
``railml_builder``) against structural rules. Problems that make the document
incorrect are reported as errors; advisory problems as warnings. Malformed
input never raises: every problem found ends up in the returned
``ValidationResult``.
"""
import json
import re
import time
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any, Union

from loguru import logger

from constraints import (
    RAILML_VERSION,
    RAILML_NAMESPACE,
    EXPORT_VERSION,
    CREATOR,
    VALID_COMPONENT_TYPES,
    VALID_SIGNAL_ASPECTS,
    VALID_SIGNAL_TYPES,
    VALID_SWITCH_STATES,
    VALID_SWITCH_TYPES,
    VALID_STATION_TYPES,
    VALID_CRS,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_CANVAS_HEIGHT,
    TIMESTAMP_PATTERN,
)
from core import utc_timestamp


@dataclass
class ValidationResult:
    """Outcome of checking a document: valid iff there are no errors."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isValid': self.is_valid,
            'errors': list(self.errors),
            'warnings': list(self.warnings),
        }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _present(value: Any) -> bool:
    """Section presence: empty objects and arrays count as present, null and empty scalars do not."""
    if isinstance(value, (dict, list)):
        return True
    return bool(value)


def _field(obj: Any, key: str) -> Any:
    """Read a key from a JSON object, treating non-objects as empty."""
    return obj.get(key) if isinstance(obj, dict) else None


def _label(obj: Any, index: int) -> Any:
    return _field(obj, 'id') or index


class RailMLValidator:
    """Validate RailML infrastructure documents against structural rules."""

    def __init__(self, version: str = RAILML_VERSION, namespace: str = RAILML_NAMESPACE):
        self.version = version
        self.namespace = namespace

    def validate_document(self, railml_data: Union[str, Dict[str, Any]]) -> ValidationResult:
        """Validate a complete RailML document.

        Args:
            railml_data: Document as a dict or as JSON text

        Returns:
            ValidationResult: Errors and warnings in check order
        """
        result = ValidationResult()

        if isinstance(railml_data, str):
            try:
                parsed = json.loads(railml_data)
            except json.JSONDecodeError as e:
                result.errors.append(f"JSON parsing error: {str(e)}")
                return result
        else:
            parsed = railml_data

        railml = _field(parsed, 'railml')
        if not isinstance(railml, dict):
            result.errors.append("Missing required 'railml' root element")
            return result

        errors, warnings = result.errors, result.warnings

        if not railml.get('version'):
            warnings.append("Missing version information")
        elif railml['version'] != self.version:
            warnings.append(f"Version mismatch: expected {self.version}, got {railml['version']}")

        if not railml.get('xmlns'):
            warnings.append("Missing XML namespace declaration")

        if _present(railml.get('infrastructure')):
            self._validate_infrastructure(railml['infrastructure'], errors, warnings)
        else:
            warnings.append("No infrastructure data found")

        if _present(railml.get('metadata')):
            self._validate_metadata(railml['metadata'], errors, warnings)

        logger.debug(f"RailML validation finished: {len(errors)} errors, {len(warnings)} warnings")
        return result

    def _validate_infrastructure(self, infrastructure: Any, errors: List[str], warnings: List[str]) -> None:
        if not _field(infrastructure, 'id'):
            errors.append("Infrastructure missing required 'id' attribute")

        if not _field(infrastructure, 'name'):
            warnings.append("Infrastructure missing 'name' attribute")

        tracks = _field(infrastructure, 'tracks')
        if tracks is not None:
            self._validate_tracks(tracks, errors, warnings)

        components = _field(infrastructure, 'functionalInfrastructure')
        if components is not None:
            self._validate_functional_infrastructure(components, errors, warnings)

        if _present(_field(infrastructure, 'topology')):
            self._validate_topology(infrastructure['topology'], errors, warnings)

        if _present(_field(infrastructure, 'geometry')):
            self._validate_geometry(infrastructure['geometry'], errors, warnings)

    # Tracks

    def _validate_tracks(self, tracks: Any, errors: List[str], warnings: List[str]) -> None:
        if not isinstance(tracks, list):
            errors.append("Tracks must be an array")
            return

        for index, track in enumerate(tracks):
            if not _field(track, 'id'):
                errors.append(f"Track {index}: missing required 'id' attribute")

            track_id = _label(track, index)
            geometry = _field(track, 'geometry')
            if not _present(geometry):
                errors.append(f"Track {track_id}: missing geometry information")
            else:
                self._validate_track_geometry(geometry, track_id, errors, warnings)

            length = _field(track, 'length')
            if not _is_number(length) or length < 0:
                warnings.append(f"Track {track_id}: invalid or missing length")

    def _validate_track_geometry(self, geometry: Any, track_id: Any,
                                 errors: List[str], warnings: List[str]) -> None:
        coordinates = _field(geometry, 'coordinates')
        if coordinates is None:
            errors.append(f"Track {track_id}: missing coordinates in geometry")
            return

        if not isinstance(coordinates, list):
            errors.append(f"Track {track_id}: coordinates must be an array")
            return

        if len(coordinates) < 2:
            warnings.append(f"Track {track_id}: track should have at least 2 coordinate points")

        for index, coord in enumerate(coordinates):
            if (not isinstance(coord, list) or len(coord) < 2
                    or not (_is_number(coord[0]) and _is_number(coord[1]))):
                errors.append(f"Track {track_id}: invalid coordinate format at index {index}")

        geometry_type = _field(geometry, 'type')
        if geometry_type and geometry_type != "LineString":
            warnings.append(f"Track {track_id}: unexpected geometry type '{geometry_type}', expected 'LineString'")

    # Functional infrastructure

    def _validate_functional_infrastructure(self, components: Any,
                                            errors: List[str], warnings: List[str]) -> None:
        if not isinstance(components, list):
            errors.append("Functional infrastructure must be an array")
            return

        for index, component in enumerate(components):
            if not _field(component, 'id'):
                errors.append(f"Component {index}: missing required 'id' attribute")

            component_id = _label(component, index)
            component_type = _field(component, 'type')
            if not component_type:
                errors.append(f"Component {component_id}: missing required 'type' attribute")
            elif component_type not in VALID_COMPONENT_TYPES:
                warnings.append(f"Component {component_id}: unknown type '{component_type}'")

            position = _field(component, 'position')
            if not _present(position):
                errors.append(f"Component {component_id}: missing position information")
            else:
                self._validate_component_position(position, component_id, errors)

            self._validate_component_properties(component, warnings)

    def _validate_component_position(self, position: Any, component_id: Any, errors: List[str]) -> None:
        if not _is_number(_field(position, 'x')):
            errors.append(f"Component {component_id}: position.x must be a number")

        if not _is_number(_field(position, 'y')):
            errors.append(f"Component {component_id}: position.y must be a number")

        coordinate = _field(position, 'coordinate')
        if _present(coordinate):
            latitude = _field(coordinate, 'latitude')
            if not _is_number(latitude) or not -90 <= latitude <= 90:
                errors.append(f"Component {component_id}: invalid latitude in coordinate")

            longitude = _field(coordinate, 'longitude')
            if not _is_number(longitude) or not -180 <= longitude <= 180:
                errors.append(f"Component {component_id}: invalid longitude in coordinate")

    def _validate_component_properties(self, component: Any, warnings: List[str]) -> None:
        """Type-specific property checks; all findings are advisory."""
        properties = _field(component, 'properties')
        if not isinstance(properties, dict):
            return

        component_id = _field(component, 'id') or "unknown"
        component_type = _field(component, 'type')

        if component_type == "signal":
            self._check_choice(properties, 'aspect', VALID_SIGNAL_ASPECTS,
                               f"Signal {component_id}: unknown aspect", warnings)
            self._check_choice(properties, 'signalType', VALID_SIGNAL_TYPES,
                               f"Signal {component_id}: unknown signal type", warnings)
        elif component_type == "switch":
            self._check_choice(properties, 'state', VALID_SWITCH_STATES,
                               f"Switch {component_id}: unknown state", warnings)
            self._check_choice(properties, 'switchType', VALID_SWITCH_TYPES,
                               f"Switch {component_id}: unknown switch type", warnings)
        elif component_type == "station":
            self._check_choice(properties, 'stationType', VALID_STATION_TYPES,
                               f"Station {component_id}: unknown station type", warnings)
            platforms = properties.get('platforms')
            if platforms is not None and not isinstance(platforms, list):
                warnings.append(f"Station {component_id}: platforms must be an array")
        elif component_type == "platform":
            for key in ('length', 'height'):
                value = properties.get(key)
                if value is not None and (not _is_number(value) or value <= 0):
                    warnings.append(f"Platform {component_id}: invalid {key} property")

    @staticmethod
    def _check_choice(properties: Dict[str, Any], key: str, choices: tuple,
                      message: str, warnings: List[str]) -> None:
        value = properties.get(key)
        if value and value not in choices:
            warnings.append(f"{message} '{value}'")

    # Topology and geometry

    def _validate_topology(self, topology: Any, errors: List[str], warnings: List[str]) -> None:
        nodes = _field(topology, 'nodes')
        edges = _field(topology, 'edges')
        connections = _field(topology, 'connections')

        if nodes is not None and not isinstance(nodes, list):
            errors.append("Topology nodes must be an array")
        if edges is not None and not isinstance(edges, list):
            errors.append("Topology edges must be an array")
        if connections is not None and not isinstance(connections, list):
            errors.append("Topology connections must be an array")

        if isinstance(nodes, list):
            for index, node in enumerate(nodes):
                if not _field(node, 'id'):
                    errors.append(f"Topology node {index}: missing required 'id' attribute")
                node_id = _label(node, index)
                if not _present(_field(node, 'position')):
                    errors.append(f"Topology node {node_id}: missing position information")
                if not _field(node, 'type'):
                    warnings.append(f"Topology node {node_id}: missing type information")

        if isinstance(edges, list):
            for index, edge in enumerate(edges):
                if not _field(edge, 'id'):
                    errors.append(f"Topology edge {index}: missing required 'id' attribute")
                if not _field(edge, 'trackId'):
                    warnings.append(f"Topology edge {_label(edge, index)}: missing trackId reference")

    def _validate_geometry(self, geometry: Any, errors: List[str], warnings: List[str]) -> None:
        if not _field(geometry, 'coordinateSystem'):
            warnings.append("Missing coordinate system specification")

        bounds = _field(geometry, 'bounds')
        if not _present(bounds):
            warnings.append("Missing geometry bounds information")
        else:
            values = [_field(bounds, key) for key in ('minX', 'minY', 'maxX', 'maxY')]
            if not all(_is_number(v) for v in values):
                errors.append("Invalid bounds specification - all bounds must be numbers")
            else:
                min_x, min_y, max_x, max_y = values
                if min_x >= max_x or min_y >= max_y:
                    errors.append("Invalid bounds specification - min values must be less than max values")

        scale = _field(geometry, 'scale')
        if scale is not None and (not _is_number(scale) or scale <= 0):
            warnings.append("Invalid or missing scale specification")

    # Metadata

    def _validate_metadata(self, metadata: Any, errors: List[str], warnings: List[str]) -> None:
        export_info = _field(metadata, 'exportInfo')
        if not _present(export_info):
            return

        if not _field(export_info, 'version'):
            warnings.append("Missing export version information")

        timestamp = _field(export_info, 'timestamp')
        if not timestamp:
            warnings.append("Missing export timestamp")
        elif not isinstance(timestamp, str) or not re.match(TIMESTAMP_PATTERN, timestamp):
            warnings.append("Invalid timestamp format - should be ISO 8601")

        dims = _field(export_info, 'canvasDimensions')
        if _present(dims):
            if not (_is_number(_field(dims, 'width')) and _is_number(_field(dims, 'height'))):
                errors.append("Invalid canvas dimensions specification")

    # Reporting

    def generate_validation_report(self, result: ValidationResult) -> str:
        return generate_validation_report(result)

    def format_validation_errors(self, result: ValidationResult) -> Dict[str, Any]:
        """Convert a result into message records with severities for display."""
        return {
            'errors': [{'type': 'error', 'message': e, 'severity': 'high'} for e in result.errors],
            'warnings': [{'type': 'warning', 'message': w, 'severity': 'medium'} for w in result.warnings],
            'summary': {
                'isValid': result.is_valid,
                'errorCount': len(result.errors),
                'warningCount': len(result.warnings),
            },
        }

    def get_schema_info(self) -> Dict[str, Any]:
        return {
            'version': self.version,
            'namespace': self.namespace,
            'supportedElements': {
                'infrastructure': {
                    'tracks': "Railway track segments with geometry",
                    'functionalInfrastructure': "Railway components (signals, switches, etc.)",
                    'topology': "Network topology with nodes, edges, and connections",
                    'geometry': "Coordinate system and spatial bounds",
                },
                'metadata': {
                    'exportInfo': "Export metadata including version and timestamps",
                    'canvasDimensions': "Original canvas size information",
                },
            },
            'validComponentTypes': list(VALID_COMPONENT_TYPES),
            'validSignalAspects': list(VALID_SIGNAL_ASPECTS),
            'validSwitchStates': list(VALID_SWITCH_STATES),
        }


def generate_validation_report(result: ValidationResult) -> str:
    """Render a validation result as a plain-text report.

    The text depends only on the result, so identical results always produce
    identical reports.
    """
    lines = ["RailML Validation Report", "=" * 50, ""]
    lines.append(f"Status: {'VALID' if result.is_valid else 'INVALID'}")
    lines.append(f"Errors: {len(result.errors)}")
    lines.append(f"Warnings: {len(result.warnings)}")
    lines.append("")

    for title, messages in (("ERRORS:", result.errors), ("WARNINGS:", result.warnings)):
        if messages:
            lines.append(title)
            lines.append("-" * 20)
            lines.extend(f"{i}. {message}" for i, message in enumerate(messages, 1))
            lines.append("")

    if result.is_valid:
        lines.append("✅ Document is valid according to RailML schema guidelines.")
    else:
        lines.append("❌ Document contains errors that need to be addressed.")

    return "\n".join(lines) + "\n"


class RailMLUtils:
    """Helpers for RailML ids, coordinate systems and sample documents."""

    @staticmethod
    def pixel_to_geo(x: float, y: float, bounds: Dict[str, float],
                     geo_reference: Optional[Dict[str, float]] = None) -> Dict[str, float]:
        """Project a pixel position into a geographic box spanned by ``bounds``.

        Args:
            x: Pixel x coordinate
            y: Pixel y coordinate
            bounds: Pixel extent with ``minX``, ``minY``, ``maxX``, ``maxY``
            geo_reference: ``latMin``, ``latMax``, ``lonMin``, ``lonMax`` of the target box

        Returns:
            Dict with latitude, longitude and elevation
        """
        ref = geo_reference or {'latMin': 0, 'latMax': 0.001, 'lonMin': 0, 'lonMax': 0.001}

        normalized_x = (x - bounds['minX']) / (bounds['maxX'] - bounds['minX'])
        normalized_y = (y - bounds['minY']) / (bounds['maxY'] - bounds['minY'])

        return {
            'latitude': ref['latMin'] + normalized_y * (ref['latMax'] - ref['latMin']),
            'longitude': ref['lonMin'] + normalized_x * (ref['lonMax'] - ref['lonMin']),
            'elevation': 0,
        }

    @staticmethod
    def generate_railml_id(element_type: str, index: int) -> str:
        """Build an id like ``signal_3_lq2x8k0`` from type, index and a base-36 time stamp."""
        millis = int(time.time() * 1000)
        digits = "0123456789abcdefghijklmnopqrstuvwxyz"
        stamp = ""
        while millis:
            millis, rem = divmod(millis, 36)
            stamp = digits[rem] + stamp
        return f"{element_type}_{index}_{stamp or '0'}"

    @staticmethod
    def validate_crs(crs: str) -> bool:
        return crs in VALID_CRS

    @staticmethod
    def convert_coordinates(coordinates: List[List[float]], from_crs: str, to_crs: str) -> List[List[float]]:
        """Convert coordinates between reference systems.

        Only pixel -> EPSG:4326 is supported (simple 1/100000 scaling); other
        pairs are returned unchanged.
        """
        if from_crs == to_crs:
            return coordinates

        if from_crs == "pixel" and to_crs == "EPSG:4326":
            return [[c[0] / 100000, c[1] / 100000] for c in coordinates]

        logger.warning(f"Coordinate conversion from {from_crs} to {to_crs} not implemented")
        return coordinates

    @staticmethod
    def generate_sample_railml() -> Dict[str, Any]:
        """A small complete document that passes validation."""
        timestamp = utc_timestamp()
        return {
            'railml': {
                'version': RAILML_VERSION,
                'xmlns': RAILML_NAMESPACE,
                'created': timestamp,
                'creator': CREATOR,
                'infrastructure': {
                    'id': "sample_infrastructure",
                    'name': "Sample Railway Design",
                    'tracks': [
                        {
                            'id': "track_1",
                            'name': "Main Line",
                            'length': 1000.0,
                            'geometry': {'coordinates': [[0, 0], [1000, 0]], 'type': "LineString"},
                        }
                    ],
                    'functionalInfrastructure': [
                        {
                            'id': "signal_1",
                            'type': "signal",
                            'name': "Entry Signal",
                            'position': {
                                'x': 100,
                                'y': 50,
                                'coordinate': {'latitude': 0.0001, 'longitude': 0.001, 'elevation': 0},
                            },
                            'properties': {'aspect': "red", 'signalType': "main"},
                        }
                    ],
                    'topology': {'nodes': [], 'edges': [], 'connections': []},
                    'geometry': {
                        'coordinateSystem': "pixel",
                        'bounds': {'minX': 0, 'minY': 0, 'maxX': DEFAULT_CANVAS_WIDTH, 'maxY': DEFAULT_CANVAS_HEIGHT},
                        'scale': 1,
                        'unit': "px",
                    },
                },
                'metadata': {
                    'exportInfo': {
                        'version': EXPORT_VERSION,
                        'timestamp': timestamp,
                        'canvasDimensions': {'width': DEFAULT_CANVAS_WIDTH, 'height': DEFAULT_CANVAS_HEIGHT},
                    }
                },
            }
        }


def validate_document(railml_data: Union[str, Dict[str, Any]]) -> ValidationResult:
    """Convenience function for validation with the default schema version."""
    return RailMLValidator().validate_document(railml_data)
