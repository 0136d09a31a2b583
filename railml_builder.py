"""Build RailML infrastructure documents from track-layout scenes."""
import copy
import time
from typing import List, Dict, Optional, Any, Callable

from loguru import logger

from constraints import (
    RAILML_VERSION,
    RAILML_NAMESPACE,
    EXPORT_VERSION,
    CREATOR,
    DEFAULT_INFRASTRUCTURE_NAME,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_CANVAS_HEIGHT,
    COMPONENT_DEFAULTS,
)
from core import PerformanceMonitor, utc_timestamp
from design_stats import (
    calculate_track_statistics,
    calculate_component_statistics,
    validate_export_data,
)
from geometry import calculate_track_length, points_to_coordinates, pixel_to_geo_coordinate
from railml_schema import RailMLValidator
from scene import Scene, Component


class RailMLBuilder:
    """Convert a scene into a RailML-shaped JSON document.

    The builder never mutates the scene and never fails on missing optional
    fields; defaults were filled in when the scene was normalized.
    """

    def __init__(self, validator: Optional[RailMLValidator] = None,
                 clock: Optional[Callable[[], str]] = None):
        """Initialize builder with its collaborators.

        Args:
            validator: Validator used when a build requests validation
            clock: Returns the ISO-8601 timestamp stamped on documents
        """
        self.validator = validator or RailMLValidator()
        self.clock = clock or utc_timestamp

    def convert_tracks(self, scene: Scene) -> List[Dict[str, Any]]:
        return [
            {
                'id': track.id,
                'name': track.name,
                'length': calculate_track_length(track.points),
                'geometry': {
                    'coordinates': points_to_coordinates(track.points),
                    'type': "LineString",
                },
                'visualProperties': {
                    'color': track.color,
                    'strokeWidth': track.stroke_width,
                },
                'createdAt': track.created_at,
            }
            for track in scene.tracks
        ]

    def convert_components(self, scene: Scene) -> List[Dict[str, Any]]:
        return [
            {
                'id': component.id,
                'type': component.type,
                'name': component.name,
                'position': {
                    'x': component.x,
                    'y': component.y,
                    'coordinate': pixel_to_geo_coordinate(component.x, component.y),
                },
                'rotation': component.rotation,
                'properties': self.component_properties(component),
                'createdAt': component.created_at,
            }
            for component in scene.components
        ]

    @staticmethod
    def component_properties(component: Component) -> Dict[str, Any]:
        """Shape the exported ``properties`` object by component type."""
        properties = {'type': component.type, 'name': component.name, 'id': component.id}
        defaults = COMPONENT_DEFAULTS.get(component.type, {})

        if component.type == "signal":
            properties.update({
                'aspect': component.get('aspect') or component.get('state') or defaults['aspect'],
                'signalNumber': component.get('signalNumber'),
                'signalType': component.get('signalType') or defaults['signalType'],
            })
        elif component.type == "switch":
            properties.update({
                'state': component.get('state') or defaults['state'],
                'switchType': component.get('switchType') or defaults['switchType'],
            })
        elif component.type == "station":
            properties.update({
                'stationType': component.get('stationType') or defaults['stationType'],
                'platforms': copy.deepcopy(component.get('platforms') or []),
            })
        elif component.type == "platform":
            properties.update({
                'length': component.get('length') or defaults['length'],
                'height': component.get('height') or defaults['height'],
            })

        return properties

    def generate_topology(self, scene: Scene) -> Dict[str, List[Dict[str, Any]]]:
        """Nodes, edges and connections in scene order.

        Every non-degenerate track contributes a start and an end node, every
        component one node, and every track one edge. ``connections`` stays
        empty: adjacency between components and tracks is not analysed.
        """
        nodes = []

        for track in scene.tracks:
            if track.is_degenerate:
                continue
            points = track.points
            for x, y in ((points[0], points[1]), (points[-2], points[-1])):
                nodes.append({
                    'id': f"node_{len(nodes)}",
                    'position': {'x': x, 'y': y},
                    'type': "trackEnd",
                })

        for component in scene.components:
            nodes.append({
                'id': f"node_{len(nodes)}",
                'position': component.position,
                'type': "component",
                'componentId': component.id,
                'componentType': component.type,
            })

        edges = [
            {
                'id': f"edge_track_{index}",
                'trackId': track.id,
                'type': "track",
                'length': calculate_track_length(track.points),
            }
            for index, track in enumerate(scene.tracks)
        ]

        return {'nodes': nodes, 'edges': edges, 'connections': []}

    def generate_geometry(self, canvas_width: float = DEFAULT_CANVAS_WIDTH,
                          canvas_height: float = DEFAULT_CANVAS_HEIGHT) -> Dict[str, Any]:
        return {
            'coordinateSystem': "pixel",
            'bounds': {'minX': 0, 'minY': 0, 'maxX': canvas_width, 'maxY': canvas_height},
            'scale': 1,
            'unit': "px",
        }

    @PerformanceMonitor.measure_time
    def build_document(self, scene: Scene, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Build a complete RailML document for the scene.

        Args:
            scene: Scene snapshot to export
            options: Optional settings:
                infrastructure_id: Document id (default ``infrastructure_<epoch ms>``)
                infrastructure_name: Document name
                canvas_width, canvas_height: Drawing surface size in pixels
                validate: Embed a ``validationResult`` unless explicitly False

        Returns:
            Dict: ``{"railml": {...}}`` document
        """
        options = options or {}
        timestamp = self.clock()
        canvas_width = options.get('canvas_width')
        if canvas_width is None:
            canvas_width = DEFAULT_CANVAS_WIDTH
        canvas_height = options.get('canvas_height')
        if canvas_height is None:
            canvas_height = DEFAULT_CANVAS_HEIGHT

        tracks = self.convert_tracks(scene)
        components = self.convert_components(scene)

        statistics = calculate_track_statistics(tracks)
        statistics.update(calculate_component_statistics(components))

        document = {
            'railml': {
                'version': RAILML_VERSION,
                'xmlns': RAILML_NAMESPACE,
                'created': timestamp,
                'creator': CREATOR,
                'infrastructure': {
                    'id': options.get('infrastructure_id') or f"infrastructure_{int(time.time() * 1000)}",
                    'name': options.get('infrastructure_name') or DEFAULT_INFRASTRUCTURE_NAME,
                    'tracks': tracks,
                    'functionalInfrastructure': components,
                    'topology': self.generate_topology(scene),
                    'geometry': self.generate_geometry(canvas_width, canvas_height),
                },
                'metadata': {
                    'exportInfo': {
                        'version': EXPORT_VERSION,
                        'timestamp': timestamp,
                        'canvasDimensions': {'width': canvas_width, 'height': canvas_height},
                        'totalTracks': len(tracks),
                        'totalComponents': len(components),
                    },
                    'statistics': statistics,
                    'validation': validate_export_data(scene),
                },
            }
        }

        if options.get('validate') is not False:
            result = self.validator.validate_document(document)
            document['railml']['metadata']['validationResult'] = result.to_dict()
            if not result.is_valid:
                logger.warning(f"Built document has {len(result.errors)} validation error(s)")

        logger.info(f"Built RailML document with {len(tracks)} tracks and {len(components)} components")
        return document


# Convenience functions using a default builder

def convert_tracks(scene: Scene) -> List[Dict[str, Any]]:
    return RailMLBuilder().convert_tracks(scene)


def convert_components(scene: Scene) -> List[Dict[str, Any]]:
    return RailMLBuilder().convert_components(scene)


def generate_topology(scene: Scene) -> Dict[str, List[Dict[str, Any]]]:
    return RailMLBuilder().generate_topology(scene)


def generate_geometry(canvas_width: float = DEFAULT_CANVAS_WIDTH,
                      canvas_height: float = DEFAULT_CANVAS_HEIGHT) -> Dict[str, Any]:
    return RailMLBuilder().generate_geometry(canvas_width, canvas_height)


def build_document(scene: Scene, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Build a RailML document with the default validator and clock."""
    return RailMLBuilder().build_document(scene, options)
