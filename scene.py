"""Scene model for the track-drawing editor: tracks, components and undo history.

Raw editor records are loosely shaped dictionaries with optional fields. They are
normalized exactly once, in ``Track.from_dict`` / ``Component.from_dict``, so the
geometry engine, document builder and statistics helpers can read plain
attributes without re-applying defaults.
"""
import copy
import uuid
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any, Union

from loguru import logger

from constraints import (
    DEFAULT_TRACK_COLOR,
    DEFAULT_STROKE_WIDTH,
    DEFAULT_SNAP_DISTANCE,
    HISTORY_CAPACITY,
)
from core import utc_timestamp


class SceneError(Exception):
    """Raised when an editor operation refers to an unknown track or component."""
    pass


# Keys that Component stores as attributes; everything else is type-specific
_COMPONENT_BASE_KEYS = ("id", "type", "name", "position", "rotation", "createdAt")


@dataclass
class Track:
    """A polyline railway segment defined by a flat alternating x,y list."""

    id: str
    points: List[float] = field(default_factory=list)
    name: str = ""
    color: str = DEFAULT_TRACK_COLOR
    stroke_width: float = DEFAULT_STROKE_WIDTH
    created_at: str = ""

    @property
    def point_count(self) -> int:
        return len(self.points) // 2

    @property
    def is_degenerate(self) -> bool:
        """Tracks with fewer than two points have no segment."""
        return self.point_count < 2

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> 'Track':
        """Create a track from an editor record, filling defaults by position.

        Args:
            data: Raw editor record (``id``, ``points``, ``color``, ``strokeWidth``...)
            index: Position of the track in the scene, used for default id/name

        Returns:
            Track: Normalized track
        """
        points = list(data.get('points') or [])
        if len(points) % 2:
            logger.warning(f"Track {data.get('id', index)} has an unpaired trailing coordinate, dropping it")
            points = points[:-1]

        return cls(
            id=data.get('id') or f"track_{index}",
            points=points,
            name=data.get('name') or f"Track {index + 1}",
            color=data.get('color') or DEFAULT_TRACK_COLOR,
            stroke_width=DEFAULT_STROKE_WIDTH if data.get('strokeWidth') is None else data['strokeWidth'],
            created_at=data.get('createdAt') or utc_timestamp(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert track back to the editor record shape."""
        return {
            'id': self.id,
            'name': self.name,
            'points': list(self.points),
            'color': self.color,
            'strokeWidth': self.stroke_width,
            'createdAt': self.created_at,
        }


@dataclass
class Component:
    """A positioned railway object (signal, switch, station, platform or other)."""

    id: str
    type: Optional[str]
    name: str = ""
    x: float = 0
    y: float = 0
    rotation: float = 0
    created_at: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def position(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y}

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a type-specific attribute such as ``aspect`` or ``state``."""
        value = self.attributes.get(key)
        return default if value is None else value

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> 'Component':
        """Create a component from an editor record, filling defaults by position."""
        position = data.get('position') or {}
        component_type = data.get('type')

        return cls(
            id=data.get('id') or f"component_{index}",
            type=component_type,
            name=data.get('name') or f"{component_type} {index + 1}",
            x=position.get('x') or 0,
            y=position.get('y') or 0,
            rotation=data.get('rotation') or 0,
            created_at=data.get('createdAt') or utc_timestamp(),
            attributes={k: v for k, v in data.items() if k not in _COMPONENT_BASE_KEYS},
        )

    def to_dict(self) -> Dict[str, Any]:
        record = {
            'id': self.id,
            'type': self.type,
            'name': self.name,
            'position': self.position,
            'rotation': self.rotation,
            'createdAt': self.created_at,
        }
        record.update(copy.deepcopy(self.attributes))
        return record


@dataclass
class Scene:
    """The in-memory set of tracks and components being edited."""

    tracks: List[Track] = field(default_factory=list)
    components: List[Component] = field(default_factory=list)
    snap_distance: float = DEFAULT_SNAP_DISTANCE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Scene':
        """Build a scene from ``{"tracks": [...], "components": [...]}``."""
        tracks = [Track.from_dict(t, i) for i, t in enumerate(data.get('tracks') or [])]
        components = [Component.from_dict(c, i) for i, c in enumerate(data.get('components') or [])]
        snap_distance = data.get('snapDistance')
        if snap_distance is None:
            snap_distance = DEFAULT_SNAP_DISTANCE
        logger.debug(f"Loaded scene with {len(tracks)} tracks and {len(components)} components")
        return cls(tracks=tracks, components=components, snap_distance=snap_distance)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tracks': [t.to_dict() for t in self.tracks],
            'components': [c.to_dict() for c in self.components],
            'snapDistance': self.snap_distance,
        }

    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of the scene in record form, detached from this instance."""
        return copy.deepcopy(self.to_dict())

    # Track management

    def add_track(self, track: Union[Track, Dict[str, Any]]) -> Track:
        if isinstance(track, dict):
            record = dict(track)
            record.setdefault('id', f"track-{uuid.uuid4().hex[:12]}")
            track = Track.from_dict(record, len(self.tracks))
        self.tracks.append(track)
        logger.debug(f"Added track {track.id} with {track.point_count} points")
        return track

    def update_track(self, track_id: str, updates: Dict[str, Any]) -> Track:
        index = self._track_index(track_id)
        record = self.tracks[index].to_dict()
        record.update(updates)
        self.tracks[index] = Track.from_dict(record, index)
        return self.tracks[index]

    def remove_track(self, track_id: str) -> None:
        del self.tracks[self._track_index(track_id)]

    def clear_tracks(self) -> None:
        self.tracks = []

    def get_track_by_id(self, track_id: str) -> Optional[Track]:
        return next((t for t in self.tracks if t.id == track_id), None)

    # Component management

    def add_component(self, component: Union[Component, Dict[str, Any]]) -> Component:
        if isinstance(component, dict):
            record = dict(component)
            record.setdefault('id', f"component-{uuid.uuid4().hex[:12]}")
            component = Component.from_dict(record, len(self.components))
        self.components.append(component)
        logger.debug(f"Added {component.type} component {component.id}")
        return component

    def update_component(self, component_id: str, updates: Dict[str, Any]) -> Component:
        index = self._component_index(component_id)
        record = self.components[index].to_dict()
        record.update(updates)
        self.components[index] = Component.from_dict(record, index)
        return self.components[index]

    def remove_component(self, component_id: str) -> None:
        del self.components[self._component_index(component_id)]

    def get_component_by_id(self, component_id: str) -> Optional[Component]:
        return next((c for c in self.components if c.id == component_id), None)

    def _track_index(self, track_id: str) -> int:
        for i, track in enumerate(self.tracks):
            if track.id == track_id:
                return i
        raise SceneError(f"Unknown track: {track_id}")

    def _component_index(self, component_id: str) -> int:
        for i, component in enumerate(self.components):
            if component.id == component_id:
                return i
        raise SceneError(f"Unknown component: {component_id}")


class SceneHistory:
    """Bounded undo/redo log of immutable scene snapshots.

    Snapshots are recorded explicitly by the editor after each edit. Recording
    after an undo discards the redo branch; once ``capacity`` snapshots are
    held the oldest one is evicted.
    """

    def __init__(self, capacity: int = HISTORY_CAPACITY):
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self.capacity = capacity
        self._snapshots: List[Dict[str, Any]] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._snapshots) - 1

    def record(self, scene: Scene) -> None:
        """Append a snapshot of ``scene`` as the newest history entry."""
        del self._snapshots[self._index + 1:]
        self._snapshots.append(scene.snapshot())
        if len(self._snapshots) > self.capacity:
            self._snapshots.pop(0)
        self._index = len(self._snapshots) - 1

    def undo(self) -> Optional[Scene]:
        """Step back one snapshot; returns ``None`` when there is nothing to undo."""
        if not self.can_undo:
            return None
        self._index -= 1
        return self._restore()

    def redo(self) -> Optional[Scene]:
        if not self.can_redo:
            return None
        self._index += 1
        return self._restore()

    def _restore(self) -> Scene:
        return Scene.from_dict(copy.deepcopy(self._snapshots[self._index]))
