"""Track and component statistics, export quality checks and plain-text design summaries."""
from typing import List, Dict, Any, Iterable, Mapping, Optional

from loguru import logger

from constraints import (
    COMPONENT_PROXIMITY,
    SHORT_TRACK_LENGTH,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_CANVAS_HEIGHT,
)
from core import utc_timestamp
from geometry import calculate_track_length, find_nearest_track_point
from scene import Scene


def calculate_track_statistics(tracks: List[Mapping[str, Any]]) -> Dict[str, Any]:
    """Aggregate length statistics over converted track records.

    Args:
        tracks: Records carrying a ``length`` field; a missing length counts as 0

    Returns:
        Dict with totalTracks, totalLength, averageLength, shortestTrack, longestTrack
    """
    lengths = [track.get('length') or 0 for track in tracks]
    total_length = sum(lengths)

    return {
        'totalTracks': len(tracks),
        'totalLength': total_length,
        'averageLength': total_length / len(lengths) if lengths else 0,
        'shortestTrack': min(lengths) if lengths else 0,
        'longestTrack': max(lengths) if lengths else 0,
    }


def calculate_component_statistics(components: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """Count components per type.

    ``mostCommonType`` is ``"none"`` for an empty list; among equally frequent
    types the one encountered first wins.
    """
    by_type: Dict[str, int] = {}
    total = 0
    for component in components:
        component_type = component.get('type') or "unknown"
        by_type[component_type] = by_type.get(component_type, 0) + 1
        total += 1

    most_common = "none"
    for component_type, count in by_type.items():
        if most_common == "none" or count > by_type[most_common]:
            most_common = component_type

    return {
        'totalComponents': total,
        'byType': by_type,
        'mostCommonType': most_common,
    }


def validate_export_data(scene: Scene, proximity: float = COMPONENT_PROXIMITY) -> Dict[str, Any]:
    """Advisory quality pass over a scene before export.

    Issues make the quality ``needs_attention``; suggestions never do.

    Args:
        scene: Scene to inspect
        proximity: Distance beyond which a component counts as isolated from all tracks

    Returns:
        Dict with issues, suggestions and quality
    """
    issues = []
    suggestions = []

    if not scene.tracks:
        issues.append("No tracks found in design")

    if not scene.components:
        suggestions.append("Consider adding railway components (signals, switches, etc.)")

    short_tracks = [t for t in scene.tracks if calculate_track_length(t.points) < SHORT_TRACK_LENGTH]
    if short_tracks:
        suggestions.append(f"{len(short_tracks)} track(s) are very short (< {SHORT_TRACK_LENGTH:g} pixels)")

    isolated = []
    for component in scene.components:
        nearest = find_nearest_track_point(scene, component.x, component.y, snap_distance=proximity)
        if nearest is None or nearest.distance > proximity:
            isolated.append(component)

    if isolated:
        suggestions.append(f"{len(isolated)} component(s) are not near any tracks")
        logger.debug(f"Isolated components: {[c.id for c in isolated]}")

    return {
        'issues': issues,
        'suggestions': suggestions,
        'quality': "good" if not issues else "needs_attention",
    }


def get_design_statistics(scene: Scene) -> Dict[str, Any]:
    """Summary figures for printable exports; component types are pluralized."""
    total_length = sum(calculate_track_length(t.points) for t in scene.tracks)

    components_by_type: Dict[str, int] = {}
    for component in scene.components:
        key = f"{component.type}s"
        components_by_type[key] = components_by_type.get(key, 0) + 1

    return {
        'totalTracks': len(scene.tracks),
        'totalLength': total_length,
        'totalComponents': len(scene.components),
        'componentsByType': components_by_type,
        'averageTrackLength': total_length / len(scene.tracks) if scene.tracks else 0,
    }


def generate_text_summary(scene: Scene, canvas_width: int = DEFAULT_CANVAS_WIDTH,
                          canvas_height: int = DEFAULT_CANVAS_HEIGHT,
                          exported_at: Optional[str] = None) -> str:
    """Plain-text design export for environments without a document renderer."""
    exported_at = exported_at or utc_timestamp()

    lines = ["RAILWAY DESIGN EXPORT", "=" * 50, ""]
    lines.append(f"Export Date: {exported_at}")
    lines.append(f"Canvas Size: {canvas_width}×{canvas_height}")
    lines.append("")

    lines.append(f"TRACKS ({len(scene.tracks)}):")
    lines.append("-" * 30)
    for index, track in enumerate(scene.tracks, 1):
        lines.append(f"Track {index}:")
        lines.append(f"  ID: {track.id}")
        lines.append(f"  Color: {track.color}")
        lines.append(f"  Length: {calculate_track_length(track.points):.2f} px")
        lines.append(f"  Points: {track.point_count}")
        lines.append("")

    lines.append(f"COMPONENTS ({len(scene.components)}):")
    lines.append("-" * 30)
    for index, component in enumerate(scene.components, 1):
        lines.append(f"Component {index}:")
        lines.append(f"  ID: {component.id}")
        lines.append(f"  Type: {component.type}")
        lines.append(f"  Name: {component.name or 'Unnamed'}")
        lines.append(f"  Position: ({component.x}, {component.y})")
        lines.append("")

    lines.append("")
    lines.append("NOTE: This is a simplified text export.")
    return "\n".join(lines) + "\n"
