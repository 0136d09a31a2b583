"""Test suite for design_stats module."""
import pytest

from design_stats import (
    calculate_track_statistics,
    calculate_component_statistics,
    validate_export_data,
    get_design_statistics,
    generate_text_summary,
)
from scene import Scene


class TestTrackStatistics:
    """Test aggregate track statistics."""

    def test_empty(self):
        """Test an empty track list gives zeros."""
        assert calculate_track_statistics([]) == {
            'totalTracks': 0,
            'totalLength': 0,
            'averageLength': 0,
            'shortestTrack': 0,
            'longestTrack': 0,
        }

    def test_lengths(self):
        """Test totals, average and extremes."""
        statistics = calculate_track_statistics([{'length': 10}, {'length': 30}, {'length': 20}])
        assert statistics['totalLength'] == 60
        assert statistics['averageLength'] == pytest.approx(20)
        assert statistics['shortestTrack'] == 10
        assert statistics['longestTrack'] == 30

    def test_missing_length_counts_as_zero(self):
        """Test records without a length contribute 0."""
        statistics = calculate_track_statistics([{'id': "a"}, {'length': 8}])
        assert statistics['totalLength'] == 8
        assert statistics['shortestTrack'] == 0


class TestComponentStatistics:
    """Test per-type component counts."""

    def test_empty(self):
        """Test no components yields mostCommonType none."""
        assert calculate_component_statistics([]) == {
            'totalComponents': 0,
            'byType': {},
            'mostCommonType': "none",
        }

    def test_counts_and_most_common(self):
        """Test counting by type."""
        components = [{'type': "signal"}, {'type': "switch"}, {'type': "signal"}]
        statistics = calculate_component_statistics(components)
        assert statistics['totalComponents'] == 3
        assert statistics['byType'] == {'signal': 2, 'switch': 1}
        assert statistics['mostCommonType'] == "signal"

    def test_tie_keeps_first_type(self):
        """Test equally common types resolve to the first encountered."""
        components = [{'type': "switch"}, {'type': "signal"}, {'type': "signal"}, {'type': "switch"}]
        assert calculate_component_statistics(components)['mostCommonType'] == "switch"


class TestValidateExportData:
    """Test the advisory export quality pass."""

    def test_empty_scene(self):
        """Test an empty scene has a track issue and a component suggestion."""
        result = validate_export_data(Scene())
        assert result['issues'] == ["No tracks found in design"]
        assert result['suggestions'] == ["Consider adding railway components (signals, switches, etc.)"]
        assert result['quality'] == "needs_attention"

    def test_component_near_track(self):
        """Test a signal close to a track raises no suggestion."""
        scene = Scene.from_dict({
            'tracks': [{'id': "t", 'points': [0, 0, 100, 0]}],
            'components': [{'id': "s", 'type': "signal", 'position': {'x': 50, 'y': 5}}],
        })
        result = validate_export_data(scene)
        assert result == {'issues': [], 'suggestions': [], 'quality': "good"}

    def test_component_far_from_tracks(self):
        """Test a distant signal is reported as isolated without affecting quality."""
        scene = Scene.from_dict({
            'tracks': [{'id': "t", 'points': [0, 0, 100, 0]}],
            'components': [{'id': "s", 'type': "signal", 'position': {'x': 50, 'y': 500}}],
        })
        result = validate_export_data(scene)
        assert result['issues'] == []
        assert result['suggestions'] == ["1 component(s) are not near any tracks"]
        assert result['quality'] == "good"

    def test_proximity_is_configurable(self):
        """Test the isolation threshold can be tightened."""
        scene = Scene.from_dict({
            'tracks': [{'id': "t", 'points': [0, 0, 100, 0]}],
            'components': [{'id': "s", 'type': "signal", 'position': {'x': 50, 'y': 20}}],
        })
        assert validate_export_data(scene)['suggestions'] == []
        assert validate_export_data(scene, proximity=10)['suggestions'] == [
            "1 component(s) are not near any tracks"
        ]

    def test_short_tracks(self):
        """Test tracks under 10 pixels are counted."""
        scene = Scene.from_dict({
            'tracks': [{'points': [0, 0, 5, 0]}, {'points': [1, 1]}, {'points': [0, 0, 50, 0]}],
            'components': [{'type': "signal", 'position': {'x': 20, 'y': 0}}],
        })
        result = validate_export_data(scene)
        assert result['suggestions'] == ["2 track(s) are very short (< 10 pixels)"]
        assert result['quality'] == "good"


class TestDesignSummary:
    """Test summary statistics and the text export."""

    def scene(self):
        return Scene.from_dict({
            'tracks': [{'id': "t1", 'points': [0, 0, 30, 40], 'color': "#ff0000"}],
            'components': [
                {'id': "s1", 'type': "signal", 'name': "Home", 'position': {'x': 10, 'y': 20}},
                {'id': "s2", 'type': "signal", 'position': {'x': 15, 'y': 20}},
                {'id': "p1", 'type': "platform", 'position': {'x': 5, 'y': 5}},
            ],
        })

    def test_design_statistics(self):
        """Test pluralized type counts and average length."""
        statistics = get_design_statistics(self.scene())
        assert statistics == {
            'totalTracks': 1,
            'totalLength': 50.0,
            'totalComponents': 3,
            'componentsByType': {'signals': 2, 'platforms': 1},
            'averageTrackLength': 50.0,
        }

    def test_design_statistics_empty(self):
        """Test an empty scene has zero average."""
        assert get_design_statistics(Scene())['averageTrackLength'] == 0

    def test_text_summary(self):
        """Test the text summary lists tracks and components."""
        text = generate_text_summary(self.scene(), 800, 600, exported_at="2024-05-01T12:00:00.000Z")
        lines = text.splitlines()

        assert lines[0] == "RAILWAY DESIGN EXPORT"
        assert "Export Date: 2024-05-01T12:00:00.000Z" in lines
        assert "Canvas Size: 800×600" in lines
        assert "TRACKS (1):" in lines
        assert "  Length: 50.00 px" in lines
        assert "  Points: 2" in lines
        assert "  Color: #ff0000" in lines
        assert "COMPONENTS (3):" in lines
        assert "  Name: Home" in lines
        assert "  Position: (10, 20)" in lines
        assert text.endswith("NOTE: This is a simplified text export.\n")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
