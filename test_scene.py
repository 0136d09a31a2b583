"""Test suite for scene module."""
import pytest

from scene import Scene, Track, Component, SceneHistory, SceneError


class TestTrackNormalization:
    """Test one-time default filling for tracks."""

    def test_defaults_by_position(self):
        """Test missing fields default from the track's index."""
        track = Track.from_dict({'points': [0, 0, 10, 0]}, index=2)
        assert track.id == "track_2"
        assert track.name == "Track 3"
        assert track.color == "#333333"
        assert track.stroke_width == 4
        assert track.created_at

    def test_keeps_given_values(self):
        """Test explicit values are preserved."""
        track = Track.from_dict({'id': "a", 'points': [1, 2, 3, 4], 'color': "#ff0000",
                                 'strokeWidth': 6, 'createdAt': "2024-01-01T00:00:00.000Z"})
        assert track.to_dict() == {
            'id': "a", 'name': "Track 1", 'points': [1, 2, 3, 4], 'color': "#ff0000",
            'strokeWidth': 6, 'createdAt': "2024-01-01T00:00:00.000Z",
        }

    def test_zero_stroke_width_is_kept(self):
        """Test a zero stroke width is not replaced by the default."""
        assert Track.from_dict({'points': [], 'strokeWidth': 0}).stroke_width == 0

    def test_drops_unpaired_coordinate(self):
        """Test an odd point list loses its trailing value."""
        track = Track.from_dict({'points': [0, 0, 10, 0, 99]})
        assert track.points == [0, 0, 10, 0]

    def test_degenerate_track(self):
        """Test tracks with fewer than two points are degenerate."""
        assert Track.from_dict({'points': [1, 1]}).is_degenerate
        assert not Track.from_dict({'points': [1, 1, 2, 2]}).is_degenerate


class TestComponentNormalization:
    """Test one-time default filling for components."""

    def test_defaults(self):
        """Test missing position, rotation and name."""
        component = Component.from_dict({'type': "signal"}, index=0)
        assert component.id == "component_0"
        assert component.name == "signal 1"
        assert (component.x, component.y) == (0, 0)
        assert component.rotation == 0

    def test_type_specific_attributes(self):
        """Test type-specific fields are kept as attributes."""
        component = Component.from_dict({'id': "sw", 'type': "switch", 'state': "reverse",
                                         'position': {'x': 4, 'y': 7}})
        assert component.get('state') == "reverse"
        assert component.get('switchType', "simple") == "simple"
        assert component.position == {'x': 4, 'y': 7}
        assert component.to_dict()['state'] == "reverse"


class TestSceneEditing:
    """Test editor operations on a scene."""

    def test_add_update_remove_track(self):
        """Test track lifecycle."""
        scene = Scene()
        track = scene.add_track({'points': [0, 0, 50, 0]})
        assert scene.get_track_by_id(track.id) is track

        updated = scene.update_track(track.id, {'color': "#00ff00"})
        assert updated.color == "#00ff00"
        assert updated.id == track.id

        scene.remove_track(track.id)
        assert scene.tracks == []

    def test_unknown_ids_raise(self):
        """Test operations on unknown ids raise SceneError."""
        scene = Scene()
        with pytest.raises(SceneError):
            scene.remove_track("missing")
        with pytest.raises(SceneError):
            scene.update_component("missing", {'rotation': 90})

    def test_component_lifecycle(self):
        """Test adding, finding and removing a component."""
        scene = Scene()
        component = scene.add_component({'type': "station", 'position': {'x': 1, 'y': 2}})
        assert scene.get_component_by_id(component.id).type == "station"
        scene.remove_component(component.id)
        assert scene.get_component_by_id(component.id) is None

    def test_snap_distance(self):
        """Test snap distance defaults to 10 and keeps an explicit 0."""
        assert Scene.from_dict({}).snap_distance == 10
        assert Scene.from_dict({'snapDistance': 0}).snap_distance == 0

    def test_from_dict_round_trip_preserves_order(self):
        """Test tracks and components keep their input order."""
        data = {
            'tracks': [{'id': "b", 'points': [0, 0, 1, 1]}, {'id': "a", 'points': [2, 2, 3, 3]}],
            'components': [{'id': "c2", 'type': "signal"}, {'id': "c1", 'type': "switch"}],
        }
        scene = Scene.from_dict(data)
        assert [t.id for t in scene.tracks] == ["b", "a"]
        assert [c.id for c in scene.components] == ["c2", "c1"]


class TestSceneHistory:
    """Test the bounded undo/redo log."""

    def test_undo_redo(self):
        """Test stepping back and forward through snapshots."""
        scene = Scene()
        history = SceneHistory()
        history.record(scene)
        scene.add_track({'id': "t", 'points': [0, 0, 1, 0]})
        history.record(scene)

        previous = history.undo()
        assert previous.tracks == []
        assert history.can_redo

        restored = history.redo()
        assert [t.id for t in restored.tracks] == ["t"]
        assert history.redo() is None

    def test_snapshots_are_detached(self):
        """Test later edits do not leak into recorded snapshots."""
        scene = Scene()
        history = SceneHistory()
        history.record(scene)
        scene.add_track({'id': "t", 'points': [0, 0, 1, 0]})
        history.record(scene)
        scene.tracks[0].points.append(5)

        history.undo()
        assert history.redo().tracks[0].points == [0, 0, 1, 0]

    def test_record_after_undo_discards_redo_branch(self):
        """Test a new edit after undo drops the redo entries."""
        history = SceneHistory()
        for i in range(3):
            history.record(Scene.from_dict({'tracks': [{'id': f"t{i}", 'points': []}]}))
        history.undo()
        history.record(Scene())
        assert not history.can_redo
        assert len(history) == 3

    def test_capacity_evicts_oldest(self):
        """Test the log never exceeds its capacity."""
        history = SceneHistory(capacity=3)
        for i in range(5):
            history.record(Scene.from_dict({'tracks': [{'id': f"t{i}", 'points': []}]}))
        assert len(history) == 3

        history.undo()
        oldest = history.undo()
        assert oldest.tracks[0].id == "t2"
        assert not history.can_undo


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
