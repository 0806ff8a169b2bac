"""Tests for RobotClientBase state handling (exercised through MockRobotClient)."""
import math

import pytest

from robodash.clients.mock_client import MockRobotClient
from robodash.core.base import STATE_TOPICS
from robodash.models.state import ConnectionState


class TestRobotClientBase:
    """Tests for RobotClientBase."""

    def test_initialization(self, mock_client):
        assert mock_client.connection_str == "ws://localhost:9090"
        assert isinstance(mock_client.config, dict)
        assert mock_client.connection_state == ConnectionState.CONNECTED

    def test_is_connected(self):
        client = MockRobotClient("ws://localhost:9090")
        assert client.is_connected() is True
        client.terminate()
        assert client.is_connected() is False
        assert client.get_status().connected is False

    def test_connection_info(self, mock_client):
        info = mock_client.connection_info()
        assert info.url == "ws://localhost:9090"
        assert info.is_connected
        assert info.last_error is None

    def test_state_listeners_notified(self, disconnected_client):
        transitions = []
        disconnected_client.add_state_listener(lambda old, new: transitions.append((old, new)))
        disconnected_client.connect_async()
        assert transitions == [
            (ConnectionState.DISCONNECTED, ConnectionState.CONNECTING),
            (ConnectionState.CONNECTING, ConnectionState.CONNECTED),
        ]

    def test_failing_listener_does_not_break_transition(self, disconnected_client):
        def broken(old, new):
            raise RuntimeError("listener bug")

        seen = []
        disconnected_client.add_state_listener(broken)
        disconnected_client.add_state_listener(lambda old, new: seen.append(new))
        disconnected_client.connect_async()
        assert disconnected_client.is_connected()
        assert seen[-1] == ConnectionState.CONNECTED

    def test_remove_state_listener(self, disconnected_client):
        seen = []
        listener = lambda old, new: seen.append(new)
        disconnected_client.add_state_listener(listener)
        disconnected_client.remove_state_listener(listener)
        disconnected_client.connect_async()
        assert seen == []

    def test_connection_lost_records_error(self, mock_client):
        mock_client.simulate_connection_lost(reconnect=False)
        info = mock_client.connection_info()
        assert info.state == ConnectionState.DISCONNECTED
        assert info.last_error == "connection closed"

    def test_error_cleared_on_connect(self, mock_client):
        mock_client.simulate_connection_lost(reconnect=True)
        assert mock_client.is_connected()
        assert mock_client.last_error is None

    def test_update_joint_states(self, mock_client):
        mock_client.update_joint_states({"name": ["joint_1", "joint_2"], "position": [0.1, -0.2]})
        assert mock_client.get_joint_angles() == {"joint_1": 0.1, "joint_2": -0.2}

    def test_update_pose_variants(self, mock_client, yaw_pose):
        mock_client.update_pose(yaw_pose(1.0, 2.0, 0.5))
        assert mock_client.get_pose().theta == pytest.approx(0.5)

        mock_client.update_pose({"header": {}, "pose": {"pose": yaw_pose(3.0, 4.0, -1.0), "covariance": []}})
        pose = mock_client.get_pose()
        assert (pose.x, pose.y) == (3.0, 4.0)
        assert pose.theta == pytest.approx(-1.0)

    def test_update_pose_invalid(self, mock_client):
        mock_client.update_pose({})
        assert mock_client.get_pose() is None

    def test_update_battery(self, mock_client):
        mock_client.update_battery({"percentage": 0.75})
        assert mock_client.get_status().battery == 75.0
        mock_client.update_battery({"percentage": 85.5})
        assert mock_client.get_status().battery == 85.5
        mock_client.update_battery({"percentage": "n/a"})
        assert mock_client.get_status().battery == 85.5

    def test_update_point_cloud(self, mock_client, cloud_factory):
        mock_client.update_point_cloud(cloud_factory([(1.0, 2.0, 3.0), (math.nan, 0.0, 0.0)]))
        assert mock_client.get_status().point_count == 1
        assert mock_client.get_latest_point_cloud().shape == (1, 3)

    def test_update_scan(self, mock_client):
        mock_client.update_scan({"angle_min": 0.0, "angle_increment": 0.1, "ranges": [1.0, 0.0, 2.0]})
        assert mock_client.get_status().scan_point_count == 2

    def test_update_path_and_obstacles(self, mock_client, yaw_pose):
        mock_client.update_path({"poses": [{"pose": yaw_pose(0.0, 0.0, 0.0)}, {"pose": yaw_pose(1.0, 1.0, 0.0)}]})
        mock_client.update_obstacles({"poses": [{"position": {"x": 2.0, "y": 3.0}}]})
        state = mock_client.get_status()
        assert [(p.x, p.y) for p in state.path] == [(0.0, 0.0), (1.0, 1.0)]
        assert state.obstacles == [(2.0, 3.0)]

    def test_update_map(self, mock_client):
        mock_client.update_map({"info": {"width": 2, "height": 1, "resolution": 0.1}, "data": [0, 100]})
        assert mock_client.get_status().occupancy_map.width == 2

    def test_default_topics_feed_state(self, mock_client, yaw_pose):
        mock_client.inject("/robot_pose", yaw_pose(5.0, 6.0, 0.0))
        mock_client.inject("/battery_state", {"percentage": 0.5})
        mock_client.inject("/map", {"info": {"width": 2, "height": 2, "resolution": 0.05}, "data": [0, 0, 100, -1]})
        state = mock_client.get_status()
        assert state.pose.x == 5.0
        assert state.battery == 50.0
        assert mock_client.get_battery() == 50.0
        assert state.occupancy_map.width == 2
        assert mock_client.get_occupancy_map().resolution == 0.05

    def test_default_topics_leave_high_rate_feeds_alone(self, mock_client):
        assert set(mock_client._state_handlers()) == set(STATE_TOPICS)
        for topic in ("/map_image/compressed", "/scan", "/unilidar/cloud"):
            assert mock_client.subscriber_count(topic) == 0
        assert mock_client.subscriber_count("/map") == 1

    def test_clear_map(self, mock_client):
        mock_client.update_map_image({"format": "png", "data": "aGVsbG8="})
        mock_client.update_map({"info": {"width": 1, "height": 1, "resolution": 0.1}, "data": [0]})
        assert mock_client.get_map_image().data == "aGVsbG8="
        mock_client.clear_map()
        assert mock_client.get_map_image() is None
        assert mock_client.get_occupancy_map() is None

    def test_path_and_obstacle_accessors_return_copies(self, mock_client):
        mock_client.update_obstacles({"poses": [{"position": {"x": 1.0, "y": 2.0}}]})
        obstacles = mock_client.get_obstacles()
        obstacles.append((9.0, 9.0))
        assert mock_client.get_obstacles() == [(1.0, 2.0)]
        assert mock_client.get_path() == []

    def test_get_status_is_a_copy(self, mock_client):
        state = mock_client.get_status()
        state.joint_angles["joint_1"] = 9.0
        assert "joint_1" not in mock_client.get_joint_angles()

    def test_context_manager(self):
        with MockRobotClient("ws://localhost:9090", config={"start_connected": False}) as client:
            assert client.is_connected()
        assert not client.is_connected()
