"""Tests for TopicServiceManager."""
import logging
from unittest.mock import Mock, patch

import pytest

from robodash.core.topic_service_manager import Subscription, TopicServiceManager


class TestTopicServiceManager:
    """Tests for TopicServiceManager."""

    @pytest.fixture
    def mock_ros(self):
        return Mock()

    @pytest.fixture
    def manager(self, mock_ros):
        return TopicServiceManager(mock_ros, "test_conn")

    @pytest.fixture
    def topic_class(self):
        with patch('robodash.core.topic_service_manager.roslibpy.Topic') as mock_topic_class:
            mock_topic_class.side_effect = lambda *args, **kwargs: Mock()
            yield mock_topic_class

    def test_initialization(self, mock_ros):
        manager = TopicServiceManager(mock_ros, "test_conn")
        assert manager.ros is mock_ros
        assert len(manager._topics) == 0
        assert len(manager._services) == 0

    def test_topic_creation(self, manager, mock_ros):
        with patch('robodash.core.topic_service_manager.roslibpy.Topic') as mock_topic_class:
            mock_topic = Mock()
            mock_topic_class.return_value = mock_topic

            topic = manager.topic("/test/topic", "std_msgs/String")

            assert topic is mock_topic
            mock_topic_class.assert_called_once_with(mock_ros, "/test/topic", "std_msgs/String")

    def test_topic_reuse(self, manager, topic_class):
        topic1 = manager.topic("/test/topic", "std_msgs/String")
        topic2 = manager.topic("/test/topic", "std_msgs/Int32")
        assert topic1 is topic2
        assert topic_class.call_count == 1

    def test_service_reuse(self, manager, mock_ros):
        with patch('robodash.core.topic_service_manager.roslibpy.Service') as mock_service_class:
            mock_service_class.return_value = Mock()
            service1 = manager.service("/test/service", "std_srvs/Empty")
            service2 = manager.service("/test/service", "std_srvs/Trigger")
            assert service1 is service2
            mock_service_class.assert_called_once_with(mock_ros, "/test/service", "std_srvs/Empty")

    def test_handles_require_connection(self):
        manager = TopicServiceManager(None, "offline")
        with pytest.raises(RuntimeError, match="Not connected"):
            manager.topic("/a", "")
        with pytest.raises(RuntimeError, match="Not connected"):
            manager.service("/a", "")

    def test_multiple_subscribers_share_one_subscription(self, manager, topic_class):
        received_a, received_b = [], []
        manager.subscribe("/scan", "sensor_msgs/LaserScan", received_a.append)
        manager.subscribe("/scan", "sensor_msgs/LaserScan", received_b.append)

        assert topic_class.call_count == 1
        topic = manager.topic("/scan")
        assert topic.subscribe.call_count == 1

        dispatch = topic.subscribe.call_args[0][0]
        dispatch({"ranges": [1.0]})
        assert received_a == [{"ranges": [1.0]}]
        assert received_b == [{"ranges": [1.0]}]

    def test_failing_callback_does_not_block_others(self, manager, topic_class):
        received = []

        def broken(msg):
            raise ValueError("bad handler")

        manager.subscribe("/scan", "", broken)
        manager.subscribe("/scan", "", received.append)
        manager.topic("/scan").subscribe.call_args[0][0]({"x": 1})
        assert received == [{"x": 1}]

    def test_unsubscribe_last_drops_topic_subscription(self, manager, topic_class):
        sub1 = manager.subscribe("/scan", "", lambda m: None)
        sub2 = manager.subscribe("/scan", "", lambda m: None)
        topic = manager.topic("/scan")

        sub1.unsubscribe()
        assert not topic.unsubscribe.called
        assert manager.subscriber_count("/scan") == 1

        sub2.unsubscribe()
        assert topic.unsubscribe.called
        assert manager.subscriber_count("/scan") == 0
        assert not sub2.active

    def test_unsubscribe_is_idempotent(self, manager, topic_class):
        sub = manager.subscribe("/scan", "", lambda m: None)
        sub.unsubscribe()
        sub.unsubscribe()
        assert manager.subscriber_count("/scan") == 0

    def test_subscribe_before_connection_is_deferred(self, topic_class):
        manager = TopicServiceManager(None, "offline")
        sub = manager.subscribe("/joint_states", "sensor_msgs/JointState", lambda m: None)
        assert isinstance(sub, Subscription)
        assert topic_class.call_count == 0

        ros = Mock()
        manager.rebind(ros)
        topic_class.assert_called_once_with(ros, "/joint_states", "sensor_msgs/JointState")
        assert manager.topic("/joint_states").subscribe.called

    def test_rebind_resubscribes_on_new_connection(self, manager, topic_class):
        received = []
        manager.subscribe("/scan", "sensor_msgs/LaserScan", received.append)
        old_topic = manager.topic("/scan")

        new_ros = Mock()
        manager.rebind(new_ros)
        new_topic = manager.topic("/scan")

        assert new_topic is not old_topic
        assert manager.ros is new_ros
        new_topic.subscribe.call_args[0][0]({"n": 2})
        assert received == [{"n": 2}]

    def test_rebind_none_clears_handles_but_keeps_subscribers(self, manager, topic_class):
        manager.subscribe("/scan", "", lambda m: None)
        manager.rebind(None)
        assert manager.subscribed_topics() == ["/scan"]
        assert len(manager._topics) == 0

    def test_close_all(self, manager, topic_class):
        with patch('robodash.core.topic_service_manager.roslibpy.Service') as mock_service_class:
            service = Mock()
            mock_service_class.return_value = service
            manager.subscribe("/topic1", "", lambda m: None)
            manager.topic("/topic2", "")
            manager.service("/service1", "")
            topics = list(manager._topics.values())

            manager.close_all()

            assert all(t.unsubscribe.called for t in topics)
            assert service.unadvertise.called
            assert len(manager._topics) == 0
            assert len(manager._services) == 0
            assert manager.subscribed_topics() == []

    def test_close_all_handles_exceptions(self, manager):
        with patch('robodash.core.topic_service_manager.roslibpy.Topic') as mock_topic_class:
            mock_topic = Mock()
            mock_topic.unsubscribe.side_effect = Exception("Test error")
            mock_topic_class.return_value = mock_topic

            manager.topic("/test/topic", "")
            manager.close_all()

            assert len(manager._topics) == 0

    def test_logger_level(self, mock_ros):
        manager = TopicServiceManager(mock_ros, "test_conn_level", logger_level=logging.WARNING)
        assert manager.log.level == logging.WARNING
