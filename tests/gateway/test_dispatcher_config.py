"""DispatcherConfig 加载测试"""

import pytest
from pydantic import ValidationError
from taskhub.gateway.config import DispatcherConfig, load_dispatcher_config


class TestDispatcherConfig:
    def test_defaults(self, monkeypatch):
        for name in (
            "TASKHUB_NOTIFY_MIN_WORKERS",
            "TASKHUB_NOTIFY_MAX_WORKERS",
            "TASKHUB_NOTIFY_QUEUE_CAPACITY",
            "TASKHUB_NOTIFY_KEEP_ALIVE_S",
            "TASKHUB_NOTIFY_SHUTDOWN_TIMEOUT_S",
            "TASKHUB_NOTIFY_SEND_DELAY_MS",
        ):
            monkeypatch.delenv(name, raising=False)
        config = load_dispatcher_config()
        assert config.min_workers == 5
        assert config.max_workers == 10
        assert config.queue_capacity == 100
        assert config.shutdown_timeout_s == 60.0

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("TASKHUB_NOTIFY_MIN_WORKERS", "2")
        monkeypatch.setenv("TASKHUB_NOTIFY_MAX_WORKERS", "4")
        monkeypatch.setenv("TASKHUB_NOTIFY_KEEP_ALIVE_S", "0.5")
        config = load_dispatcher_config()
        assert (config.min_workers, config.max_workers) == (2, 4)
        assert config.keep_alive_s == 0.5

    def test_unparsable_value_falls_back(self, monkeypatch):
        monkeypatch.setenv("TASKHUB_NOTIFY_QUEUE_CAPACITY", "lots")
        assert load_dispatcher_config().queue_capacity == 100

    def test_inconsistent_bounds_fall_back(self, monkeypatch):
        monkeypatch.setenv("TASKHUB_NOTIFY_MIN_WORKERS", "20")
        monkeypatch.delenv("TASKHUB_NOTIFY_MAX_WORKERS", raising=False)
        config = load_dispatcher_config()
        assert (config.min_workers, config.max_workers) == (5, 10)

    def test_model_rejects_max_below_min(self):
        with pytest.raises(ValidationError):
            DispatcherConfig(min_workers=5, max_workers=2)

    def test_model_rejects_zero_queue(self):
        with pytest.raises(ValidationError):
            DispatcherConfig(queue_capacity=0)
