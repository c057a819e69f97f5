from unittest.mock import Mock, patch

import pytest
from sqlalchemy.exc import OperationalError

from lesson_scheduling.core.exceptions import ServiceException
from lesson_scheduling.monitoring.prometheus_metrics import prometheus_metrics
from lesson_scheduling.services import base as base_module
from lesson_scheduling.services.base import BaseService


class _ProbeService(BaseService):
    @BaseService.measure_operation("probe")
    def probe(self, fail: bool = False) -> str:
        if fail:
            raise ValueError("nope")
        return "ok"


@pytest.fixture(autouse=True)
def _clear_class_metrics():
    BaseService._class_metrics.clear()
    yield
    BaseService._class_metrics.clear()


def test_measure_operation_tracks_success_and_failure():
    service = _ProbeService(Mock())

    assert service.probe() == "ok"
    with pytest.raises(ValueError):
        service.probe(fail=True)

    metrics = service.get_metrics()["probe"]
    assert metrics["count"] == 2
    assert metrics["success_rate"] == 0.5


def test_measure_operation_reports_to_prometheus():
    service = _ProbeService(Mock())
    with patch.object(prometheus_metrics, "record_service_operation") as record:
        with pytest.raises(ValueError):
            service.probe(fail=True)

    kwargs = record.call_args.kwargs
    assert kwargs["service"] == "_ProbeService"
    assert kwargs["operation"] == "probe"
    assert kwargs["status"] == "error"
    assert kwargs["error_type"] == "ValueError"
    assert b"lesson_scheduling_service_operations_total" in prometheus_metrics.get_metrics()


def test_slow_operation_logged():
    service = _ProbeService(Mock())
    with patch("lesson_scheduling.services.base.time.time", side_effect=[0.0, 5.0]):
        with patch.object(service.logger, "warning") as warning:
            service.probe()
    warning.assert_called_once()


def test_get_metrics_skips_zero_count():
    service = BaseService(Mock())
    BaseService._class_metrics["BaseService"] = {
        "zero": {
            "count": 0,
            "total_time": 0.0,
            "success_count": 0,
            "failure_count": 0,
            "min_time": float("inf"),
            "max_time": 0.0,
        }
    }
    assert service.get_metrics() == {}


class TestTransaction:
    def test_commits_on_success(self):
        db = Mock()
        with BaseService(db).transaction():
            pass
        db.commit.assert_called_once()
        db.rollback.assert_not_called()

    def test_database_error_becomes_service_exception(self):
        db = Mock()
        db.commit.side_effect = OperationalError("COMMIT", {}, Exception("disk full"))
        with pytest.raises(ServiceException):
            with BaseService(db).transaction():
                pass
        db.rollback.assert_called_once()

    def test_domain_errors_propagate_unchanged(self):
        db = Mock()
        with pytest.raises(KeyError):
            with BaseService(db).transaction():
                raise KeyError("x")
        db.rollback.assert_called_once()
        db.commit.assert_not_called()


def test_module_logger_name():
    assert base_module.logger.name == "lesson_scheduling.services.base"
