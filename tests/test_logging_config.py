import logging

from pose_overlay.utils.logging_config import LoggerMixin, ProgressLogger, setup_logging


def test_setup_logging_with_file(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    root = setup_logging(level="DEBUG", log_file=str(log_file))
    try:
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2
        logging.getLogger("pose_overlay.test").info("hello")
        for handler in root.handlers:
            handler.flush()
        assert "hello" in log_file.read_text()
        assert logging.getLogger("tensorflow").level == logging.WARNING
    finally:
        for handler in list(root.handlers):
            handler.close()
        root.handlers.clear()


def test_logger_mixin_name():
    class Worker(LoggerMixin):
        pass

    assert Worker().logger.name.endswith("Worker")


def test_progress_logger_with_total(caplog):
    logger = logging.getLogger("progress.total")
    progress = ProgressLogger(logger, total=10, description="Frames", log_interval=50)
    with caplog.at_level(logging.INFO, logger="progress.total"):
        for _ in range(10):
            progress.update()
        progress.finish()
    messages = [r.getMessage() for r in caplog.records]
    assert messages == [
        "Frames: 10% (1/10)",
        "Frames: 60% (6/10)",
        "Frames: Complete (10/10)",
    ]


def test_progress_logger_without_total(caplog):
    logger = logging.getLogger("progress.live")
    progress = ProgressLogger(logger, total=None, description="Live", log_interval=3)
    with caplog.at_level(logging.INFO, logger="progress.live"):
        for _ in range(7):
            progress.update()
    messages = [r.getMessage() for r in caplog.records]
    assert messages == ["Live: 3 frames", "Live: 6 frames"]
