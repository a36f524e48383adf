"""Tests for the deploy logger."""

from fleetdeploy.logger import DeployLogger


def test_log_file_layout(tmp_path):
    logger = DeployLogger("install", log_dir=tmp_path, quiet=True)

    assert logger.log_path.parent.parent == tmp_path
    assert logger.log_path.name.endswith("_install.log")

    logger.host("10.0.0.1", "Processing host")
    logger.host("10.0.0.2", "Failed to connect with any user", "ERROR")
    logger.log_output("\x1b[31mred\x1b[0m\nsecond", "stderr")
    logger.close()

    content = logger.log_path.read_text()
    assert "Operation: install" in content
    assert "[INFO] [10.0.0.1] Processing host" in content
    assert "[ERROR] [10.0.0.2] Failed to connect with any user" in content
    assert "  [stderr] red\n" in content
    assert "  [stderr] second\n" in content
    assert "Status: SUCCESS" in content


def test_log_error_marks_failure(tmp_path):
    with DeployLogger("install", log_dir=tmp_path, quiet=True) as logger:
        logger.log_error("No .deb files found", context="/srv/fleet")

    content = logger.log_path.read_text()
    assert "ERROR OCCURRED" in content
    assert "Context: /srv/fleet" in content
    assert "Status: FAILED" in content


def test_close_is_idempotent(tmp_path):
    logger = DeployLogger("check", log_dir=tmp_path, quiet=True)
    logger.close()
    logger.close()
    assert logger.log_file is None
