"""Unit tests for the Process supervisor with the subprocess faked out."""

import logging
import subprocess

import pytest

from pyphantom import (
    Process,
    ProcessLaunchError,
    ReadinessTimeoutError,
    UnexpectedStatusError,
    open_process,
)
from pyphantom import host as public_host
from pyphantom._internal import host


class FakePopen:
    instances = []

    def __init__(self, cmd, **kwargs):
        self.cmd = cmd
        self.kwargs = kwargs
        self.pid = 4321
        self.returncode = None
        self.stdout = None
        self.stderr = None
        self.killed = False
        self.wait_error = None
        FakePopen.instances.append(self)

    def poll(self):
        return self.returncode

    def kill(self):
        self.killed = True
        self.returncode = -9

    def wait(self, timeout=None):
        if self.wait_error is not None:
            raise self.wait_error
        return self.returncode


@pytest.fixture
def fake_popen(monkeypatch):
    FakePopen.instances = []
    monkeypatch.setattr(host.subprocess, "Popen", FakePopen)
    return FakePopen


@pytest.fixture
def ready(monkeypatch):
    monkeypatch.setattr(host, "wait_until_ready", lambda probe, timeout, interval: 1)


def test_open_launches_and_close_tears_down(fake_popen, ready):
    process = Process({"bin_path": "/usr/bin/phantomjs", "options": ["--ignore-ssl-errors=true"]})

    process.open()
    (proc,) = fake_popen.instances
    work_dir = process.path

    assert proc.cmd == ["/usr/bin/phantomjs", str(work_dir / "shim.js"), "20202", "--ignore-ssl-errors=true"]
    assert proc.kwargs["cwd"] == str(work_dir)
    assert proc.kwargs["stdin"] == subprocess.DEVNULL
    assert (work_dir / "shim.js").is_file()
    assert process.pid == 4321
    assert process.is_running

    process.close()

    assert proc.killed
    assert not work_dir.exists()
    assert process.pid is None
    assert process.path is None


def test_open_twice_refused(fake_popen, ready):
    process = Process()
    process.open()
    try:
        with pytest.raises(RuntimeError):
            process.open()
        assert len(fake_popen.instances) == 1
    finally:
        process.close()


def test_process_reusable_after_close(fake_popen, ready):
    process = Process()
    process.open()
    process.close()
    process.open()
    process.close()

    assert len(fake_popen.instances) == 2


@pytest.mark.parametrize("error", [ReadinessTimeoutError(10.0, 33), KeyboardInterrupt()])
def test_failed_readiness_tears_down(fake_popen, monkeypatch, error):
    def not_ready(probe, timeout, interval):
        raise error

    monkeypatch.setattr(host, "wait_until_ready", not_ready)
    process = Process()

    with pytest.raises(type(error)):
        process.open()

    (proc,) = fake_popen.instances
    assert proc.killed
    assert process.pid is None
    assert process.path is None


def test_cleanup_failure_does_not_mask_open_error(fake_popen, monkeypatch, caplog):
    def not_ready(probe, timeout, interval):
        fake_popen.instances[0].wait_error = subprocess.TimeoutExpired("phantomjs", 5.0)
        raise ReadinessTimeoutError(10.0, 33)

    monkeypatch.setattr(host, "wait_until_ready", not_ready)

    with caplog.at_level(logging.ERROR, logger="pyphantom"):
        with pytest.raises(ReadinessTimeoutError):
            Process().open()

    assert "Cleanup after failed open also failed" in caplog.text


def test_missing_binary_raises_launch_error(tmp_path):
    missing = tmp_path / "no-such-phantomjs"
    work_dir = tmp_path / "work"
    process = Process({"bin_path": str(missing), "work_dir": str(work_dir)})

    with pytest.raises(ProcessLaunchError) as exc_info:
        process.open()

    assert exc_info.value.command[0] == str(missing)
    assert isinstance(exc_info.value.__cause__, OSError)
    assert not work_dir.exists()
    assert process.pid is None


def test_close_without_open_is_noop():
    process = Process()

    process.close()
    process.close()


def test_close_runs_every_step_and_raises_first_error(fake_popen, ready):
    class FailingTransport:
        def call(self, method, path, payload=None, decode=None):
            raise AssertionError("unused")

        def ping(self, timeout=None):
            raise AssertionError("unused")

        def close(self):
            raise RuntimeError("pool close failed")

    process = Process(transport=FailingTransport())
    process.open()
    work_dir = process.path
    fake_popen.instances[0].wait_error = subprocess.TimeoutExpired("phantomjs", 5.0)

    with pytest.raises(subprocess.TimeoutExpired):
        process.close()

    assert not work_dir.exists()
    assert process.pid is None


def test_context_manager(fake_popen, ready):
    with Process() as process:
        work_dir = process.path
        assert process.is_running

    assert fake_popen.instances[0].killed
    assert not work_dir.exists()


def test_configured_work_dir_used(fake_popen, ready, tmp_path):
    work_dir = tmp_path / "phantom"
    process = Process({"work_dir": str(work_dir)})

    process.open()

    assert process.path == work_dir.resolve()
    assert (work_dir / "shim.js").is_file()
    process.close()
    assert not work_dir.exists()


def test_ping(scripted_process, remote):
    remote.answer("/ping", text="ok")

    scripted_process.ping()


def test_ping_not_ready(scripted_process, remote):
    remote.answer("/ping", text="starting", status=503)

    with pytest.raises(UnexpectedStatusError):
        scripted_process.ping()


def test_repr_reports_state(fake_popen, ready):
    process = Process({"port": 8910})

    assert "closed" in repr(process)
    process.open()
    assert "pid=4321" in repr(process)
    process.close()


class TestOpenProcess:
    def test_opens_and_closes(self, monkeypatch):
        events = []
        monkeypatch.setattr(public_host.Process, "open", lambda self: events.append("open"))
        monkeypatch.setattr(public_host.Process, "close", lambda self: events.append("close"))

        with open_process({"port": 9000}) as process:
            assert isinstance(process, Process)
            assert process.port == 9000
            events.append("body")

        assert events == ["open", "body", "close"]

    def test_closes_when_body_raises(self, monkeypatch):
        events = []
        monkeypatch.setattr(public_host.Process, "open", lambda self: events.append("open"))
        monkeypatch.setattr(public_host.Process, "close", lambda self: events.append("close"))

        with pytest.raises(ValueError):
            with open_process():
                raise ValueError("boom")

        assert events == ["open", "close"]

    def test_close_error_does_not_mask_body_error(self, monkeypatch):
        def failing_close(self):
            raise OSError("rmtree failed")

        monkeypatch.setattr(public_host.Process, "open", lambda self: None)
        monkeypatch.setattr(public_host.Process, "close", failing_close)

        with pytest.raises(ValueError):
            with open_process():
                raise ValueError("boom")
