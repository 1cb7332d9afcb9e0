from __future__ import annotations

import io

import pytest

from conftest import data_events, make_sample
from spatial_logger.app.run_spatial import main, make_binding, run
from spatial_logger.config import default_config
from spatial_logger.events import format_sample
from spatial_logger.sensors.mock_spatial import MockEvent, MockSpatialBinding
from spatial_logger.utils.tee import TeeStream

ATTACHED = "channel 0 on device 370001 attached\n"
DETACHED = "channel 0 on device 370001 detached\n"
NOTICE = "Gathering data for 10 seconds...\n"


def _run(binding, snapshot=None):
    stdout, log, err = io.StringIO(), io.StringIO(), io.StringIO()
    slept = []

    def sleep(seconds):
        slept.append(seconds)
        assert binding.wait_idle()
        if snapshot is not None:
            snapshot.append(err.getvalue())

    code = run(default_config(), binding, TeeStream(stdout, log), err, sleep=sleep)
    return code, stdout.getvalue(), log.getvalue(), err.getvalue(), slept


def _without_notice(text):
    # the notice races with samples already being delivered
    assert text.count(NOTICE) == 1
    return text.replace(NOTICE, "", 1)


def test_happy_path():
    binding = MockSpatialBinding(events=data_events(3))
    code, stdout, log, err, slept = _run(binding)

    assert code == 0
    assert slept == [10]
    assert err == ""
    assert log == stdout
    blocks = "".join(format_sample(make_sample(float(i))) for i in range(3))
    assert _without_notice(stdout) == ATTACHED + blocks + DETACHED
    assert binding.count("destroy_spatial") == 1


def test_attach_timeout():
    binding = MockSpatialBinding(attach_on_open=False)
    code, stdout, log, err, slept = _run(binding)

    assert code != 0
    assert slept == []
    assert stdout == "" and log == ""
    assert err == "AttachTimeout: no device attached within 5000 ms: open_wait_for_attachment: Timed Out (3)\n"
    assert binding.count("close") == 1
    assert binding.count("destroy_spatial") == 1


def test_init_failure_at_error_handler():
    binding = MockSpatialBinding(fail_ops={"set_on_error"})
    code, stdout, _, err, _ = _run(binding)

    assert code != 0
    assert stdout == ""
    assert err.startswith("InitializationFailure: failed to initialize spatial channel (init callbacks): set_on_error")
    assert err.count("\n") == 1
    assert binding.count("destroy_spatial") == 1
    assert "set_on_spatial_data" not in binding.calls
    assert "open_wait_for_attachment" not in binding.calls


def test_accessor_failure_in_attach_callback():
    binding = MockSpatialBinding(events=data_events(1), fail_accessors={"get_channel"})
    snapshot = []
    code, stdout, _, _, _ = _run(binding, snapshot)

    assert code == 0
    assert snapshot == ["failed to get channel number\n"]
    assert "attached" not in stdout
    assert format_sample(make_sample(0.0)) in stdout


def test_detach_then_reattach():
    binding = MockSpatialBinding(events=[
        MockEvent.data(make_sample(0.0)),
        MockEvent.detach(),
        MockEvent.attach(),
        MockEvent.data(make_sample(1.0)),
    ])
    code, stdout, _, _, _ = _run(binding)

    assert code == 0
    assert _without_notice(stdout) == (
        ATTACHED
        + format_sample(make_sample(0.0))
        + DETACHED
        + ATTACHED
        + format_sample(make_sample(1.0))
        + DETACHED
    )


def test_mock_binding_from_config():
    cfg = default_config()
    cfg.session.gather_interval_s = 2
    cfg.mock.rate_hz = 10
    binding = make_binding(cfg, mock=True)
    assert isinstance(binding, MockSpatialBinding)
    assert len(binding.events) == 21
    assert binding.event_interval_s == pytest.approx(0.1)


def test_main_mock_tees_stdout_into_log(tmp_path, capsys):
    log_path = tmp_path / "logs" / "file.txt"
    with pytest.raises(SystemExit) as ei:
        main([
            "--mock",
            "--config", str(tmp_path / "missing.yaml"),
            "--seconds", "0",
            "--log-file", str(log_path),
        ])
    assert ei.value.code == 0

    captured = capsys.readouterr()
    text = log_path.read_text(encoding="utf-8")
    assert text == captured.out
    assert text.startswith(ATTACHED)
    assert text.endswith(DETACHED)
    assert "Gathering data for 0 seconds...\n" in text


def test_device_error_event_goes_to_stderr():
    binding = MockSpatialBinding(events=[
        MockEvent.error(4101, "Saturation detected"),
        MockEvent.data(make_sample(0.0)),
    ])
    snapshot = []
    code, stdout, log, err, _ = _run(binding, snapshot)

    assert code == 0
    assert snapshot == ["Error: Saturation detected (4101)\n"]
    assert err == "Error: Saturation detected (4101)\n"
    assert "Saturation" not in stdout and "Saturation" not in log
    assert _without_notice(stdout) == ATTACHED + format_sample(make_sample(0.0)) + DETACHED
