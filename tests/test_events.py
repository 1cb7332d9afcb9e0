from __future__ import annotations

import io
import re
import threading

import numpy as np

from spatial_logger.events import EventSink, format_sample
from spatial_logger.sensors.mock_spatial import MockSpatialBinding
from spatial_logger.sensors.spatial_base import SpatialSample
from spatial_logger.utils.tee import TeeStream


def _channel(binding):
    return binding.create_spatial().base


def test_sample_block_format(sink_for, streams):
    out, err = streams
    binding = MockSpatialBinding()
    sink = sink_for(binding)
    sink.on_spatial_data(_channel(binding), [1, 2, 3], [4, 5, 6], [7, 8, 9], 12.5)
    assert out.getvalue() == (
        "Acceleration Changed: 1, 2, 3\n"
        "Angular Rate Changed: 4, 5, 6\n"
        "Magnetic Field Changed: 7, 8, 9\n"
        "Timestamp: 12.5\n"
        "\n"
    )
    assert err.getvalue() == ""


def test_sample_precision_is_15_significant_digits():
    s = SpatialSample.from_sdk([1.0 / 3.0, -0.123456789012345, 1e-9], [0, 0, 0], [0, 0, 0], 123456.789012345)
    text = format_sample(s)
    assert "Acceleration Changed: 0.333333333333333, -0.123456789012345, 1e-09\n" in text
    assert "Timestamp: 123456.789012345\n" in text


def test_sample_is_immutable():
    s = SpatialSample.from_sdk([1, 2, 3], [4, 5, 6], [7, 8, 9], 0.0)
    assert s.acceleration.shape == (3,)
    assert s.acceleration.dtype == np.float64
    assert not s.acceleration.flags.writeable


def test_attach_without_hub_port(sink_for, streams):
    out, _ = streams
    binding = MockSpatialBinding(serial=12345, channel=1, hub_port=None)
    sink_for(binding).on_attach(_channel(binding))
    assert out.getvalue() == "channel 1 on device 12345 attached\n"


def test_attach_with_hub_port(sink_for, streams):
    out, _ = streams
    binding = MockSpatialBinding(serial=12345, channel=1, hub_port=3)
    sink_for(binding).on_attach(_channel(binding))
    assert out.getvalue() == "channel 1 on device 12345 hub port 3 attached\n"


def test_detach_is_symmetric(sink_for, streams):
    out, _ = streams
    binding = MockSpatialBinding(serial=12345, channel=1, hub_port=3)
    sink = sink_for(binding)
    ch = _channel(binding)
    sink.on_detach(ch)
    ch.hub_port = None
    sink.on_detach(ch)
    assert out.getvalue() == (
        "channel 1 on device 12345 hub port 3 detached\n"
        "channel 1 on device 12345 detached\n"
    )


def test_accessor_failure_is_a_single_diagnostic(sink_for, streams):
    out, err = streams
    binding = MockSpatialBinding(fail_accessors={"get_channel"})
    sink_for(binding).on_attach(_channel(binding))
    assert out.getvalue() == ""
    assert err.getvalue() == "failed to get channel number\n"


def test_serial_failure_diagnostic(sink_for, streams):
    out, err = streams
    binding = MockSpatialBinding(fail_accessors={"get_serial"})
    sink_for(binding).on_detach(_channel(binding))
    assert out.getvalue() == ""
    assert err.getvalue() == "failed to get device serial number\n"


def test_hub_port_failure_drops_clause(sink_for, streams):
    out, err = streams
    binding = MockSpatialBinding(serial=7, channel=0, hub_port=4, fail_accessors={"get_hub_port"})
    sink_for(binding).on_attach(_channel(binding))
    assert out.getvalue() == "channel 0 on device 7 attached\n"
    assert err.getvalue() == ""


def test_error_event_goes_to_error_stream(sink_for, streams):
    out, err = streams
    binding = MockSpatialBinding()
    sink_for(binding).on_error(_channel(binding), 4101, "Saturation detected")
    assert out.getvalue() == ""
    assert err.getvalue() == "Error: Saturation detected (4101)\n"


def test_bad_sample_never_raises(sink_for, streams):
    out, err = streams
    binding = MockSpatialBinding()
    sink_for(binding).on_spatial_data(_channel(binding), [1, 2], [4, 5, 6], [7, 8, 9], 0.0)
    assert out.getvalue() == ""
    assert err.getvalue().startswith("spatial data handler failed:")


BLOCK = re.compile(
    r"Acceleration Changed: (\d+), \1, \1\n"
    r"Angular Rate Changed: \1, \1, \1\n"
    r"Magnetic Field Changed: \1, \1, \1\n"
    r"Timestamp: \1\n"
)


def test_concurrent_callbacks_do_not_interleave():
    n_threads, per_thread = 8, 50
    a, b = io.StringIO(), io.StringIO()
    binding = MockSpatialBinding()
    sink = EventSink(binding, TeeStream(a, b), io.StringIO())
    ch = _channel(binding)
    start = threading.Barrier(n_threads)

    def fire(k):
        start.wait()
        for j in range(per_thread):
            v = k * per_thread + j
            sink.on_spatial_data(ch, [v] * 3, [v] * 3, [v] * 3, float(v))

    threads = [threading.Thread(target=fire, args=(k,)) for k in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    text = a.getvalue()
    assert text == b.getvalue()
    blocks = text.split("\n\n")
    assert blocks[-1] == ""
    blocks = blocks[:-1]
    assert len(blocks) == n_threads * per_thread
    seen = set()
    for blk in blocks:
        m = BLOCK.fullmatch(blk + "\n")
        assert m is not None, blk
        seen.add(int(m.group(1)))
    assert seen == set(range(n_threads * per_thread))
