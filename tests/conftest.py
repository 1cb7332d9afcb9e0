from __future__ import annotations

import io

import pytest

from spatial_logger.events import EventSink
from spatial_logger.sensors.mock_spatial import MockEvent
from spatial_logger.sensors.spatial_base import SpatialSample


def make_sample(i: float) -> SpatialSample:
    return SpatialSample.from_sdk([i, i + 1, i + 2], [i + 3, i + 4, i + 5], [i + 6, i + 7, i + 8], i + 0.5)


def data_events(n: int):
    return [MockEvent.data(make_sample(float(i))) for i in range(n)]


@pytest.fixture
def streams():
    return io.StringIO(), io.StringIO()


@pytest.fixture
def sink_for(streams):
    out, err = streams

    def build(binding):
        return EventSink(binding, out, err)

    return build
