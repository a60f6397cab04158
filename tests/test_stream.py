import io
import random
import threading
import time

import numpy
import pytest
from PIL import Image

from thumbsheet.errors import IncompleteStream, DecodeFailure
from thumbsheet.stream import FrameSlice, MarkerDemuxer, StreamDemuxer, demux, decode_frame, decode_frames

COLORS = [
    (255, 0, 0),
    (0, 255, 0),
    (0, 0, 255),
    (255, 255, 0),
    (0, 255, 255),
    (255, 0, 255),
    (255, 255, 255),
    (0, 0, 0),
]


def make_jpeg(color, size=(64, 36)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="JPEG", quality=95)
    return buffer.getvalue()


def average_color(image):
    return numpy.asarray(image, dtype=numpy.float64).mean(axis=(0, 1))


def assert_color(image, color, tolerance=10):
    assert numpy.all(numpy.abs(average_color(image) - numpy.array(color)) < tolerance)


def test_split_is_lossless():
    images = [make_jpeg(c) for c in COLORS[:5]]
    buffer = b"".join(images)

    slices = list(MarkerDemuxer().split(buffer))

    assert [s.index for s in slices] == [0, 1, 2, 3, 4]
    assert b"".join(s.extract(buffer) for s in slices) == buffer
    assert [s.extract(buffer) for s in slices] == images


def test_split_skips_leading_garbage():
    buffer = b"\x00\x01junk" + b"\xff\xd8abc\xff\xd9" + b"\xff\xd8def\xff\xd9"
    slices = list(MarkerDemuxer().split(buffer))

    assert slices == [FrameSlice(0, 6, 13), FrameSlice(1, 13, 20)]


def test_split_without_start_marker():
    assert list(MarkerDemuxer().split(b"no images here")) == []
    assert list(MarkerDemuxer().split(b"")) == []


def test_split_truncated_trailing_image():
    buffer = b"\xff\xd8one\xff\xd9" + b"\xff\xd8two, cut short"
    slices = list(MarkerDemuxer().split(buffer))

    assert len(slices) == 1
    assert slices[0].extract(buffer) == b"\xff\xd8one\xff\xd9"


def test_demux_exact_count():
    images = [make_jpeg(c) for c in COLORS]
    chunks = demux(b"".join(images), len(images))

    assert chunks == images


def test_demux_stops_at_requested_count():
    images = [make_jpeg(c) for c in COLORS[:4]]
    chunks = demux(b"".join(images), 3)

    assert chunks == images[:3]


def test_demux_incomplete_stream():
    images = [make_jpeg(c) for c in COLORS[:4]]
    buffer = b"".join(images)[:-2]

    with pytest.raises(IncompleteStream) as e:
        demux(buffer, 4, diagnostics="Conversion failed!")

    assert e.value.recovered == 3
    assert e.value.expected == 4
    assert "Conversion failed!" in str(e.value)


def test_demux_custom_strategy():
    class FixedSizeDemuxer(StreamDemuxer):
        def split(self, buffer):
            for i, start in enumerate(range(0, len(buffer), 4)):
                yield FrameSlice(i, start, start + 4)

    chunks = demux(b"aaaabbbbcccc", 3, demuxer=FixedSizeDemuxer())
    assert chunks == [b"aaaa", b"bbbb", b"cccc"]


def test_decode_frame():
    frame = decode_frame(make_jpeg((255, 0, 0), size=(32, 18)))

    assert frame.size == (32, 18)
    assert frame.mode == "RGB"
    assert_color(frame, (255, 0, 0))


def test_decode_frames_keeps_order_with_random_completion():
    chunks = [make_jpeg(c) for c in COLORS]
    rng = random.Random(1234)
    delays = dict((i, rng.uniform(0, 0.05)) for i in range(len(chunks)))
    # force the first chunk to finish last
    delays[0] = 0.1

    def slow_decode(data):
        time.sleep(delays[chunks.index(data)])
        return decode_frame(data)

    frames = decode_frames(chunks, decode=slow_decode)

    assert len(frames) == len(COLORS)
    for frame, color in zip(frames, COLORS):
        assert_color(frame, color)


def test_decode_frames_runs_concurrently():
    chunks = [make_jpeg(c) for c in COLORS[:4]]
    barrier = threading.Barrier(len(chunks), timeout=5)

    def decode_together(data):
        # only passes if every chunk is being decoded at the same time
        barrier.wait()
        return decode_frame(data)

    frames = decode_frames(chunks, decode=decode_together)
    assert all(frame is not None for frame in frames)


def test_decode_frames_max_workers():
    chunks = [make_jpeg(c) for c in COLORS]
    frames = decode_frames(chunks, max_workers=2)

    for frame, color in zip(frames, COLORS):
        assert_color(frame, color)


def test_decode_failure_reports_index():
    chunks = [make_jpeg(c) for c in COLORS[:4]]
    chunks[2] = b"\xff\xd8not a jpeg\xff\xd9"

    with pytest.raises(DecodeFailure) as e:
        decode_frames(chunks)

    assert e.value.index == 2


def test_decode_failure_lets_siblings_finish():
    chunks = [make_jpeg(c) for c in COLORS[:4]]
    decoded = []
    lock = threading.Lock()

    def decode(data):
        if data == chunks[0]:
            raise ValueError("corrupt")
        time.sleep(0.02)
        frame = decode_frame(data)
        with lock:
            decoded.append(data)
        return frame

    with pytest.raises(DecodeFailure) as e:
        decode_frames(chunks, decode=decode)

    assert e.value.index == 0
    assert len(decoded) == 3


def test_decode_no_frames():
    assert decode_frames([]) == []
