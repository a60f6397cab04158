"""Split the concatenated image stream produced by ffmpeg and decode the frames.
"""

import io
import queue
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor

from PIL import Image

from thumbsheet.errors import IncompleteStream, DecodeFailure

JPEG_SOI = b"\xff\xd8"
JPEG_EOI = b"\xff\xd9"


class FrameSlice(namedtuple('FrameSlice', ['index', 'start', 'end'])):
    """Byte range [start, end) of one encoded image inside the raw stream.
    """

    def extract(self, buffer):
        return buffer[self.start:self.end]


class StreamDemuxer(object):
    """Base class for strategies that find image boundaries in a raw stream.
    """

    def split(self, buffer):
        """Yield a FrameSlice for every image found in `buffer`, in stream order.
        """
        raise NotImplementedError


class MarkerDemuxer(StreamDemuxer):
    """Finds JPEG images by their start-of-image and end-of-image markers.

    ffmpeg's image2pipe muxer writes the images back to back without any
    framing, so the markers are the only boundary information available.
    """

    def __init__(self, start_marker=JPEG_SOI, end_marker=JPEG_EOI):
        self.start_marker = start_marker
        self.end_marker = end_marker

    def split(self, buffer):
        cursor = 0
        index = 0
        while True:
            start = buffer.find(self.start_marker, cursor)
            if start == -1:
                return

            end = buffer.find(self.end_marker, start)
            if end == -1:
                # truncated trailing image
                return

            end += len(self.end_marker)
            yield FrameSlice(index, start, end)
            cursor = end
            index += 1


def demux(buffer, num_frames, diagnostics="", demuxer=None):
    """Cut `buffer` into exactly `num_frames` encoded images.
    Raises IncompleteStream if fewer images are found.
    """
    if demuxer is None:
        demuxer = MarkerDemuxer()

    chunks = []
    for frame_slice in demuxer.split(buffer):
        chunks.append(frame_slice.extract(buffer))
        if len(chunks) == num_frames:
            break

    if len(chunks) != num_frames:
        raise IncompleteStream(len(chunks), num_frames, diagnostics)

    return chunks


def decode_frame(data):
    """Decode one encoded image into an RGB raster.
    """
    image = Image.open(io.BytesIO(data))
    image.load()
    return image.convert("RGB")


def decode_frames(chunks, decode=decode_frame, max_workers=None):
    """Decode every chunk concurrently.

    frames[i] is always decoded from chunks[i], whatever order the tasks finish in.
    A failing chunk does not stop the others; once all tasks are done the first
    recorded failure is raised as DecodeFailure.
    """
    frames = [None] * len(chunks)
    if not chunks:
        return frames

    errors = queue.Queue()

    def do_decode(index, data):
        try:
            frames[index] = decode(data)
        except Exception as e:
            errors.put((index, e))

    workers = len(chunks)
    if max_workers is not None:
        workers = max(1, min(workers, max_workers))

    with ThreadPoolExecutor(max_workers=workers) as executor:
        for i, data in enumerate(chunks):
            executor.submit(do_decode, i, data)

    if not errors.empty():
        index, cause = errors.get()
        raise DecodeFailure(index, cause) from cause

    return frames
