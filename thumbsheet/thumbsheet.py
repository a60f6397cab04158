#!/usr/bin/env python3

"""Create a video thumbnail sheet.
"""

import argparse
import configparser
import datetime
import json
import os
import subprocess
import sys
from collections import namedtuple
from copy import deepcopy
from subprocess import DEVNULL

from jinja2 import Template, TemplateError
import texttable
import parsedatetime

from thumbsheet.compose import parse_color, format_timestamp, Palette, GridSpec, compose_contact_sheet, \
    encode_image, save_image, load_font, TIMESTAMP_FONT_SIZE
from thumbsheet.errors import ThumbsheetError, InvalidInput, InvalidColor, ProbeFailure, CaptureFailure
from thumbsheet.stream import demux, decode_frames

here = os.path.abspath(os.path.dirname(__file__))

with open(os.path.join(here, "VERSION")) as f:
    VERSION = f.readline().strip()
__version__ = VERSION


class Grid(namedtuple('Grid', ['x', 'y'])):
    def __str__(self):
        return "%sx%s" % (self.x, self.y)


DEFAULT_CONFIG_FILE = os.path.join(os.path.expanduser("~"), ".config/thumbsheet.conf")
DEFAULT_CONFIG_SECTION = "thumbsheet"

# Defaults
DEFAULT_GRID_SIZE = "4x5"
DEFAULT_THUMB_WIDTH = 640
DEFAULT_THUMB_HEIGHT = -1
DEFAULT_PADDING = 5
DEFAULT_MARGIN = 20
DEFAULT_HEADER_HEIGHT = 150
DEFAULT_FONT_FILE = None
DEFAULT_FONT_COLOR = "white"
DEFAULT_SHADOW_COLOR = "black"
DEFAULT_BACKGROUND_COLOR = "#222222"
DEFAULT_METADATA_FONT_COLOR = "white"
DEFAULT_TIMESTAMP_FONT_COLOR = "white"
DEFAULT_JPEG_QUALITY = 2
DEFAULT_BORDER_THICKNESS = 1
DEFAULT_BORDER_COLOR = "#111111"
DEFAULT_FFMPEG_PATH = "ffmpeg"
DEFAULT_FFPROBE_PATH = "ffprobe"
DEFAULT_FFMPEG_TIMEOUT = None
DEFAULT_DECODE_WORKERS = None

# ffmpeg reports the frame rate as a fraction, this is used when it cannot be parsed
DEFAULT_FRAME_RATE = 25.0

# fraction of the video skipped at the beginning and at the end
SKIPPED_DURATION_RATIO = 0.05

DEFAULT_METADATA_TEMPLATE = """{{width}}x{{height}} | {{frame_rate}} | {{bit_rate}}
{{duration}} | {{size}} | {{codecs}}"""


class Config:
    grid_size = DEFAULT_GRID_SIZE
    thumb_width = DEFAULT_THUMB_WIDTH
    thumb_height = DEFAULT_THUMB_HEIGHT
    padding = DEFAULT_PADDING
    margin = DEFAULT_MARGIN
    header_height = DEFAULT_HEADER_HEIGHT
    font_file = DEFAULT_FONT_FILE
    font_color = DEFAULT_FONT_COLOR
    shadow_color = DEFAULT_SHADOW_COLOR
    background_color = DEFAULT_BACKGROUND_COLOR
    metadata_font_color = DEFAULT_METADATA_FONT_COLOR
    timestamp_font_color = DEFAULT_TIMESTAMP_FONT_COLOR
    jpeg_quality = DEFAULT_JPEG_QUALITY
    border_thickness = DEFAULT_BORDER_THICKNESS
    border_color = DEFAULT_BORDER_COLOR
    ffmpeg_path = DEFAULT_FFMPEG_PATH
    ffprobe_path = DEFAULT_FFPROBE_PATH
    ffmpeg_timeout = DEFAULT_FFMPEG_TIMEOUT
    decode_workers = DEFAULT_DECODE_WORKERS

    @classmethod
    def load_configuration(cls, filename=DEFAULT_CONFIG_FILE):
        config = configparser.ConfigParser(default_section=DEFAULT_CONFIG_SECTION)
        config.read(filename)

        for config_entry in cls.__dict__.keys():
            # skip magic attributes
            if config_entry.startswith('__'):
                continue
            setattr(cls, config_entry, config.get(
                DEFAULT_CONFIG_SECTION,
                config_entry,
                fallback=getattr(cls, config_entry)
            ))


def to_int(value, default=0):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def to_float(value, default=0.0):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def parse_frame_rate(rate, default=DEFAULT_FRAME_RATE):
    """Parses an ffprobe frame rate such as '30000/1001'.
    Returns `default` if the rate is empty, malformed or has a zero denominator.
    """
    if not rate:
        return default

    splits = rate.split("/")
    try:
        if len(splits) == 1:
            return float(splits[0])
        if len(splits) != 2:
            return default
        num = float(splits[0])
        den = float(splits[1])
    except ValueError:
        return default

    if den == 0:
        return default
    return num / den


class MediaInfo(object):
    """Collect information about a video file
    """

    def __init__(self, path, ffprobe_path=DEFAULT_FFPROBE_PATH, verbose=False):
        self.path = path
        self.ffprobe_path = ffprobe_path
        self.probe_media(path)
        self.find_video_stream()
        self.find_audio_stream()
        self.compute_dimensions()
        self.compute_format()
        self.parse_attributes()

        if verbose:
            print(self.filename, file=sys.stderr)
            print("%sx%s" % (self.width, self.height), file=sys.stderr)
            print(self.duration, file=sys.stderr)
            print(self.size, file=sys.stderr)

    def probe_media(self, path):
        """Probe video file using ffprobe
        """
        ffprobe_command = [
            self.ffprobe_path,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            "--",
            path
        ]

        try:
            output = subprocess.check_output(ffprobe_command, stdin=DEVNULL, stderr=subprocess.PIPE)
            self.ffprobe_dict = json.loads(output.decode("utf-8"))
        except FileNotFoundError:
            raise ProbeFailure("Could not find '{}' executable. Please make sure ffmpeg/ffprobe is installed "
                               "and is in your PATH.".format(self.ffprobe_path))
        except subprocess.CalledProcessError as e:
            raise ProbeFailure("ffprobe failed on {}: {}".format(path, e.stderr.decode("utf-8", "replace")))
        except ValueError as e:
            raise ProbeFailure("Could not parse ffprobe output for {}: {}".format(path, e))

    def find_video_stream(self):
        """Find the first stream which is a video stream
        """
        self.video_stream = {}
        for stream in self.ffprobe_dict.get("streams", []):
            if stream.get("codec_type") == "video":
                self.video_stream = stream
                break

    def find_audio_stream(self):
        """Find the first stream which is an audio stream
        """
        self.audio_stream = {}
        for stream in self.ffprobe_dict.get("streams", []):
            if stream.get("codec_type") == "audio":
                self.audio_stream = stream
                break

    def compute_dimensions(self):
        self.width = to_int(self.video_stream.get("width"))
        self.height = to_int(self.video_stream.get("height"))

    def compute_format(self):
        """Compute duration, size and retrieve filename
        """
        format_dict = self.ffprobe_dict.get("format", {})

        # prefer the video stream duration, fallback to the container duration
        self.duration_seconds = to_float(self.video_stream.get("duration"))
        if self.duration_seconds <= 0:
            self.duration_seconds = to_float(format_dict.get("duration"))

        self.duration = format_timestamp(self.duration_seconds)

        self.filename = os.path.basename(format_dict.get("filename", self.path))

        self.size_bytes = to_int(format_dict.get("size"))
        self.size = "%.2f MB" % (self.size_bytes / (1024.0 * 1024.0),)

        self.bit_rate = format_dict.get("bit_rate", "")

    def parse_attributes(self):
        """Parse multiple media attributes
        """
        self.video_codec = self.video_stream.get("codec_name")
        self.audio_codec = self.audio_stream.get("codec_name")
        self.avg_frame_rate = self.video_stream.get("avg_frame_rate", "")
        self.frame_rate = parse_frame_rate(self.avg_frame_rate, default=None)

    def pretty_frame_rate(self):
        if self.frame_rate is None:
            return "N/A FPS"
        return "%.2f FPS" % (self.frame_rate,)

    def pretty_bit_rate(self):
        try:
            return "%.2f Mbps" % (float(self.bit_rate) / 1000000,)
        except (TypeError, ValueError):
            return "N/A Mbps"

    def pretty_codecs(self):
        codecs = (self.video_codec or "").upper()
        if self.audio_codec:
            codecs += " / " + self.audio_codec.upper()
        return codecs

    def template_attributes(self):
        """Returns the template attributes and values ready for use in the metadata header
        """
        return {
            "filename": self.filename,
            "size": self.size,
            "size_bytes": self.size_bytes,
            "duration": self.duration,
            "duration_seconds": self.duration_seconds,
            "width": self.width,
            "height": self.height,
            "video_codec": self.video_codec,
            "audio_codec": self.audio_codec,
            "codecs": self.pretty_codecs(),
            "avg_frame_rate": self.avg_frame_rate,
            "frame_rate": self.pretty_frame_rate(),
            "bit_rate": self.pretty_bit_rate(),
        }

    @staticmethod
    def list_template_attributes():
        """Returns a list a of all supported template attributes with their description and example
        """
        table = []
        table.append({"name": "filename", "description": "File name", "example": "video.mkv"})
        table.append({"name": "size", "description": "File size (MB)", "example": "339.37 MB"})
        table.append({"name": "size_bytes", "description": "File size (bytes)", "example": "355856562"})
        table.append({"name": "duration", "description": "Duration (HH:MM:SS)", "example": "00:10:35"})
        table.append({"name": "duration_seconds", "description": "Duration (seconds)", "example": "634.533333"})
        table.append({"name": "width", "description": "Video width (pixels)", "example": "1920"})
        table.append({"name": "height", "description": "Video height (pixels)", "example": "1080"})
        table.append({"name": "video_codec", "description": "Video codec", "example": "h264"})
        table.append({"name": "audio_codec", "description": "Audio codec", "example": "aac"})
        table.append({"name": "codecs", "description": "Video and audio codecs", "example": "H264 / AAC"})
        table.append({"name": "avg_frame_rate", "description": "Frame rate as reported by ffprobe",
                      "example": "30000/1001"})
        table.append({"name": "frame_rate", "description": "Frame rate", "example": "29.97 FPS"})
        table.append({"name": "bit_rate", "description": "Overall bit rate", "example": "4.49 Mbps"})
        return table


def capture_interval(duration, num_frames):
    """Seconds between two consecutive samples.
    """
    if duration <= 0:
        raise InvalidInput("video duration must be positive, got {}".format(duration))
    if num_frames <= 0:
        raise InvalidInput("number of frames must be positive, got {}".format(num_frames))
    usable_duration = duration * (1 - 2 * SKIPPED_DURATION_RATIO)
    return usable_duration / num_frames


def sample_timestamps(duration, num_frames):
    """Computes `num_frames` uniformly distributed timestamps.
    The first and last 5% of the video are skipped to avoid slates, logos and fades.
    """
    interval = capture_interval(duration, num_frames)
    start = duration * SKIPPED_DURATION_RATIO
    return [start + i * interval for i in range(num_frames)]


class MediaCapture(object):
    """Capture frames of a video with a single ffmpeg invocation
    """

    def __init__(self, path, ffmpeg_path=DEFAULT_FFMPEG_PATH, timeout=None):
        self.path = path
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout

    def build_command(self, start, interval, num_frames, frame_rate, width, height, quality):
        """Build the ffmpeg command writing `num_frames` concatenated JPEG images to stdout.
        Frames are selected by number, relative to the seek position `start`.
        """
        selected = []
        for i in range(num_frames):
            frame_number = int(i * interval * frame_rate)
            # commas must be escaped for the filter graph parser
            selected.append("eq(n\\,%d)" % (frame_number,))
        select_filter = "select='" + "+".join(selected) + "'"

        return [
            self.ffmpeg_path,
            "-ss", "%.4f" % (start,),
            "-i", self.path,
            "-vf", "%s,scale=%d:%d" % (select_filter, width, height),
            "-vsync", "vfr",
            "-vframes", str(num_frames),
            "-q:v", str(quality),
            "-f", "image2pipe",
            "-c:v", "mjpeg",
            "pipe:1",
        ]

    def capture(self, ffmpeg_command):
        """Run ffmpeg and return (stdout bytes, stderr text)
        """
        try:
            process = subprocess.run(
                ffmpeg_command,
                stdin=DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout)
        except FileNotFoundError:
            raise CaptureFailure("Could not find '{}' executable. Please make sure ffmpeg/ffprobe is installed "
                                 "and is in your PATH.".format(self.ffmpeg_path))
        except subprocess.TimeoutExpired as e:
            diagnostics = (e.stderr or b"").decode("utf-8", "replace")
            raise CaptureFailure("ffmpeg timed out after {} seconds".format(self.timeout), diagnostics)

        diagnostics = process.stderr.decode("utf-8", "replace")
        if process.returncode != 0:
            raise CaptureFailure("ffmpeg exited with status {}".format(process.returncode), diagnostics)

        return process.stdout, diagnostics


def prepare_metadata_text_lines(media_info, template_path=None):
    """Render the metadata header template and return a list containing each line.
    """
    template = DEFAULT_METADATA_TEMPLATE
    if template_path is not None:
        try:
            with open(template_path) as f:
                template = f.read()
        except OSError as e:
            raise InvalidInput("Cannot read metadata template {}: {}".format(template_path, e))

    params = media_info.template_attributes()
    try:
        template = Template(template).render(params)
    except TemplateError as e:
        raise InvalidInput("Invalid metadata template {}: {}".format(template_path or "", e))
    template_lines = template.split("\n")
    return [x.strip() for x in template_lines if len(x.strip()) > 0]


def grid_spec_from_args(args, media_info):
    if media_info.width <= 0 or media_info.height <= 0:
        raise InvalidInput("could not determine video dimensions ({}x{})".format(media_info.width,
                                                                                  media_info.height))
    grid_spec = GridSpec(
        columns=args.grid.x,
        rows=args.grid.y,
        thumb_width=args.thumb_width,
        thumb_height=args.thumb_height,
        padding=args.padding,
        margin=args.margin,
        header_height=args.header_height,
        border_thickness=args.border_thickness,
        border_color=args.border_color)
    return grid_spec.with_thumb_height(media_info.width, media_info.height)


def make_contact_sheet(media_info, media_capture, args):
    """Sample the video, decode the captured frames and compose the contact sheet.
    """
    grid_spec = grid_spec_from_args(args, media_info)
    num_frames = grid_spec.num_frames

    timestamps = sample_timestamps(media_info.duration_seconds, num_frames)
    interval = capture_interval(media_info.duration_seconds, num_frames)
    frame_rate = parse_frame_rate(media_info.avg_frame_rate)

    # fail on a bad font or template before running ffmpeg
    metadata_lines = None
    if args.font_file:
        load_font(args.font_file, TIMESTAMP_FONT_SIZE)
        metadata_lines = prepare_metadata_text_lines(media_info, template_path=args.metadata_template_path)

    ffmpeg_command = media_capture.build_command(
        timestamps[0],
        interval,
        num_frames,
        frame_rate,
        grid_spec.thumb_width,
        grid_spec.thumb_height,
        args.jpeg_quality)

    info(args, "Extracting {} frames...".format(num_frames))
    verbose(args, " ".join(ffmpeg_command))
    raw_stream, diagnostics = media_capture.capture(ffmpeg_command)
    verbose(args, diagnostics)

    chunks = demux(raw_stream, num_frames, diagnostics)

    info(args, "Decoding {} frames...".format(num_frames))
    frames = decode_frames(chunks, max_workers=args.decode_workers)

    palette = Palette(
        background=args.background_color,
        font=args.font_color,
        shadow=args.shadow_color,
        metadata_font=args.metadata_font_color,
        timestamp_font=args.timestamp_font_color)

    info(args, "Composing contact sheet...")
    return compose_contact_sheet(
        frames,
        timestamps,
        grid_spec,
        palette,
        font_path=args.font_file or None,
        title=media_info.filename,
        metadata_lines=metadata_lines)


def print_template_attributes():
    """Display all the available template attributes in a tabular format
    """
    table = MediaInfo.list_template_attributes()

    tab = texttable.Texttable()
    tab.set_cols_dtype(["t", "t", "t"])
    rows = [[x["name"], x["description"], x["example"]] for x in table]
    tab.add_rows(rows, header=False)
    tab.header(["Attribute name", "Description", "Example"])
    print(tab.draw())


def mxn_type(string):
    """Type parser for argparse. Argument of type "mxn" will be converted to Grid(m, n).
    An exception will be thrown if the argument is not of the required form
    """
    try:
        split = string.split("x")
        assert (len(split) == 2)
        m = int(split[0])
        assert (m > 0)
        n = int(split[1])
        assert (n > 0)
        return Grid(m, n)
    except (IndexError, ValueError, AssertionError):
        error = "Grid must be of the form mxn, where m is the number of columns and n is the number of rows."
        raise argparse.ArgumentTypeError(error)


def color_type(string):
    """Type parser for argparse. Argument must be a color name such as 'white'
    or an hexadecimal RGB color, for example 'AABBCC' or '#AABBCC'.
    """
    try:
        return parse_color(string)
    except InvalidColor as e:
        raise argparse.ArgumentTypeError(str(e))


def quality_type(string):
    """Type parser for argparse. Argument must be an integer in the range 1-31, 1 being the best quality.
    """
    try:
        quality = int(string)
    except ValueError:
        quality = 0
    if not 1 <= quality <= 31:
        error = "JPEG quality must be an integer in the range 1-31 (lower is better)"
        raise argparse.ArgumentTypeError(error)
    return quality


def non_negative_int_type(string):
    """Type parser for argparse. Argument must be an integer >= 0."""
    try:
        value = int(string)
        assert (value >= 0)
        return value
    except (ValueError, AssertionError):
        raise argparse.ArgumentTypeError("Value must be a non-negative integer: {}".format(string))


def positive_int_type(string):
    """Type parser for argparse. Argument must be an integer > 0."""
    value = non_negative_int_type(string)
    if value == 0:
        raise argparse.ArgumentTypeError("Value must be a positive integer: {}".format(string))
    return value


def interval_type(string):
    """Type parser for argparse. Argument must be a valid interval format.
    Supports any format supported by `parsedatetime`, including:
        * "30sec" (30 seconds)
        * "5 minutes"
        * "1h"
    """
    m = datetime.datetime.min
    cal = parsedatetime.Calendar()
    parsed, status = cal.parseDT(string, sourceTime=m)
    interval = parsed - m
    if not status or interval.total_seconds() <= 0:
        error = "Invalid interval format: {}".format(string)
        raise argparse.ArgumentTypeError(error)

    return interval


def log_stream(args):
    """Status messages go to stderr when the image itself is written to stdout"""
    if args.output_path == "-":
        return sys.stderr
    return sys.stdout


def info(args, message):
    if not args.is_quiet:
        print(message, file=log_stream(args))


def verbose(args, message):
    if args.is_verbose and message:
        print(message, file=log_stream(args))


def error(message):
    """Print an error message."""
    print("[ERROR] %s" % (message,), file=sys.stderr)


def error_exit(message):
    """Print an error message and exit"""
    error(message)
    sys.exit(-1)


def main():
    """Program entry point
    """
    # Argument parser before actual argument parser to let the user overwrite the config path
    preargparser = argparse.ArgumentParser(add_help=False)
    preargparser.add_argument("-c", "--config", dest="configfile", default=None)
    preargs, _ = preargparser.parse_known_args()
    try:
        if preargs.configfile:
            # abort if the file the user asked for does not exist
            if os.path.exists(preargs.configfile):
                Config.load_configuration(preargs.configfile)
            else:
                error_exit("Could not find config file: {}".format(preargs.configfile))
        else:
            if os.path.exists(DEFAULT_CONFIG_FILE):
                Config.load_configuration(DEFAULT_CONFIG_FILE)
    except configparser.Error as e:
        error_exit(str(e))

    parser = argparse.ArgumentParser(description="Create a thumbnail sheet for a video file",
                                     formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    parser.add_argument("filenames", nargs="*")
    parser.add_argument(
        "-o", "--output",
        help="save to output file or directory. Use '-' to write the image to stdout.",
        dest="output_path")
    # adding --config to the main parser to display it when the user asks for help
    # the value is not important anymore
    parser.add_argument(
        "-c", "--config",
        help="Config file to load defaults from",
        default=DEFAULT_CONFIG_FILE)
    parser.add_argument(
        "-g", "--grid",
        help="display frames on a mxn grid (for example 4x5)",
        dest="grid",
        type=mxn_type,
        default=Config.grid_size)
    parser.add_argument(
        "--thumb-width",
        help="width of each thumbnail",
        dest="thumb_width",
        type=positive_int_type,
        default=Config.thumb_width)
    parser.add_argument(
        "--thumb-height",
        help="height of each thumbnail. -1 computes it from the width and the video aspect ratio",
        dest="thumb_height",
        type=int,
        default=Config.thumb_height)
    parser.add_argument(
        "--padding",
        help="number of pixels between thumbnails",
        dest="padding",
        type=non_negative_int_type,
        default=Config.padding)
    parser.add_argument(
        "--margin",
        help="number of pixels around the grid",
        dest="margin",
        type=non_negative_int_type,
        default=Config.margin)
    parser.add_argument(
        "--header",
        help="height of the header section",
        dest="header_height",
        type=non_negative_int_type,
        default=Config.header_height)
    parser.add_argument(
        "--font-file",
        help="TTF font used for all text. If not provided, no text is rendered.",
        dest="font_file",
        default=Config.font_file)
    parser.add_argument(
        "--font-color",
        help="Color of the title font, a color name or an hexadecimal number, for example AABBCC",
        dest="font_color",
        type=color_type,
        default=Config.font_color)
    parser.add_argument(
        "--shadow-color",
        help="Color of the text shadow",
        dest="shadow_color",
        type=color_type,
        default=Config.shadow_color)
    parser.add_argument(
        "--bg-color",
        help="Background color of the thumbnail sheet",
        dest="background_color",
        type=color_type,
        default=Config.background_color)
    parser.add_argument(
        "--metadata-font-color",
        help="Color of the metadata font",
        dest="metadata_font_color",
        type=color_type,
        default=Config.metadata_font_color)
    parser.add_argument(
        "--timestamp-font-color",
        help="Color of the timestamp font",
        dest="timestamp_font_color",
        type=color_type,
        default=Config.timestamp_font_color)
    parser.add_argument(
        "--jpeg-quality",
        help="JPEG quality of the captures and the output image (1-31, lower is better)",
        dest="jpeg_quality",
        type=quality_type,
        default=Config.jpeg_quality)
    parser.add_argument(
        "--border-thickness",
        help="Thickness of the border around each thumbnail. 0 disables it.",
        dest="border_thickness",
        type=non_negative_int_type,
        default=Config.border_thickness)
    parser.add_argument(
        "--border-color",
        help="Color of the border around each thumbnail",
        dest="border_color",
        type=color_type,
        default=Config.border_color)
    parser.add_argument(
        "--template",
        help="Path to metadata template file",
        dest="metadata_template_path",
        default=None)
    parser.add_argument(
        "--list-template-attributes",
        action="store_true",
        dest="list_template_attributes")
    parser.add_argument(
        "--ffmpeg-path",
        help="Path to the ffmpeg executable",
        dest="ffmpeg_path",
        default=Config.ffmpeg_path)
    parser.add_argument(
        "--ffprobe-path",
        help="Path to the ffprobe executable",
        dest="ffprobe_path",
        default=Config.ffprobe_path)
    parser.add_argument(
        "--ffmpeg-timeout",
        help="Abort frame extraction after this long, for example '90 seconds' or '5 minutes'",
        dest="ffmpeg_timeout",
        type=interval_type,
        default=Config.ffmpeg_timeout)
    parser.add_argument(
        "--decode-workers",
        help="Maximum number of threads decoding frames. Defaults to one per frame.",
        dest="decode_workers",
        type=positive_int_type,
        default=Config.decode_workers)
    parser.add_argument(
        "--ignore-errors",
        action="store_true",
        help="Ignore any error encountered while processing a file and continue to the next file.",
        dest="ignore_errors")
    parser.add_argument(
        "--no-overwrite",
        action="store_true",
        help="Do not overwrite output file if it already exists.",
        dest="no_overwrite")
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="do not display status messages",
        dest="is_quiet")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="display verbose messages, including the ffmpeg command and its output",
        dest="is_verbose")
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s version {version}".format(version=__version__))

    args = parser.parse_args()

    if args.list_template_attributes:
        print_template_attributes()
        sys.exit(0)

    if not args.filenames:
        parser.error("the following arguments are required: filenames")

    if args.is_quiet and args.is_verbose:
        parser.error("--quiet and --verbose cannot be used together")

    if args.output_path == "-" and len(args.filenames) > 1:
        parser.error("only one file can be processed when writing to stdout")

    for path in args.filenames:
        try:
            process_file(path, args)
        except ThumbsheetError as e:
            if not args.ignore_errors:
                error_exit(str(e))
            print("[WARN] failed to process {} ... skipping: {}".format(path, e), file=sys.stderr)
        except Exception as e:
            if not args.ignore_errors:
                raise
            print("[WARN] failed to process {} ... skipping: {}".format(path, e), file=sys.stderr)


def output_path_for(path, output_path):
    """Default output is <video name>_montage.jpg next to the video"""
    stem = os.path.splitext(os.path.basename(path))[0]
    file_name = stem + "_montage.jpg"

    if not output_path:
        return os.path.join(os.path.dirname(path), file_name)
    if output_path != "-" and os.path.isdir(output_path):
        return os.path.join(output_path, file_name)
    return output_path


def process_file(path, args):
    """Generate a thumbnail sheet for the file at given path
    """
    args = deepcopy(args)
    args.output_path = output_path_for(path, args.output_path)

    if args.no_overwrite and args.output_path != "-" and os.path.exists(args.output_path):
        info(args, "[INFO] thumbnail sheet already exists, skipping: {}".format(args.output_path))
        return

    info(args, "Processing {}...".format(path))

    timeout = None
    if args.ffmpeg_timeout is not None:
        timeout = args.ffmpeg_timeout.total_seconds()

    media_info = MediaInfo(path, ffprobe_path=args.ffprobe_path, verbose=args.is_verbose)
    media_capture = MediaCapture(path, ffmpeg_path=args.ffmpeg_path, timeout=timeout)

    image = make_contact_sheet(media_info, media_capture, args)
    save_image(encode_image(image, args.jpeg_quality), args.output_path)

    if args.output_path == "-":
        info(args, "Thumbnail sheet written to stdout.")
    else:
        info(args, "Thumbnail sheet saved to {}".format(args.output_path))


if __name__ == "__main__":
    main()
