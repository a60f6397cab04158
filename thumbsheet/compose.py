"""Lay out decoded frames and header text on the contact sheet.
"""

import io
import math
import sys
from collections import namedtuple
from types import MappingProxyType

from PIL import Image, ImageDraw, ImageFont

from thumbsheet.errors import InvalidColor, InvalidInput, FontLoadFailure, EncodeFailure

TITLE_MAX_FONT_SIZE = 40
TITLE_MIN_FONT_SIZE = 10
TITLE_FONT_SIZE_STEP = 2
TITLE_MAX_WIDTH_RATIO = 0.9
TITLE_Y = 30
TITLE_SHADOW_OFFSET = 2
METADATA_FONT_SIZE = 20
METADATA_FIRST_LINE_Y = 80
METADATA_LINE_HEIGHT = 25
METADATA_SHADOW_OFFSET = 1
TIMESTAMP_FONT_SIZE = 18
TIMESTAMP_HORIZONTAL_MARGIN = 10
TIMESTAMP_VERTICAL_MARGIN = 10
TIMESTAMP_SHADOW_OFFSET = 1


class Color(namedtuple('Color', ['r', 'g', 'b', 'a'])):
    def to_hex(self, component):
        h = hex(component).replace("0x", "").upper()
        return h if len(h) == 2 else "0" + h

    def __str__(self):
        return "".join([self.to_hex(x) for x in [self.r, self.g, self.b, self.a]])


NAMED_COLORS = MappingProxyType({
    "black": "000000",
    "white": "FFFFFF",
    "red": "FF0000",
    "lime": "00FF00",
    "blue": "0000FF",
    "yellow": "FFFF00",
    "cyan": "00FFFF",
    "magenta": "FF00FF",
    "silver": "C0C0C0",
    "gray": "808080",
    "grey": "808080",
    "maroon": "800000",
    "olive": "808000",
    "green": "008000",
    "purple": "800080",
    "teal": "008080",
    "navy": "000080",
    "darkgray": "A9A9A9",
    "darkgrey": "A9A9A9",
    "lightgray": "D3D3D3",
    "lightgrey": "D3D3D3",
})


def parse_color(token):
    """Converts a color name or a 'RRGGBB' / '#RRGGBB' string to an opaque Color.
    """
    value = token.strip().lower()
    value = NAMED_COLORS.get(value, value)
    if value.startswith("#"):
        value = value[1:]

    if len(value) != 6:
        raise InvalidColor(token)
    try:
        components = tuple(bytearray.fromhex(value))
    except ValueError:
        raise InvalidColor(token)

    return Color(*(components + (255,)))


class Palette(namedtuple('Palette', ['background', 'font', 'shadow', 'metadata_font', 'timestamp_font'])):
    pass


class GridSpec(namedtuple('GridSpec', ['columns', 'rows', 'thumb_width', 'thumb_height', 'padding', 'margin',
                                       'header_height', 'border_thickness', 'border_color'])):
    """Geometry of the contact sheet. A thumb_height <= 0 means it has to be
    deduced from the video aspect ratio with `with_thumb_height`.
    """

    @property
    def num_frames(self):
        return self.columns * self.rows

    def with_thumb_height(self, video_width, video_height):
        """Returns a copy where an automatic thumbnail height is replaced by the
        height that keeps the video aspect ratio.
        """
        if self.thumb_height > 0:
            return self
        if video_width <= 0 or video_height <= 0:
            raise InvalidInput("video dimensions are %sx%s, cannot auto-calculate thumbnail height" %
                               (video_width, video_height))
        height = self.thumb_width * video_height // video_width
        if height < 1:
            raise InvalidInput("thumbnail width %d is too small for a %dx%d video" %
                               (self.thumb_width, video_width, video_height))
        return self._replace(thumb_height=height)

    def canvas_size(self):
        grid_width = self.columns * self.thumb_width + (self.columns - 1) * self.padding
        grid_height = self.rows * self.thumb_height + (self.rows - 1) * self.padding
        return (grid_width + 2 * self.margin,
                grid_height + 2 * self.margin + self.header_height)

    def cell_position(self, index):
        """Top-left corner of the index-th thumbnail, filled row by row.
        """
        row, col = divmod(index, self.columns)
        x = self.margin + col * (self.thumb_width + self.padding)
        y = self.header_height + self.margin + row * (self.thumb_height + self.padding)
        return x, y


def jpeg_quality(quality):
    """Converts an ffmpeg-style quality (1-31, lower is better) to Pillow's 1-100 scale.
    """
    return max(1, min(100, 100 - (quality - 1) * 3))


def format_timestamp(seconds):
    """Formats seconds as HH:MM:SS, rounded to the nearest second.
    """
    total = int(math.floor(seconds + 0.5))
    hours, remaining = divmod(total, 3600)
    minutes, seconds = divmod(remaining, 60)
    return "%02d:%02d:%02d" % (hours, minutes, seconds)


def load_font(font_path, font_size):
    try:
        return ImageFont.truetype(font_path, font_size)
    except (OSError, ValueError) as e:
        raise FontLoadFailure(font_path, e)


def fit_font_size(
        font_path,
        text,
        max_width,
        max_size=TITLE_MAX_FONT_SIZE,
        min_size=TITLE_MIN_FONT_SIZE,
        step=TITLE_FONT_SIZE_STEP):
    """Shrink the font until `text` is narrower than `max_width` or `min_size` is reached.
    Returns (font, size)
    """
    size = max_size
    font = load_font(font_path, size)

    max_iterations = max(0, (max_size - min_size) // step) + 1
    for _ in range(max_iterations):
        if size <= min_size or font.getlength(text) < max_width:
            break
        size = max(min_size, size - step)
        font = load_font(font_path, size)

    return font, size


def draw_shadowed_text(draw, xy, text, font, fill, shadow_fill, offset, anchor):
    """Draw `text` twice: once shifted by `offset` in the shadow color, then on top.
    """
    x, y = xy
    draw.text((x + offset, y + offset), text, font=font, fill=shadow_fill, anchor=anchor)
    draw.text((x, y), text, font=font, fill=fill, anchor=anchor)


def draw_header(draw, font_path, width, title, metadata_lines, palette):
    """Draw the file name and the metadata lines centered in the header
    """
    center = width / 2

    if title:
        title_font, _ = fit_font_size(font_path, title, width * TITLE_MAX_WIDTH_RATIO)
        draw_shadowed_text(draw, (center, TITLE_Y), title, title_font,
                           palette.font, palette.shadow, TITLE_SHADOW_OFFSET, "mm")

    if metadata_lines:
        metadata_font = load_font(font_path, METADATA_FONT_SIZE)
        h = METADATA_FIRST_LINE_Y
        for line in metadata_lines:
            draw_shadowed_text(draw, (center, h), line, metadata_font,
                               palette.metadata_font, palette.shadow, METADATA_SHADOW_OFFSET, "mm")
            h += METADATA_LINE_HEIGHT


def compose_contact_sheet(
        frames,
        timestamps,
        grid_spec,
        palette,
        font_path=None,
        title=None,
        metadata_lines=None):
    """Creates the contact sheet: frames on a grid below a header holding the
    file name and metadata, with a timestamp in each thumbnail.
    Text is only drawn when `font_path` is given.
    """
    if len(frames) != grid_spec.num_frames:
        raise InvalidInput("expected %d frames for a %dx%d grid, got %d" %
                           (grid_spec.num_frames, grid_spec.columns, grid_spec.rows, len(frames)))

    size = grid_spec.canvas_size()
    thumb_size = (grid_spec.thumb_width, grid_spec.thumb_height)
    transparent = (255, 255, 255, 0)

    image = Image.new("RGBA", size, tuple(palette.background))
    image_capture_layer = Image.new("RGBA", size, transparent)
    image_text_layer = Image.new("RGBA", size, transparent)

    draw_capture_layer = ImageDraw.Draw(image_capture_layer)
    draw_text_layer = ImageDraw.Draw(image_text_layer)

    if font_path:
        draw_header(draw_text_layer, font_path, size[0], title, metadata_lines, palette)
        timestamp_font = load_font(font_path, TIMESTAMP_FONT_SIZE)

    for i, frame in enumerate(frames):
        x, y = grid_spec.cell_position(i)

        if frame.size != thumb_size:
            frame = frame.resize(thumb_size)
        image_capture_layer.paste(frame.convert("RGBA"), (x, y))

        if grid_spec.border_thickness > 0:
            draw_capture_layer.rectangle(
                [(x, y), (x + thumb_size[0] - 1, y + thumb_size[1] - 1)],
                outline=tuple(grid_spec.border_color),
                width=grid_spec.border_thickness)

        if font_path:
            draw_shadowed_text(
                draw_text_layer,
                (x + TIMESTAMP_HORIZONTAL_MARGIN, y + thumb_size[1] - TIMESTAMP_VERTICAL_MARGIN),
                format_timestamp(timestamps[i]),
                timestamp_font,
                palette.timestamp_font,
                palette.shadow,
                TIMESTAMP_SHADOW_OFFSET,
                "lb")

    out_image = Image.alpha_composite(image, image_capture_layer)
    out_image = Image.alpha_composite(out_image, image_text_layer)

    return out_image


def encode_image(image, quality):
    """Encode the contact sheet as JPEG. `quality` uses the 1-31 ffmpeg scale.
    """
    buffer = io.BytesIO()
    try:
        image.convert("RGB").save(buffer, format="JPEG", optimize=True, quality=jpeg_quality(quality))
    except (OSError, ValueError, KeyError) as e:
        raise EncodeFailure("Could not encode contact sheet: {}".format(e))
    return buffer.getvalue()


def save_image(data, output_path, stream=None):
    """Write encoded image bytes to `output_path`, or to stdout when it is '-'
    """
    try:
        if output_path == "-":
            if stream is None:
                stream = sys.stdout.buffer
            stream.write(data)
            stream.flush()
        else:
            with open(output_path, "wb") as f:
                f.write(data)
    except OSError as e:
        raise EncodeFailure("Could not write {}: {}".format(output_path, e))
