"""Exceptions raised while building a contact sheet.
"""


class ThumbsheetError(Exception):
    pass


class InvalidInput(ThumbsheetError):
    pass


class InvalidColor(ThumbsheetError):
    def __init__(self, token):
        super(InvalidColor, self).__init__(
            "Invalid color '%s': expected a color name or 6 hexadecimal digits, for example #AABBCC" % (token,))
        self.token = token


class ProbeFailure(ThumbsheetError):
    pass


class CaptureFailure(ThumbsheetError):
    def __init__(self, message, diagnostics=""):
        if diagnostics:
            message = "%s\nStderr:\n%s" % (message, diagnostics)
        super(CaptureFailure, self).__init__(message)
        self.diagnostics = diagnostics


class IncompleteStream(ThumbsheetError):
    def __init__(self, recovered, expected, diagnostics=""):
        super(IncompleteStream, self).__init__(
            "ffmpeg produced %d frames, but %d were expected. Stderr:\n%s" % (recovered, expected, diagnostics))
        self.recovered = recovered
        self.expected = expected
        self.diagnostics = diagnostics


class DecodeFailure(ThumbsheetError):
    def __init__(self, index, cause):
        super(DecodeFailure, self).__init__("Failed to decode frame %d: %s" % (index, cause))
        self.index = index
        self.cause = cause


class FontLoadFailure(ThumbsheetError):
    def __init__(self, path, cause=None):
        message = "Cannot load font: {}".format(path)
        if cause is not None:
            message += " ({})".format(cause)
        super(FontLoadFailure, self).__init__(message)
        self.path = path


class EncodeFailure(ThumbsheetError):
    pass
