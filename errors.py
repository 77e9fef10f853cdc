"""Exception hierarchy for the decoder. Every fatal condition is one of these."""


class CwDecoderError(Exception):
    """Base class for all decoder failures."""


class ConfigurationError(CwDecoderError):
    """Bad option value, offset or length."""


class AudioFormatError(ConfigurationError):
    """The audio container holds something we cannot read."""


class DetectionError(CwDecoderError):
    """The signal did not produce anything decodable."""


class NoSignalError(DetectionError):
    def __init__(self, message: str = "no signal detected"):
        super().__init__(message)


class NoCodeError(DetectionError):
    def __init__(self, message: str = "no code detected"):
        super().__init__(message)
