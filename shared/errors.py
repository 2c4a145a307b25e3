"""Error taxonomy for the synthesis engine.

Everything derives from ValueError so callers that already guard DSP calls
with ``except ValueError`` keep working.
"""


class SynthError(ValueError):
    """Base class for every synthesis / DSP failure."""


class UnsupportedWaveform(SynthError):
    def __init__(self, code):
        self.code = code
        super().__init__(f"unsupported waveform type: {code!r}")


class MismatchedBufferLength(SynthError):
    def __init__(self, lengths):
        self.lengths = tuple(lengths)
        super().__init__(f"mismatched sample lengths: {list(self.lengths)}")


class MismatchedWeightCount(SynthError):
    def __init__(self, n_weights, n_buffers):
        self.n_weights = n_weights
        self.n_buffers = n_buffers
        super().__init__(
            f"number of weights ({n_weights}) must match number of samples ({n_buffers})")


class MalformedReverbConfig(SynthError):
    pass


class InvalidParameters(SynthError):
    pass


class EmptyInput(SynthError):
    pass
