"""Filters — one-pole RC sections and RBJ biquads.

Every buffer-level function starts from silent state, so two calls never
share history.
"""

import numpy as np
from numba import njit
from scipy.signal import lfilter


# ---------------------------------------------------------------------------
# One-pole RC filters
# ---------------------------------------------------------------------------

@njit(cache=True)
def _one_pole_lowpass(audio, alpha):
    n = len(audio)
    out = np.zeros(n)
    if n == 0:
        return out
    out[0] = audio[0]
    for i in range(1, n):
        out[i] = out[i - 1] + alpha * (audio[i] - out[i - 1])
    return out


@njit(cache=True)
def _one_pole_highpass(audio, alpha):
    n = len(audio)
    out = np.zeros(n)
    if n == 0:
        return out
    out[0] = audio[0]
    for i in range(1, n):
        out[i] = alpha * (out[i - 1] + audio[i] - audio[i - 1])
    return out


def _rc(cutoff, sample_rate):
    return 1.0 / (2.0 * np.pi * cutoff), 1.0 / sample_rate


def low_pass_filter(samples, cutoff, sample_rate):
    """RC lowpass. y[0] = x[0]; y[i] = y[i-1] + alpha * (x[i] - y[i-1])."""
    rc, dt = _rc(cutoff, sample_rate)
    return _one_pole_lowpass(np.asarray(samples, dtype=np.float64), dt / (rc + dt))


def high_pass_filter(samples, cutoff, sample_rate):
    """RC highpass. y[0] = x[0]; y[i] = alpha * (y[i-1] + x[i] - x[i-1])."""
    rc, dt = _rc(cutoff, sample_rate)
    return _one_pole_highpass(np.asarray(samples, dtype=np.float64), rc / (rc + dt))


def band_pass_filter(samples, low_cutoff, high_cutoff, sample_rate):
    """Lowpass at high_cutoff, then highpass at low_cutoff."""
    return high_pass_filter(low_pass_filter(samples, high_cutoff, sample_rate),
                            low_cutoff, sample_rate)


# ---------------------------------------------------------------------------
# Biquad
# ---------------------------------------------------------------------------

def _rbj(freq, q, sr):
    w0 = 2.0 * np.pi * freq / sr
    return np.cos(w0), np.sin(w0) / (2.0 * q)


class BiquadFilter:
    """Second-order (biquad) filter — 5 coefficients, 2 state variables.

    Difference equation (Direct Form 1):
        y[n] = b0*x[n] + b1*x[n-1] + b2*x[n-2] - a1*y[n-1] - a2*y[n-2]

    Use the static methods to compute coefficients for each filter type.
    """

    def __init__(self, b0=1.0, b1=0.0, b2=0.0, a1=0.0, a2=0.0):
        self.set_coeffs(b0, b1, b2, a1, a2)
        self.reset()

    def process(self, x: float) -> float:
        y = self.b0 * x + self.b1 * self.x1 + self.b2 * self.x2 \
            - self.a1 * self.y1 - self.a2 * self.y2
        self.x2, self.x1 = self.x1, x
        self.y2, self.y1 = self.y1, y
        return y

    def process_buffer(self, samples) -> np.ndarray:
        """Filter a whole buffer from zero state. Stored state is left untouched."""
        samples = np.asarray(samples, dtype=np.float64)
        if len(samples) == 0:
            return np.zeros(0)
        return lfilter([self.b0, self.b1, self.b2], [1.0, self.a1, self.a2], samples)

    def set_coeffs(self, b0, b1, b2, a1, a2):
        self.b0 = b0
        self.b1 = b1
        self.b2 = b2
        self.a1 = a1
        self.a2 = a2

    def reset(self):
        self.x1 = self.x2 = self.y1 = self.y2 = 0.0

    @staticmethod
    def lowpass(freq, q, sr):
        """Lowpass coefficients. freq in Hz, q is resonance (0.707 = Butterworth)."""
        cos_w0, alpha = _rbj(freq, q, sr)
        a0 = 1.0 + alpha
        b0 = (1.0 - cos_w0) / 2.0 / a0
        return BiquadFilter(b0, (1.0 - cos_w0) / a0, b0,
                            (-2.0 * cos_w0) / a0, (1.0 - alpha) / a0)

    @staticmethod
    def highpass(freq, q, sr):
        cos_w0, alpha = _rbj(freq, q, sr)
        a0 = 1.0 + alpha
        b0 = (1.0 + cos_w0) / 2.0 / a0
        return BiquadFilter(b0, -(1.0 + cos_w0) / a0, b0,
                            (-2.0 * cos_w0) / a0, (1.0 - alpha) / a0)

    @staticmethod
    def bandpass(freq, q, sr):
        """Bandpass coefficients (constant 0 dB peak gain)."""
        cos_w0, alpha = _rbj(freq, q, sr)
        a0 = 1.0 + alpha
        return BiquadFilter(alpha / a0, 0.0, -alpha / a0,
                            (-2.0 * cos_w0) / a0, (1.0 - alpha) / a0)

    @staticmethod
    def notch(freq, q, sr):
        cos_w0, alpha = _rbj(freq, q, sr)
        a0 = 1.0 + alpha
        return BiquadFilter(1.0 / a0, (-2.0 * cos_w0) / a0, 1.0 / a0,
                            (-2.0 * cos_w0) / a0, (1.0 - alpha) / a0)

    @staticmethod
    def allpass(freq, q, sr):
        """Allpass — flat magnitude, phase turns through 360 degrees around freq."""
        cos_w0, alpha = _rbj(freq, q, sr)
        a0 = 1.0 + alpha
        return BiquadFilter((1.0 - alpha) / a0, (-2.0 * cos_w0) / a0, 1.0,
                            (-2.0 * cos_w0) / a0, (1.0 - alpha) / a0)

    @staticmethod
    def low_shelf(freq, gain_db, sr):
        """Butterworth-slope shelf below freq. gain_db in dB."""
        return BiquadFilter(*_shelf(freq, gain_db, sr, 1.0))

    @staticmethod
    def high_shelf(freq, gain_db, sr):
        return BiquadFilter(*_shelf(freq, gain_db, sr, -1.0))


def _shelf(freq, gain_db, sr, side):
    # side = +1 for low shelf, -1 for high shelf
    A = 10.0 ** (gain_db / 40.0)
    cos_w0, alpha = _rbj(freq, np.sqrt(0.5), sr)
    k = 2.0 * np.sqrt(A) * alpha
    c = side * (A - 1) * cos_w0
    a0 = (A + 1) + c + k
    return (A * ((A + 1) - c + k) / a0,
            side * 2.0 * A * ((A - 1) - (A + 1) * cos_w0 * side) / a0,
            A * ((A + 1) - c - k) / a0,
            -side * 2.0 * ((A - 1) + (A + 1) * cos_w0 * side) / a0,
            ((A + 1) + c - k) / a0)


_BIQUAD_TYPES = {
    "lowpass": BiquadFilter.lowpass,
    "highpass": BiquadFilter.highpass,
    "bandpass": BiquadFilter.bandpass,
    "notch": BiquadFilter.notch,
    "allpass": BiquadFilter.allpass,
}


def biquad_filter(samples, filter_type, freq, q, sample_rate):
    """One fresh-state biquad pass of the given RBJ type."""
    try:
        design = _BIQUAD_TYPES[filter_type]
    except KeyError:
        raise ValueError(f"Unknown filter type: {filter_type!r}") from None
    return design(freq, q, sample_rate).process_buffer(samples)


def biquad_band_pass(samples, low, high, sample_rate):
    """Biquad bandpass centred between low and high, Q = centre / bandwidth."""
    centre = (low + high) / 2.0
    return biquad_filter(samples, "bandpass", centre, centre / (high - low), sample_rate)
