"""WAV I/O for rendered samples.

Provides to_pcm, save_wav and load_wav used by the CLI renderer and mixer.
"""

from math import gcd

import numpy as np
import soundfile as sf

from shared.errors import EmptyInput

# bit depth -> (libsndfile subtype, container dtype, left shift into container)
_PCM_FORMATS = {
    8: ("PCM_U8", np.int16, 8),
    16: ("PCM_16", np.int16, 0),
    24: ("PCM_24", np.int32, 8),
    32: ("PCM_32", np.int32, 0),
}


def to_pcm(samples, bit_depth):
    """Scale [-1, 1] floats to signed integers of the given width.

    round(s * (2**(bd-1) - 1)), clamped to the signed range. Returns int64.
    """
    if bit_depth not in _PCM_FORMATS:
        raise ValueError(f"Unsupported bit depth: {bit_depth} (use 8, 16, 24 or 32)")
    full = 2 ** (bit_depth - 1)
    scaled = np.round(np.asarray(samples, dtype=np.float64) * (full - 1))
    return np.clip(scaled, -full, full - 1).astype(np.int64)


def save_wav(path, samples, sample_rate, bit_depth=16, channels=1):
    """Write a PCM WAV file.

    A mono buffer is duplicated across channels when channels == 2. A
    (n, channels) array is written as is.
    """
    samples = np.asarray(samples, dtype=np.float64)
    if samples.size == 0:
        raise EmptyInput("no samples to write")
    subtype, dtype, shift = _PCM_FORMATS.get(bit_depth, (None, None, 0))
    if subtype is None:
        raise ValueError(f"Unsupported bit depth: {bit_depth} (use 8, 16, 24 or 32)")
    pcm = to_pcm(samples, bit_depth)
    if pcm.ndim == 1 and channels > 1:
        pcm = np.repeat(pcm[:, None], channels, axis=1)
    # libsndfile keeps the most significant bits of the container
    data = (pcm << shift).astype(dtype)
    sf.write(path, data, int(sample_rate), subtype=subtype, format="WAV")


def load_wav(path, sr=None, mono=True):
    """Load a WAV file as float64, optionally resampled to `sr`.

    Returns (audio_array, sample_rate). With mono=True channels are averaged.
    """
    audio, file_sr = sf.read(path, dtype="float64", always_2d=True)
    if mono:
        audio = audio.mean(axis=1)
    if sr is not None and file_sr != sr:
        from scipy.signal import resample_poly
        g = gcd(sr, file_sr)
        audio = resample_poly(audio, sr // g, file_sr // g, axis=0)
        file_sr = sr
    return audio, file_sr
