"""
dsp/synthetic.py — Deterministic ECG/PPG stream generator
==========================================================
Produces paired, timestamped ECG and PPG sample streams with a known
heart rate and a known pulse transit time.  Used by the CLI demo and the
test-suite so the whole pipeline can be exercised without hardware.

Waveform model
--------------
Each beat is a rectangular pulse exactly one filter window long on top of
a DC baseline.  After the moving-average filter this becomes a triangle
with a single maximum, so the detector confirms the peak one window after
the pulse starts:

    detection delay = window × (1000 / fs)   ms

PPG pulses are placed so that the *detected* PPG peak trails the *detected*
ECG peak by exactly `ptt_ms`.

⚠️  These waveforms are deliberately crude — they exercise peak timing,
    not morphology.
"""

from dataclasses import dataclass

import numpy as np

from config import ECG_SAMPLE_RATE_HZ, FILTER_WINDOW, PPG_SAMPLE_RATE_HZ
from dsp.peak_detector import Sample


@dataclass(frozen=True)
class PPGSample:
    ir: float
    red: float
    timestamp: int


def detection_delay_ms(fs: float, width: int = FILTER_WINDOW) -> float:
    """Time from pulse onset to the detector's confirmation sample."""
    return width * 1000.0 / fs


def beat_onsets(
    heart_rate_bpm: float,
    duration_ms: int,
    start_ms: int = 400,
    jitter_ms: float = 0.0,
    grid_ms: int = 10,
    seed: int = 42,
) -> list[int]:
    """
    Beat onset times (ms) at the given rate, optionally jittered.

    Onsets are snapped to `grid_ms` so they land exactly on sample
    instants for both 200 Hz and 100 Hz streams.
    """
    rng = np.random.default_rng(seed)
    rr_ms = 60000.0 / heart_rate_bpm
    onsets = []
    t = float(start_ms)
    while t < duration_ms:
        jitter = rng.normal(0.0, jitter_ms) if jitter_ms > 0 else 0.0
        onsets.append(int(round((t + jitter) / grid_ms) * grid_ms))
        t += rr_ms
    return onsets


def pulse_train(
    onsets_ms: list[int],
    fs: float,
    duration_ms: int,
    amplitude: float,
    baseline: float = 0.0,
    width: int = FILTER_WINDOW,
    noise_std: float = 0.0,
    seed: int = 0,
) -> list[Sample]:
    """Render rectangular pulses of `width` samples at each onset."""
    dt = 1000.0 / fs
    n = int(duration_ms / dt)
    timestamps = np.round(np.arange(n) * dt).astype(int)
    values = np.full(n, baseline, dtype=np.float64)

    pulse_ms = width * dt
    for onset in onsets_ms:
        mask = (timestamps >= onset) & (timestamps < onset + pulse_ms)
        values[mask] += amplitude

    if noise_std > 0:
        rng = np.random.default_rng(seed)
        values += rng.normal(0.0, noise_std, size=n)

    return [Sample(value=float(v), timestamp=int(t)) for v, t in zip(values, timestamps)]


def generate_session(
    heart_rate_bpm: float = 75.0,
    ptt_ms: float = 200.0,
    duration_ms: int = 10000,
    jitter_ms: float = 0.0,
    noise_std: float = 0.0,
    ecg_fs: float = ECG_SAMPLE_RATE_HZ,
    ppg_fs: float = PPG_SAMPLE_RATE_HZ,
    ecg_baseline: float = 1000.0,
    ecg_amplitude: float = 3000.0,
    ppg_baseline: float = 20000.0,
    ppg_amplitude: float = 80000.0,
    seed: int = 42,
) -> tuple[list[Sample], list[PPGSample]]:
    """
    Build a paired ECG / PPG recording.

    Returns
    -------
    ecg : list[Sample]      ECG stream at `ecg_fs`.
    ppg : list[PPGSample]   PPG stream at `ppg_fs` (red mirrors IR at 60 %).
    """
    ecg_onsets = beat_onsets(heart_rate_bpm, duration_ms, jitter_ms=jitter_ms, seed=seed)

    # Shift so detected PPG peak − detected ECG peak == ptt_ms
    shift = ptt_ms + detection_delay_ms(ecg_fs) - detection_delay_ms(ppg_fs)
    ppg_onsets = [int(round(t + shift)) for t in ecg_onsets]

    ecg = pulse_train(
        ecg_onsets, ecg_fs, duration_ms, ecg_amplitude,
        baseline=ecg_baseline, noise_std=noise_std, seed=seed,
    )
    ir = pulse_train(
        ppg_onsets, ppg_fs, duration_ms, ppg_amplitude,
        baseline=ppg_baseline, noise_std=noise_std * 10, seed=seed + 1,
    )
    ppg = [PPGSample(ir=s.value, red=s.value * 0.6, timestamp=s.timestamp) for s in ir]
    return ecg, ppg


def interleave(ecg: list[Sample], ppg: list[PPGSample]) -> list[Sample | PPGSample]:
    """Merge both streams in timestamp order (ECG first on ties)."""
    merged: list[tuple[int, int, Sample | PPGSample]] = []
    merged.extend((s.timestamp, 0, s) for s in ecg)
    merged.extend((s.timestamp, 1, s) for s in ppg)
    merged.sort(key=lambda item: (item[0], item[1]))
    return [item[2] for item in merged]
