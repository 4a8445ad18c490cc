"""
Signal Filters
==============

Stateless smoothing and denoising functions used by the Smoother.

Every filter takes the historical values of one metric ordered oldest to
newest, plus the current raw value where the algorithm needs it, and returns a
plain float. None of them raise for short input: each documents the minimum
number of samples it needs and falls back to the current raw value below it.

Filters:
- ewma: exponentially weighted moving average
- moving_average / median_filter: windowed location estimates
- savitzky_golay: fixed-coefficient polynomial convolution
- kalman_step: one predict/update cycle of a scalar constant-value model
- adaptive_ewma: EWMA whose weight grows with recent volatility
- low_pass: first-order RC low-pass at an assumed 1 Hz sampling rate

Signal utilities:
- remove_outliers, reduce_noise, band_pass_filter
"""
from __future__ import annotations

import math
from collections.abc import Sequence
from typing import NamedTuple

import numpy as np

# Cubic Savitzky-Golay coefficients for centre-point smoothing
SAVITZKY_GOLAY_COEFFICIENTS: dict[int, tuple[float, ...]] = {
    3: (-0.33333333, 1.0, -0.33333333),
    5: (-0.08571429, 0.34285714, 0.48571429, 0.34285714, -0.08571429),
    7: (-0.04761905, 0.28571429, 0.42857143, 0.47619048, 0.42857143, 0.28571429, -0.04761905),
}

KALMAN_PROCESS_NOISE = 0.1
KALMAN_MEASUREMENT_NOISE = 0.1
KALMAN_INITIAL_COVARIANCE = 1.0

ADAPTIVE_VOLATILITY_WINDOW = 10
ADAPTIVE_ALPHA_MIN = 0.05
ADAPTIVE_ALPHA_MAX = 0.8

LOW_PASS_SAMPLING_RATE_HZ = 1.0

BAND_PASS_HALF_WIDTH = 5


class KalmanEstimate(NamedTuple):
    """State estimate and error covariance after one update."""

    value: float
    covariance: float
    gain: float


# ============================================================================
# Statistics helpers
# ============================================================================


def mean_and_std(values: Sequence[float]) -> tuple[float, float]:
    """Population mean and standard deviation. Empty input gives (0.0, 0.0)."""
    if len(values) == 0:
        return 0.0, 0.0
    arr = np.asarray(values, dtype=float)
    return float(arr.mean()), float(arr.std())


def median(values: Sequence[float]) -> float:
    """Median; an even count averages the two middle elements."""
    if len(values) == 0:
        raise ValueError("median of empty sequence")
    return float(np.median(np.asarray(values, dtype=float)))


def _tail(values: Sequence[float], window_size: int) -> list[float]:
    size = min(max(int(window_size), 0), len(values))
    if size == 0:
        return []
    return list(values[len(values) - size:])


# ============================================================================
# Filter bank
# ============================================================================


def ewma(values: Sequence[float], current: float, alpha: float) -> float:
    """
    Exponentially weighted moving average.

    Seeds with the oldest value, folds the rest left to right, then applies
    one more step with ``current``. The update is written as
    ``y + alpha * (x - y)`` so a constant series stays exactly constant.

    Args:
        values: Historical values, oldest first
        current: Current raw value
        alpha: Weight of the newest sample (0 < alpha <= 1)

    Returns:
        Smoothed value (``current`` when there is no history)
    """
    if len(values) == 0:
        return float(current)

    smoothed = float(values[0])
    for value in values[1:]:
        smoothed = smoothed + alpha * (float(value) - smoothed)
    return smoothed + alpha * (float(current) - smoothed)


def moving_average(values: Sequence[float], window_size: int, current: float) -> float:
    """Arithmetic mean of the last ``window_size`` historical values."""
    window = _tail(values, window_size)
    if not window:
        return float(current)
    return float(np.mean(window))


def median_filter(values: Sequence[float], window_size: int, current: float) -> float:
    """Median of the last ``window_size`` historical values."""
    window = _tail(values, window_size)
    if not window:
        return float(current)
    return median(window)


def savgol_coefficients(window_size: int) -> np.ndarray:
    """Convolution coefficients for a window; uniform weights outside 3/5/7."""
    coefficients = SAVITZKY_GOLAY_COEFFICIENTS.get(window_size)
    if coefficients is None:
        return np.full(window_size, 1.0 / window_size)
    return np.asarray(coefficients, dtype=float)


def savitzky_golay(values: Sequence[float], window_size: int, current: float) -> float:
    """
    Savitzky-Golay style convolution over the last ``window_size`` values.

    The window shrinks to the available history; fewer than three samples
    returns ``current``.
    """
    window = _tail(values, window_size)
    if len(window) < 3:
        return float(current)
    return float(np.dot(np.asarray(window, dtype=float), savgol_coefficients(len(window))))


def kalman_step(
    measurement: float,
    prior: float | None = None,
    *,
    process_noise: float = KALMAN_PROCESS_NOISE,
    measurement_noise: float = KALMAN_MEASUREMENT_NOISE,
    covariance: float = KALMAN_INITIAL_COVARIANCE,
) -> KalmanEstimate:
    """
    One predict/update cycle of a scalar constant-value Kalman filter.

    Args:
        measurement: New observation
        prior: Previous filtered value; the measurement itself when None
        process_noise: q
        measurement_noise: r
        covariance: Error covariance before prediction

    Returns:
        KalmanEstimate with the updated value, covariance and gain
    """
    x = float(measurement) if prior is None else float(prior)
    p_predicted = covariance + process_noise
    gain = p_predicted / (p_predicted + measurement_noise)
    x = x + gain * (float(measurement) - x)
    return KalmanEstimate(value=x, covariance=(1 - gain) * p_predicted, gain=gain)


def adaptive_alpha(values: Sequence[float], alpha: float) -> float:
    """Scale ``alpha`` by ``1 + volatility`` of the last ten values, clamped."""
    _, volatility = mean_and_std(_tail(values, ADAPTIVE_VOLATILITY_WINDOW))
    return min(max(alpha * (1.0 + volatility), ADAPTIVE_ALPHA_MIN), ADAPTIVE_ALPHA_MAX)


def adaptive_ewma(values: Sequence[float], current: float, alpha: float) -> float:
    """EWMA with a volatility-adapted weight. Needs at least three values."""
    if len(values) < 3:
        return float(current)
    return ewma(values, current, adaptive_alpha(values, alpha))


def low_pass(values: Sequence[float], current: float, cutoff: float) -> float:
    """
    Discrete first-order RC low-pass filter.

    ``cutoff`` is used as the cutoff frequency in Hz at an assumed 1 Hz
    sampling rate: ``rc = 1 / (2π·cutoff)``, ``a = dt / (rc + dt)``.
    """
    if len(values) == 0 or cutoff <= 0:
        return float(current)
    rc = 1.0 / (2 * math.pi * cutoff)
    dt = 1.0 / LOW_PASS_SAMPLING_RATE_HZ
    filter_alpha = dt / (rc + dt)
    return filter_alpha * float(current) + (1 - filter_alpha) * float(values[-1])


# ============================================================================
# Signal utilities
# ============================================================================


def remove_outliers(values: Sequence[float], k_sigma: float = 3.0) -> list[float]:
    """
    Drop values further than ``k_sigma`` standard deviations from the mean.

    Fewer than four values are returned unchanged.
    """
    if len(values) < 4:
        return [float(v) for v in values]
    arr = np.asarray(values, dtype=float)
    mean, std = float(arr.mean()), float(arr.std())
    return [float(v) for v in arr[np.abs(arr - mean) <= k_sigma * std]]


def reduce_noise(value: float, reference_values: Sequence[float], noise_level: float) -> float:
    """
    Pull a value that strays more than ``3 × noise_level`` from the reference
    mean back to ``mean ± noise_level``.
    """
    if len(reference_values) == 0:
        return float(value)
    mean = float(np.mean(np.asarray(reference_values, dtype=float)))
    deviation = float(value) - mean
    if abs(deviation) > noise_level * 3:
        return mean + math.copysign(noise_level, deviation)
    return float(value)


def band_pass_weight(offset: int, low_freq: float, high_freq: float) -> float:
    """Gaussian weight for a sample ``offset`` positions from the centre."""
    distance = abs(offset)
    if distance == 0:
        return 1.0
    sigma = (high_freq - low_freq) / 2
    if sigma <= 0:
        return 0.0
    return math.exp(-(distance * distance) / (2 * sigma * sigma))


def band_pass_filter(signal: Sequence[float], low_freq: float, high_freq: float) -> list[float]:
    """
    Local Gaussian-weighted convolution over a ±5 sample window.

    Each output is the weighted sum of its neighbourhood divided by the number
    of samples in that neighbourhood (edges use a truncated window).
    """
    arr = np.asarray(signal, dtype=float)
    n = len(arr)
    offsets = np.arange(-BAND_PASS_HALF_WIDTH, BAND_PASS_HALF_WIDTH + 1)
    kernel = np.array([band_pass_weight(int(o), low_freq, high_freq) for o in offsets])

    filtered: list[float] = []
    for i in range(n):
        start = max(0, i - BAND_PASS_HALF_WIDTH)
        stop = min(n - 1, i + BAND_PASS_HALF_WIDTH)
        window = arr[start:stop + 1]
        weights = kernel[start - i + BAND_PASS_HALF_WIDTH: stop - i + BAND_PASS_HALF_WIDTH + 1]
        filtered.append(float(np.dot(window, weights)) / len(window))
    return filtered
