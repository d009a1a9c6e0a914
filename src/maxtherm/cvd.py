"""
Callendar-Van Dusen conversion for platinum RTDs plus the linear scaling used
by thermocouple channels.

    R(T) = R0 * (1 + A*T + B*T**2 + C*(T - 100)*T**3)

C only applies below 0 degC; above it the relation is a plain quadratic.
"""
from __future__ import annotations

import math
from typing import List

import numpy as np

from .errors import MathDomainError

R0 = 100.0
A = 3.9083e-3
B = -5.775e-7
C = -4.18301e-12

ADC_FULL_SCALE = 32768.0
MIN_TEMPERATURE_C = -200.0

_NEWTON_MAX_ITER = 50
_NEWTON_TOL = 1e-10


def rtd_resistance(code: int, reference_resistance: float) -> float:
    return (code * reference_resistance) / ADC_FULL_SCALE


def straight_line(code: int) -> float:
    return (code / 32) - 256


def linear_temperature(code: int, resolution: float) -> float:
    return code * resolution


def resistance_at(temperature: float, r0: float = R0) -> float:
    c = C if temperature < 0 else 0.0
    t = temperature
    return r0 * (1 + A * t + B * t * t + c * (t - 100.0) * t**3)


def solve_quadratic(resistance: float, r0: float = R0) -> float:
    """
    Positive root of ``B*R0*T**2 + A*R0*T + (R0 - R) = 0``.

    Raises MathDomainError when the discriminant is negative or the result is
    not finite; the value is never clamped.
    """
    discriminant = A * A * r0 * r0 - 4 * (B * r0) * (r0 - resistance)
    if not math.isfinite(discriminant):
        raise MathDomainError(f"Non-finite discriminant for R={resistance!r} ohm")
    if discriminant < 0:
        raise MathDomainError(
            f"Negative discriminant {discriminant:.6g} for R={resistance:.4f} ohm (R0={r0})"
        )
    temperature = (-(A * r0) + math.sqrt(discriminant)) / (2 * (B * r0))
    if not math.isfinite(temperature):
        raise MathDomainError(f"Non-finite temperature for R={resistance!r} ohm")
    return temperature


def quadratic_temperature(code: int, reference_resistance: float, r0: float = R0) -> float:
    """Quadratic solve; negative results fall back to the straight-line approximation."""
    resistance = rtd_resistance(code, reference_resistance)
    temperature = solve_quadratic(resistance, r0)
    if temperature < 0:
        return straight_line(code)
    return temperature


def _quartic_coefficients(resistance: float, r0: float) -> List[float]:
    return [C * r0, -100.0 * C * r0, B * r0, A * r0, r0 - resistance]


def _newton_refine(seed: float, resistance: float, r0: float) -> float:
    t = seed
    for _ in range(_NEWTON_MAX_ITER):
        value = r0 * (1 + A * t + B * t * t + C * (t - 100.0) * t**3) - resistance
        slope = r0 * (A + 2 * B * t + C * (4 * t**3 - 300.0 * t * t))
        if slope == 0 or not math.isfinite(slope):
            raise MathDomainError(f"Newton iteration stalled at T={t!r}")
        step = value / slope
        t -= step
        if abs(step) < _NEWTON_TOL:
            break
    return t


def solve_full_range(resistance: float, r0: float = R0) -> float:
    """
    Solve the full Callendar-Van Dusen relation over -200..850 degC.

    At or above R0 the C term vanishes and the quadratic root is exact. Below
    R0 the quartic is solved with numpy.roots, the real root nearest the
    quadratic estimate is selected and then polished with Newton-Raphson.
    """
    if not math.isfinite(resistance) or resistance <= 0:
        raise MathDomainError(f"Resistance must be positive, got {resistance!r}")
    seed = solve_quadratic(resistance, r0)
    if resistance >= r0:
        return seed

    roots = np.roots(_quartic_coefficients(resistance, r0))
    real_roots = [
        float(root.real)
        for root in roots
        if abs(root.imag) <= 1e-6 * max(1.0, abs(root.real))
        and MIN_TEMPERATURE_C - 1.0 <= root.real <= 0.0
    ]
    start = min(real_roots, key=lambda root: abs(root - seed)) if real_roots else seed
    temperature = _newton_refine(start, resistance, r0)
    if not math.isfinite(temperature):
        raise MathDomainError(f"Non-finite temperature for R={resistance!r} ohm")
    if temperature < MIN_TEMPERATURE_C - 1e-6 or temperature > 1e-9:
        raise MathDomainError(
            f"R={resistance:.4f} ohm has no root in {MIN_TEMPERATURE_C}..0 degC (got {temperature:.3f})"
        )
    return temperature


def full_range_temperature(code: int, reference_resistance: float, r0: float = R0) -> float:
    return solve_full_range(rtd_resistance(code, reference_resistance), r0)
