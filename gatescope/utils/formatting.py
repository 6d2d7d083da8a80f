"""
Formatting functions for display.

Converts numeric values into readable strings.
"""

import math


def format_frequency(hz: float) -> str:
    """
    Format frequency in readable form.

    Args:
        hz: Frequency in Hz

    Returns:
        Formatted string (e.g. "1.5 kHz" or "250 Hz")
    """
    if hz >= 1000:
        return f"{hz/1000:.1f} kHz"
    else:
        return f"{hz:.0f} Hz"


def format_db(db: float, precision: int = 1) -> str:
    """
    Format dB value.

    Args:
        db: Level in dB
        precision: Decimal places

    Returns:
        Formatted string (e.g. "-12.3 dB")
    """
    if db == float('-inf'):
        return "-∞ dB"
    return f"{db:.{precision}f} dB"


def format_voltage(volts: float) -> str:
    """
    Format a voltage with a unit prefix.

    Returns:
        Formatted string (e.g. "1.250 V", "12.5 mV", "830 µV")
    """
    if not math.isfinite(volts):
        return f"{volts} V"
    magnitude = abs(volts)
    if magnitude >= 1 or magnitude == 0:
        return f"{volts:.3f} V"
    elif magnitude >= 1e-3:
        return f"{volts * 1e3:.1f} mV"
    else:
        return f"{volts * 1e6:.0f} µV"


def format_sample_rate(sr: float) -> str:
    """
    Format sample rate.

    Args:
        sr: Sample rate in Hz

    Returns:
        Formatted string (e.g. "10 kHz" or "44.1 kHz")
    """
    if sr >= 1000:
        if sr % 1000 == 0:
            return f"{int(sr) // 1000} kHz"
        return f"{sr / 1000:.1f} kHz"
    return f"{sr:g} Hz"
