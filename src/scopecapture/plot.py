"""Waveform preview plots for ScopeCapture."""

from __future__ import annotations

import matplotlib.pyplot as plt

from scopecapture.waveform_data import CapturedWaveform

# Rigol DS1000Z channel colors (darkened for visibility)
CHANNEL_COLORS = {1: "#D4AA00", 2: "#00CCCC", 3: "#CC00CC", 4: "#0055CC"}


def save_waveform_plot(waveform: CapturedWaveform, filename: str) -> None:
    """Save a plot of a captured waveform to an image file.

    Args:
        waveform: CapturedWaveform to plot
        filename: Path to the output image file (e.g., .png)
    """
    # Convert times to milliseconds for readability
    times_ms = [t * 1000 for t in waveform.time_data]

    fig, ax = plt.subplots(figsize=(12, 4))
    ax.plot(
        times_ms,
        waveform.voltage_data,
        linewidth=0.5,
        color=CHANNEL_COLORS.get(waveform.channel_number),
        label=f"CH{waveform.channel_number}",
    )
    ax.set_xlabel("Time (ms)")
    ax.set_ylabel("Voltage (V)")
    ax.set_title(waveform.description)
    ax.grid(True, alpha=0.3)
    ax.axhline(y=0, color="k", linewidth=0.5)
    ax.legend(loc="upper right")

    fig.tight_layout()
    fig.savefig(filename, dpi=150)
    plt.close(fig)
