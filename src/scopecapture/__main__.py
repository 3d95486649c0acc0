"""CLI entry point for ScopeCapture."""

import argparse
import logging
import sys
from pathlib import Path

from scopecapture.capture import WaveformCapture
from scopecapture.config import CaptureConfig, load_config
from scopecapture.export import ExportFormat
from scopecapture.oscilloscope import CapturedWaveform, RigolDS1000Z
from scopecapture.plot import save_waveform_plot


def _capture_basename(waveform: CapturedWaveform, output_dir: Path) -> str:
    """Return a file stem for a capture that no existing output file uses."""
    stamp = waveform.capture_time.strftime("%Y-%m-%dT%H-%M-%S-%f")
    base = f"ch{waveform.channel_number}_{stamp}"
    candidate = base
    n = 1
    while any(output_dir.glob(f"{candidate}.*")) or any(
        output_dir.glob(f"{candidate}_preamble.*")
    ):
        candidate = f"{base}_{n}"
        n += 1
    return candidate


def _export_all(
    capture: WaveformCapture,
    waveform: CapturedWaveform,
    formats: list[ExportFormat],
    output_dir: Path,
) -> str:
    """Write one file per requested format for a captured waveform.

    Returns:
        The file stem shared by every file written for this capture
    """
    base = _capture_basename(waveform, output_dir)
    for fmt in formats:
        suffix = "_preamble" if fmt is ExportFormat.WITH_PREAMBLE else ""
        filename = output_dir / f"{base}{suffix}{fmt.file_extension}"
        if capture.export_waveform(waveform, filename, fmt):
            print(f"Saved {fmt.name} to {filename}")
        else:
            print(f"Warning: could not save {fmt.name} to {filename}")
    return base


def _parse_formats(names: list[str] | None) -> list[ExportFormat]:
    if not names:
        return [ExportFormat.CSV]
    return [ExportFormat.parse(name) for name in names]


def main() -> None:
    """Main entry point for ScopeCapture CLI."""
    parser = argparse.ArgumentParser(
        description="Capture and export waveforms from a Rigol DS1000Z oscilloscope"
    )
    parser.add_argument(
        "address",
        nargs="?",
        help="VISA address (e.g., TCPIP::192.168.1.100::INSTR). "
        "If not provided, auto-discovers via USB.",
    )
    parser.add_argument(
        "--channel",
        type=int,
        action="append",
        help="Channel to capture (repeatable, default: 1)",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=1,
        help="Number of captures per channel (default: 1)",
    )
    parser.add_argument(
        "--format",
        dest="formats",
        action="append",
        help="Export format: csv, json, matlab, raw, preamble (repeatable, default: csv)",
    )
    parser.add_argument("--output-dir", help="Directory for exported files")
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument(
        "--plot",
        action="store_true",
        help="Save a PNG plot of each captured waveform",
    )
    parser.add_argument(
        "--usb-save",
        metavar="NAME",
        help="Also save each channel to the scope's USB drive under NAME",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else CaptureConfig()
        formats = _parse_formats(args.formats)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(2)

    channels = args.channel or [1]
    output_dir = Path(args.output_dir or config.output_dir)

    try:
        if args.address:
            print(f"Connecting to {args.address}...")
            scope = RigolDS1000Z(args.address)
            scope.connect()
        else:
            print("Searching for Rigol DS1000Z oscilloscope...")
            scope = RigolDS1000Z.auto_connect()
    except ConnectionError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Connected to {scope.identify() or 'oscilloscope'}")
    output_dir.mkdir(parents=True, exist_ok=True)
    capture = WaveformCapture(scope, config)

    failures = 0
    try:
        for _ in range(args.count):
            for channel in channels:
                waveform = capture.capture_waveform(channel)
                if waveform is None:
                    print(f"Capture from channel {channel} failed")
                    failures += 1
                    continue
                print(f"Captured {waveform}")
                base = _export_all(capture, waveform, formats, output_dir)
                if args.plot:
                    plot_filename = output_dir / f"{base}.png"
                    save_waveform_plot(waveform, str(plot_filename))
                    print(f"Saved plot to {plot_filename}")

        if args.usb_save:
            for channel in channels:
                capture.save_waveform_to_usb(channel, f"{args.usb_save}_ch{channel}")

        print()
        print(capture.get_memory_status())
    except KeyboardInterrupt:
        print(f"\nCaptured {len(capture.list_stored_waveforms())} waveforms")
    finally:
        scope.disconnect()
        print("Disconnected")

    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
