#!/usr/bin/env python3
"""
demo_cli.py — Standalone command-line demo
============================================
Replays a synthetic ECG + PPG recording through the monitor WITHOUT the
FastAPI server or any sensor hardware.  Useful for quick testing, demos,
and debugging.

Usage:
    python demo_cli.py --age 35 --gender male --height 175 --heart-rate 72 --ptt 180
    python demo_cli.py --calibrate 120/80@200 --calibrate 110/75@250 --ptt 220

Each `--calibrate SYS/DIA@PTT` replays a short recording at that transit
time and stores the cuff reading against the PTT the monitor measured.
Two or more reference points replace the population-default model with a
per-user least-squares fit.

⚠️  DISCLAIMER: This is a WELLNESS ESTIMATION tool — NOT a medical device.
"""

import argparse
import sys

from dsp.synthetic import PPGSample, generate_session, interleave
from model.analysis import assess_hrv, assess_pwv, interpret_bp_reading, pulse_pressure
from model.bp_monitor import BloodPressureMonitor
from utils.logger import get_logger

logger = get_logger("demo_cli")


def pretty_print(label: str, value, unit: str = "") -> None:
    """Colourised terminal output."""
    print(f"  \033[1;36m{label:<28}\033[0m \033[1;33m{value}\033[0m {unit}")


def _parse_reference(text: str) -> tuple[float, float, float]:
    """'120/80@200' → (120.0, 80.0, 200.0)"""
    try:
        bp, ptt = text.split("@")
        systolic, diastolic = (float(part) for part in bp.split("/"))
        return systolic, diastolic, float(ptt)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected SYS/DIA@PTT, e.g. 120/80@200 — got '{text}'.")


class _ReplayClock:
    """Monitor clock that follows the replayed sample timestamps."""

    def __init__(self):
        self.now = 0

    def __call__(self) -> int:
        return self.now


def replay(monitor: BloodPressureMonitor, clock: _ReplayClock, args, ptt_ms: float, seed: int) -> None:
    ecg, ppg = generate_session(
        heart_rate_bpm=args.heart_rate,
        ptt_ms=ptt_ms,
        duration_ms=args.duration * 1000,
        jitter_ms=args.jitter,
        noise_std=args.noise,
        seed=seed,
    )
    for sample in interleave(ecg, ppg):
        clock.now = sample.timestamp
        if isinstance(sample, PPGSample):
            monitor.add_ppg_sample(sample.ir, sample.red, sample.timestamp)
        else:
            monitor.add_ecg_sample(sample.value, sample.timestamp)


def main():
    parser = argparse.ArgumentParser(description="PTT Blood Pressure CLI Demo")
    parser.add_argument("--age", type=int, default=30, help="Age (years)")
    parser.add_argument("--gender", type=str, default="male", choices=["male", "female", "other"])
    parser.add_argument("--height", type=float, default=170.0, help="Height (cm)")
    parser.add_argument("--heart-rate", type=float, default=75.0, help="Synthetic heart rate (BPM)")
    parser.add_argument("--ptt", type=float, default=200.0, help="Synthetic pulse transit time (ms)")
    parser.add_argument("--duration", type=int, default=15, help="Recording length (seconds)")
    parser.add_argument("--jitter", type=float, default=15.0, help="Beat-to-beat jitter stddev (ms)")
    parser.add_argument("--noise", type=float, default=10.0, help="Additive noise stddev (ECG units)")
    parser.add_argument("--calibrate", type=_parse_reference, action="append", default=[],
                        metavar="SYS/DIA@PTT",
                        help="Reference cuff reading and the PTT of its recording (repeatable)")
    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("  PTT BLOOD PRESSURE ESTIMATION — CLI DEMO")
    print("=" * 60)
    print("  ⚠️  This is a WELLNESS ESTIMATION tool — NOT medical grade.")
    print("=" * 60 + "\n")

    clock = _ReplayClock()
    monitor = BloodPressureMonitor(clock=clock)
    if not monitor.begin():
        print("ERROR: Monitor self-test failed. Exiting.")
        sys.exit(1)
    monitor.set_personal_parameters(args.age, args.height, args.gender == "male")

    print(f"  Heart rate   : {args.heart_rate:.0f} BPM")
    print(f"  PTT          : {args.ptt:.0f} ms")
    print(f"  Duration     : {args.duration} s")
    print(f"  Demographics : age={args.age}, gender={args.gender}, height={args.height}cm\n")

    # ── Optional calibration recordings ──────────────────────────────────
    for i, (systolic, diastolic, cal_ptt) in enumerate(args.calibrate):
        replay(monitor, clock, args, cal_ptt, seed=7 + i)
        if monitor.add_calibration_point(systolic, diastolic):
            print(f"  Calibration point stored at PTT≈{cal_ptt:.0f} ms "
                  f"({systolic:.0f}/{diastolic:.0f} mmHg).")
        else:
            print("  ⚠️  Calibration rejected — no valid PTT or store full.")
        monitor.reset()

    # ── Measurement recording ────────────────────────────────────────────
    replay(monitor, clock, args, args.ptt, seed=42)

    print("\n  " + monitor.get_system_status() + "\n")
    if not monitor.is_ready_for_measurement():
        print("  ⚠️  Monitor not ready — the estimate below will be flagged invalid.\n")

    reading = monitor.calculate_blood_pressure()

    # ── Pretty-print results ─────────────────────────────────────────────
    print("=" * 60)
    print("  RESULTS")
    print("=" * 60)

    print("\n  ── Blood Pressure (ESTIMATED) ──")
    pretty_print("Systolic", f"{reading.systolic:.1f}", "mmHg")
    pretty_print("Diastolic", f"{reading.diastolic:.1f}", "mmHg")
    pretty_print("Mean arterial pressure", f"{reading.mean_arterial_pressure:.1f}", "mmHg")
    pretty_print("Pulse pressure", f"{pulse_pressure(reading.systolic, reading.diastolic):.1f}", "mmHg")
    if reading.valid:
        pretty_print("Category", interpret_bp_reading(reading.systolic, reading.diastolic))

    print("\n  ── Pulse Transit ──")
    pretty_print("PTT", f"{reading.pulse_transit_time:.1f}", "ms")
    pretty_print("PWV", f"{reading.pulse_wave_velocity:.2f}", "m/s")
    pretty_print("  Arterial stiffness", assess_pwv(reading.pulse_wave_velocity))

    print("\n  ── Heart Rate / HRV ──")
    pretty_print("Heart rate", f"{reading.heart_rate:.1f}", "BPM")
    pretty_print("RMSSD", f"{reading.heart_rate_variability:.1f}", "ms")
    pretty_print("  HRV", assess_hrv(reading.heart_rate_variability))
    pretty_print("Rhythm", "regular" if reading.rhythm_regular else "irregular")

    print("\n  ── Quality ──")
    pretty_print("Signal quality", f"{reading.signal_quality:.0f}", "/ 100")
    pretty_print("ECG↔PPG correlation", reading.correlation, "/ 100")
    pretty_print("Valid", reading.valid)
    pretty_print("Needs calibration", reading.needs_calibration)

    print("\n" + "=" * 60)
    print("  ⚠️  DISCLAIMER: All values above are ESTIMATES.")
    print("      Do NOT use for medical diagnosis or treatment.")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    main()
