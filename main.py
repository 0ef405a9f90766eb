"""
CLI entry point for tennis tracker.
"""
import argparse
import sys
from pathlib import Path

from tennis_tracker import (
    CompositeDetector, Exporter, FrameLoader, Pipeline, RoboflowDetector,
    InvalidInput, SerializationFailure, load_settings,
)
from tennis_tracker import config


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Tennis player/ball tracking and shot classification from sampled frames",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--frames", "-f",
        required=True,
        help="Directory of extracted frame images (sorted by filename)"
    )

    parser.add_argument(
        "--mode",
        choices=config.MODES,
        default=None,
        help="enhanced = one player, 2 fps; accurate = all players, 20 fps "
             "(default: the settings file's mode, else enhanced)"
    )

    parser.add_argument(
        "--fps",
        type=float,
        default=None,
        help="Sampling rate the frames were extracted at (default: mode rate)"
    )

    parser.add_argument(
        "--settings",
        default=None,
        help="JSON file with TrackerSettings overrides"
    )

    parser.add_argument(
        "--api-key",
        default=None,
        help="Roboflow API key (default: $ROBOFLOW_API_KEY)"
    )

    parser.add_argument(
        "--model",
        default=None,
        help="Primary Roboflow model id (default depends on mode)"
    )

    parser.add_argument(
        "--ball-model",
        default=config.BALL_ONLY_MODEL,
        help="Dedicated ball model id, enhanced mode only ('' to disable)"
    )

    parser.add_argument(
        "--output", "-o",
        default=str(config.RESULTS_DIR),
        help="Output directory for results"
    )

    parser.add_argument(
        "--name", "-n",
        default=None,
        help="Base name for output files (default: frame directory name)"
    )

    parser.add_argument(
        "--max-frames", "-m",
        type=int,
        default=None,
        help="Maximum frames to process (default: all)"
    )

    parser.add_argument(
        "--prefetch",
        type=int,
        default=config.PREFETCH_WORKERS,
        help="Detection calls kept in flight ahead of the tracker (0 = sequential)"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress progress bar and log lines"
    )

    return parser.parse_args(argv)


def build_detector(args, settings):
    """Roboflow backend(s) for the chosen mode."""
    if settings.multi_player:
        return RoboflowDetector(
            model_id=args.model or config.ACCURATE_MODEL,
            api_key=args.api_key,
            timeout=settings.detection_timeout_s,
        )
    primary = RoboflowDetector(
        model_id=args.model or config.PLAYER_BALL_MODEL,
        api_key=args.api_key,
        timeout=settings.detection_timeout_s,
    )
    if not args.ball_model:
        return primary
    ball = RoboflowDetector(
        model_id=args.ball_model,
        api_key=args.api_key,
        timeout=settings.detection_timeout_s,
    )
    return CompositeDetector(primary, ball, settings.ball_min_confidence)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    overrides = {"frame_rate": args.fps} if args.fps else {}
    try:
        settings = load_settings(args.settings, mode=args.mode, **overrides)
        loader = FrameLoader(args.frames, settings.frame_rate)
    except InvalidInput as e:
        print(f"Error: {e}")
        sys.exit(1)

    detector = build_detector(args, settings)
    pipeline = Pipeline(
        detector,
        settings=settings,
        prefetch=args.prefetch,
        show_progress=not args.quiet,
        verbose=not args.quiet,
    )

    name = args.name or Path(args.frames).resolve().name
    total = min(len(loader), args.max_frames) if args.max_frames else len(loader)
    print(f"Processing: {args.frames}  ({total} frames, mode={settings.mode}, "
          f"{settings.frame_rate:g} fps)")
    print(f"Output directory: {args.output}")

    try:
        result = pipeline.run(loader.frames(args.max_frames), total=total)
    except KeyboardInterrupt:
        print("\nProcessing interrupted by user.")
        pipeline.cancel()
        result = pipeline.result()
    except InvalidInput as e:
        print(f"Error: {e}")
        sys.exit(1)

    try:
        exporter = Exporter(args.output)
        exporter.export_json(result, f"{name}_analysis.json")
        exporter.export_frames(pipeline.frames, f"{name}_frames.jsonl")
    except SerializationFailure as e:
        print(f"Error: {e}")
        sys.exit(1)

    print("\n--- Processing Complete ---")
    print(f"Frames processed: {result.frames_processed}")
    print(f"Detection failures: {result.detection_failures}")
    print(f"Players tracked: {len(result.players)}")
    for tid, stats in sorted(result.players.items()):
        print(f"  Player {tid}: {stats.total_distance:.1f} m, "
              f"max {stats.max_speed:.1f} km/h, coverage {stats.court_coverage:.0f}%")
    print(f"Shots: {result.shots.total_shots}")
    for shot_type, count in result.shots.counts_by_type.items():
        if count:
            print(f"  {shot_type}: {count}")


if __name__ == "__main__":
    main()
