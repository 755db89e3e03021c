"""CLI entry point for the FAB replay engine."""

import argparse
import json
import logging
from pathlib import Path

from fabtrack.animation import AnimationController, ManualScheduler
from fabtrack.config import load_config
from fabtrack.ingest import load_season
from fabtrack.models import ALL_GROUPS, StatusScope
from fabtrack.timeline import build_season, conservation_gap
from fabtrack.view_filter import filter_view


def _add_view_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    p.add_argument("--group", default=ALL_GROUPS, help="Group id, or 'all' (default)")
    p.add_argument(
        "--status", default=StatusScope.ALL.value,
        choices=[s.value for s in StatusScope],
        help="Team status filter",
    )


def _parse_focus(value: str) -> tuple[str, int]:
    group_id, _, entity_id = value.rpartition(":")
    if not group_id or not entity_id.isdigit():
        raise argparse.ArgumentTypeError(f"--focus expects GROUP:ROSTER, got {value!r}")
    return group_id, int(entity_id)


def main() -> None:
    parser = argparse.ArgumentParser(description="FAB spending replay")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--data-dir", type=Path, default=None, help="Override snapshot directory")
    sub = parser.add_subparsers(dest="command")

    # timelines command
    timelines_parser = sub.add_parser("timelines", help="Print reconstructed timelines as JSON")
    _add_view_args(timelines_parser)

    # view command
    view_parser = sub.add_parser("view", help="List teams in chart order")
    _add_view_args(view_parser)

    # verify command
    verify_parser = sub.add_parser("verify", help="Check reconstructed spend against roster FAB")
    verify_parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    # render command
    render_parser = sub.add_parser("render", help="Render one chart frame to SVG or PNG")
    _add_view_args(render_parser)
    render_parser.add_argument("output", type=Path, help="Output file (.svg or .png)")
    render_parser.add_argument(
        "--progress", type=float, default=None,
        help="Replay progress 0..1 (default: finished chart)",
    )
    render_parser.add_argument("--focus", type=_parse_focus, default=None, help="Highlight a team, as GROUP:ROSTER")

    # replay command
    replay_parser = sub.add_parser("replay", help="Export the animated replay as a GIF")
    _add_view_args(replay_parser)
    replay_parser.add_argument("output", type=Path, help="Output .gif path")
    replay_parser.add_argument("--fps", type=int, default=None, help="Frames per second")
    replay_parser.add_argument("--focus", type=_parse_focus, default=None, help="Highlight a team, as GROUP:ROSTER")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return

    config = load_config(args.config)
    loaded = load_season(config, data_dir=args.data_dir)
    if not loaded.snapshots:
        print("No league data loaded. Check data_dir and season.group_ids in config.yaml")
        return

    if args.command == "timelines":
        timelines = filter_view(build_season(loaded.snapshots, config.season), args.group, args.status)
        print(json.dumps([t.model_dump() for t in timelines], indent=2))

    elif args.command == "view":
        timelines = filter_view(build_season(loaded.snapshots, config.season), args.group, args.status)
        if not timelines:
            print("No teams match the current filters.")
            return
        for t in timelines:
            status = f"chopped wk {t.eliminated_period}" if t.eliminated else "alive"
            print(f"  {t.display_name} [{t.group_id}:{t.entity_id}]: ${t.last_value:,.0f} ({status})")

    elif args.command == "verify":
        timelines = build_season(loaded.snapshots, config.season)
        mismatched = [(t, conservation_gap(t)) for t in timelines if abs(conservation_gap(t)) > 1e-9]
        print(f"{len(timelines)} teams checked, {len(mismatched)} mismatched")
        for t, gap in mismatched:
            print(f"  {t.display_name} [{t.group_id}:{t.entity_id}]: off by ${gap:,.2f}")

    elif args.command == "render":
        controller = AnimationController.create(loaded.snapshots, config, ManualScheduler())
        controller.on_filter_change(group_scope=args.group, status_scope=args.status)
        controller.set_focus(args.focus)
        if args.progress is not None and args.progress < 1.0:
            controller.resume(args.progress)
            controller.pause(at_progress=args.progress)
        frame = controller.current_frame()
        controller.dispose()

        if args.output.suffix.lower() == ".png":
            from fabtrack.output.raster import write_png
            write_png(frame, args.output)
        else:
            from fabtrack.output.svg import write_svg
            write_svg(frame, args.output)
        print(f"Output: {args.output}")

    elif args.command == "replay":
        from fabtrack.output.raster import export_replay_gif

        result = export_replay_gif(
            loaded.snapshots, config, args.output,
            group_scope=args.group,
            status_scope=args.status,
            focus=args.focus,
            fps=args.fps,
        )
        print(f"Output: {result.output_path} ({result.frame_count} frames)")

    else:
        parser.print_help()


if __name__ == "__main__":
    main()
