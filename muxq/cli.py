# muxq/cli.py
import argparse
import json
import logging
import sys
from pathlib import Path

from PySide6.QtCore import Qt

from .models.job import JobStatus, ProgressEvent
from .models.request import request_from_dict
from .utils.paths import scan_media
from .utils.settings import load_settings
from .workers.info_probe import probe_container
from .workers.scheduler import MuxScheduler

log = logging.getLogger("muxq")


def _load_request(path: str, config: Path | None):
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    app = load_settings(config)
    settings, jobs = request_from_dict(data, app)
    return app, settings, jobs


def _print_event(ev: ProgressEvent):
    if ev.status is JobStatus.ERROR:
        print(f"[{ev.job_id}] ERROR {ev.message}: {ev.error_detail}", file=sys.stderr)
    elif ev.status is JobStatus.COMPLETED:
        print(f"[{ev.job_id}] {ev.message} ({ev.final_size_bytes} bytes)")
    elif ev.message:
        print(f"[{ev.job_id}] {ev.message}")


def cmd_run(args) -> int:
    app, settings, jobs = _load_request(args.request, args.config)
    if not jobs:
        log.error("request has no jobs")
        return 2
    scheduler = MuxScheduler(Path(app["log_path"]))
    failed: list[str] = []

    def on_event(ev: ProgressEvent):
        if ev.status is JobStatus.ERROR:
            failed.append(ev.job_id)
        _print_event(ev)

    # events arrive on worker threads; there is no Qt event loop here
    scheduler.progress.connect(on_event, Qt.ConnectionType.DirectConnection)
    if args.verbose:
        scheduler.log_line.connect(lambda job_id, line: print(f"[{job_id}] {line}"), Qt.ConnectionType.DirectConnection)
    scheduler.start(jobs, settings)
    try:
        while not scheduler.wait(0.5):
            if failed and scheduler.is_stalled():
                # abort_on_errors paused the queue and nobody can resume it here
                log.error("stopping after failed job %s", failed[-1])
                scheduler.stop()
                scheduler.wait()
                return 1
    except KeyboardInterrupt:
        scheduler.stop()
        scheduler.wait()
        return 130
    return 1 if failed else 0


def cmd_preview(args) -> int:
    app, settings, jobs = _load_request(args.request, args.config)
    scheduler = MuxScheduler(Path(app["log_path"]))
    for result in scheduler.preview(jobs, settings):
        print(f"# {result.job_id} -> {result.plan.output}")
        for w in result.warnings:
            print(f"# warning: {w}")
        print(result.command_line)
    return 0


def cmd_scan(args) -> int:
    for p in scan_media(Path(args.folder), args.ext or [], args.recursive):
        print(p)
    return 0


def cmd_probe(args) -> int:
    app = load_settings(args.config)
    if (info := probe_container(args.file, app["mkvmerge_path"])) is None:
        log.error("could not probe %s", args.file)
        return 1
    print(f"{info.path}  duration={info.duration or '?'} fps={info.fps or '?'}")
    for t in info.tracks:
        print(f"  {t.index}: {t.kind.value:<8} {t.codec or '':<24} lang={t.language or '-'} "
              f"default={t.is_default} forced={t.is_forced} name={t.name or ''}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="muxq", description="Batch remux queue for mkvmerge")
    parser.add_argument("--config", type=Path, help="settings JSON (default: muxq_settings.json)")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("run", help="mux every job of a request file")
    p.add_argument("request")
    p.set_defaults(func=cmd_run)

    p = sub.add_parser("preview", help="print the mkvmerge command of every job")
    p.add_argument("request")
    p.set_defaults(func=cmd_preview)

    p = sub.add_parser("scan", help="list media files in a folder")
    p.add_argument("folder")
    p.add_argument("--ext", action="append", help="extension to include (repeatable)")
    p.add_argument("-r", "--recursive", action="store_true")
    p.set_defaults(func=cmd_scan)

    p = sub.add_parser("probe", help="show the tracks mkvmerge reports for a file")
    p.add_argument("file")
    p.set_defaults(func=cmd_probe)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (OSError, ValueError, KeyError) as e:
        log.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
