"""CLI entrypoints for the switop dashboard and its diagnostics tools."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

from switop_core import build_doctor_payload, load_config, save_config
from switop_core.config import AppConfig, config_path, normalize
from switop_core.logging_setup import configure_logging, install_crash_hooks
from switop_telemetry import compute_power, extract_all, tokenize


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _load(args: argparse.Namespace) -> AppConfig:
    return load_config(Path(args.config).expanduser() if args.config else None)


def cmd_run(args: argparse.Namespace) -> int:
    from .app import run_dashboard

    cfg = _load(args)
    if args.interval_ms is not None:
        cfg.telemetry.interval_ms = args.interval_ms
    if args.refresh_ms is not None:
        cfg.render.refresh_ms = args.refresh_ms
    if args.log_file:
        cfg.diagnostics.log_file = args.log_file
    normalize(cfg)

    log_file = Path(cfg.diagnostics.log_file).expanduser() if cfg.diagnostics.log_file else None
    configure_logging(log_file=log_file, level=cfg.diagnostics.log_level, keep_files=cfg.diagnostics.keep_log_files)
    install_crash_hooks()
    return run_dashboard(cfg)


def cmd_doctor(args: argparse.Namespace) -> int:
    configure_logging(console=False)
    _print_json(build_doctor_payload(_load(args)))
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    configure_logging(console=False)
    try:
        data = Path(args.sample).read_bytes()
    except OSError as exc:
        print(f"switop: cannot read sample {args.sample}: {exc.strerror or exc}", file=sys.stderr)
        return 1
    text = data.decode("utf-8", errors="replace")
    metrics = extract_all(text)
    power = compute_power(metrics["cpu_power"], metrics["gpu_power"], metrics["ane_power"])
    _print_json(
        {
            "metrics": {
                name: ({"value": m.value, "unit": m.unit.value} if m is not None else None)
                for name, m in metrics.items()
            },
            "power": asdict(power),
            "tokens": [{"label": t.label, "value": t.value, "unit": t.unit.value} for t in tokenize(text)],
        }
    )
    return 0


def cmd_config_init(args: argparse.Namespace) -> int:
    path = Path(args.config).expanduser() if args.config else config_path()
    if path.exists() and not args.force:
        _print_json({"written": False, "path": str(path), "reason": "exists"})
        return 1
    save_config(AppConfig(), path)
    _print_json({"written": True, "path": str(path)})
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="switop", description="Live hardware telemetry dashboard for the terminal")
    parser.add_argument("--config", default=None, help="Path to a JSON config file")
    parser.set_defaults(func=cmd_run, interval_ms=None, refresh_ms=None, log_file=None)
    sub = parser.add_subparsers(dest="command")

    # --config is also accepted after the subcommand.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=argparse.SUPPRESS, help="Path to a JSON config file")

    run_cmd = sub.add_parser("run", parents=[common], help="Run the dashboard until interrupted")
    run_cmd.add_argument("--interval-ms", type=int, default=None, help="Telemetry sampling interval")
    run_cmd.add_argument("--refresh-ms", type=int, default=None, help="Minimum time between redraws")
    run_cmd.add_argument("--log-file", default=None, help="Write JSON logs to this file")
    run_cmd.set_defaults(func=cmd_run)

    doctor_cmd = sub.add_parser("doctor", parents=[common], help="Print host info and effective config")
    doctor_cmd.set_defaults(func=cmd_doctor)

    parse_cmd = sub.add_parser("parse", parents=[common], help="Extract known metrics from a captured sample")
    parse_cmd.add_argument("sample", help="Path to captured telemetry text")
    parse_cmd.set_defaults(func=cmd_parse)

    config_cmd = sub.add_parser("config", help="Manage the config file")
    config_sub = config_cmd.add_subparsers(dest="config_cmd", required=True)
    init_cmd = config_sub.add_parser("init", parents=[common], help="Write the default config")
    init_cmd.add_argument("--force", action="store_true", help="Overwrite an existing file")
    init_cmd.set_defaults(func=cmd_config_init)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
