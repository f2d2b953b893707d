from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from asset_sync import (
    AssetKind,
    SyncError,
    SyncOptions,
    SyncReport,
    ensure_initialized,
    synchronize,
)

from margo import __version__
from margo.bundled import load_bundled_catalog
from margo.config import (
    ConfigError,
    config_path,
    default_config_dir,
    init_config,
    load_config,
    open_in_editor,
)
from margo.templates import (
    TemplateError,
    copy_bundled_template,
    find_template,
    list_templates,
    load_template,
    new_template,
    save_template,
)

_REPORT_SECTIONS: tuple[tuple[str, str], ...] = (
    ("created", "created"),
    ("updated", "updated"),
    ("unchanged", "unchanged"),
    ("skipped_modified", "kept (modified by you)"),
    ("sidecar", "new version written alongside"),
)


def _enable_console_backslashreplace(stream: Any) -> None:
    """Configure stream error handling to backslash escapes when supported."""
    reconfigure = getattr(stream, "reconfigure", None)
    if not callable(reconfigure):
        return
    try:
        if str(getattr(stream, "errors", "")).lower() == "backslashreplace":
            return
        reconfigure(errors="backslashreplace")
    except (OSError, ValueError):
        return


def _configure_console_output() -> None:
    _enable_console_backslashreplace(sys.stdout)
    _enable_console_backslashreplace(sys.stderr)


_configure_console_output()


def _kind_arg(value: str) -> AssetKind:
    try:
        return AssetKind.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    """Build the margo CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="margo", description="Scaffold margot causal inference projects."
    )
    parser.add_argument("--version", action="version", version=f"margo {__version__}")
    parser.add_argument(
        "--config-dir",
        type=Path,
        help="Configuration directory (defaults to $MARGO_CONFIG_DIR or ~/.config/margo).",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    sync_p = sub.add_parser(
        "sync", help="Bring your template files up to date with the bundled defaults."
    )
    sync_p.add_argument(
        "--force",
        action="store_true",
        help="Overwrite templates even when you have modified them.",
    )
    sync_p.add_argument(
        "--sidecar",
        action="store_true",
        help="Write updated defaults to templates.new/ instead of skipping modified templates.",
    )
    sync_p.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without touching any file.",
    )
    sync_p.add_argument("--json", action="store_true", help="Print the report as JSON.")

    sub.add_parser(
        "init-templates",
        help="Seed empty template directories with the bundled defaults (first run).",
    )

    templates_p = sub.add_parser("templates", help="Manage baseline and outcome templates.")
    templates_sub = templates_p.add_subparsers(dest="templates_cmd", required=True)

    list_p = templates_sub.add_parser("list", help="List templates.")
    list_p.add_argument("kind", nargs="?", type=_kind_arg, help="baselines or outcomes.")

    show_p = templates_sub.add_parser("show", help="Print the variables of a template.")
    show_p.add_argument("name")

    new_p = templates_sub.add_parser("new", help="Create an empty template.")
    new_p.add_argument("kind", type=_kind_arg)
    new_p.add_argument("name")
    new_p.add_argument(
        "--open", action="store_true", help="Open the new template in your editor."
    )

    save_p = templates_sub.add_parser("save", help="Write a template from a list of variables.")
    save_p.add_argument("kind", type=_kind_arg)
    save_p.add_argument("name")
    save_p.add_argument("vars", nargs="+", metavar="VAR")

    copy_p = templates_sub.add_parser(
        "copy", help="Copy a bundled default into your templates without overwriting."
    )
    copy_p.add_argument("kind", type=_kind_arg)
    copy_p.add_argument("name")

    open_p = templates_sub.add_parser("open", help="Open a template in your editor.")
    open_p.add_argument("name")

    config_p = sub.add_parser("config", help="Show or create the margo configuration.")
    config_sub = config_p.add_subparsers(dest="config_cmd", required=True)
    config_sub.add_parser("show", help="Print the current configuration.")
    config_sub.add_parser("init", help="Write a starter config.toml.")
    config_sub.add_parser("path", help="Print the config file path.")

    return parser


def _resolve_config_dir(arg: Path | None) -> Path:
    if arg is not None:
        return arg.expanduser().resolve()
    return default_config_dir()


def _print_report(report: SyncReport, *, config_dir: Path, dry_run: bool) -> None:
    buckets = report.to_dict()
    if dry_run:
        print("dry run: no files were written")
    for key, label in _REPORT_SECTIONS:
        paths = buckets[key]
        if not paths:
            continue
        print(f"{label} ({len(paths)}):")
        for rel in paths:
            print(f"  {rel}")
    if report.skipped_modified:
        print(
            "Modified templates were left alone. Re-run with --sidecar to receive the new "
            "defaults under templates.new/, or --force to overwrite."
        )
    if report.sidecar:
        print(f"Compare the files under {config_dir / 'templates.new'} with your copies.")


def _cmd_sync(args: argparse.Namespace) -> int:
    config_dir = _resolve_config_dir(args.config_dir)
    options = SyncOptions(force=args.force, sidecar=args.sidecar, dry_run=args.dry_run)
    try:
        report = synchronize(load_bundled_catalog(), config_dir, options)
    except SyncError as e:
        if args.json:
            print(json.dumps(e.report.to_dict(), indent=2, ensure_ascii=False))
        else:
            _print_report(e.report, config_dir=config_dir, dry_run=options.dry_run)
        print(f"sync failed: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    else:
        _print_report(report, config_dir=config_dir, dry_run=options.dry_run)
    return 0


def _cmd_init_templates(args: argparse.Namespace) -> int:
    config_dir = _resolve_config_dir(args.config_dir)
    try:
        created = ensure_initialized(load_bundled_catalog(), config_dir)
    except SyncError as e:
        print(f"init failed: {e}", file=sys.stderr)
        return 1

    if not created:
        print(f"Templates already present in {config_dir}; nothing to do.")
        return 0
    for rel in created:
        print(f"  wrote {rel}")
    return 0


def _print_template_list(config_dir: Path, kind: AssetKind) -> None:
    names = list_templates(config_dir, kind)
    print(f"{kind.tag} ({len(names)})")
    if not names:
        print(f"  - none found in {config_dir / kind.tag}")
    for name in names:
        print(f"  - {name}")


def _cmd_templates_list(args: argparse.Namespace) -> int:
    config_dir = _resolve_config_dir(args.config_dir)
    kinds = [args.kind] if args.kind is not None else [AssetKind.OUTCOME, AssetKind.BASELINE]
    for kind in kinds:
        _print_template_list(config_dir, kind)
    return 0


def _cmd_templates_show(args: argparse.Namespace) -> int:
    config_dir = _resolve_config_dir(args.config_dir)
    found = find_template(config_dir, args.name)
    if found is None:
        print(f"template not found: {args.name}", file=sys.stderr)
        return 1
    kind, path = found
    template = load_template(config_dir, kind, args.name)
    print(f"{args.name} ({kind.tag}) {path}")
    if template is None:
        print("  (no variables)")
        return 0
    for var in template.vars:
        print(f"  {var}")
    return 0


def _cmd_templates_new(args: argparse.Namespace) -> int:
    config_dir = _resolve_config_dir(args.config_dir)
    path = new_template(config_dir, args.kind, args.name)
    print(str(path))
    if args.open:
        return open_in_editor(path, load_config(config_dir))
    return 0


def _cmd_templates_save(args: argparse.Namespace) -> int:
    config_dir = _resolve_config_dir(args.config_dir)
    path = save_template(config_dir, args.kind, args.name, args.vars)
    print(f"saved {len(args.vars)} variables to {path}")
    return 0


def _cmd_templates_copy(args: argparse.Namespace) -> int:
    config_dir = _resolve_config_dir(args.config_dir)
    path = copy_bundled_template(config_dir, args.kind, args.name)
    print(str(path))
    return 0


def _cmd_templates_open(args: argparse.Namespace) -> int:
    config_dir = _resolve_config_dir(args.config_dir)
    found = find_template(config_dir, args.name)
    if found is None:
        print(f"template not found: {args.name}", file=sys.stderr)
        print(f"  check {config_dir / 'outcomes'} or {config_dir / 'baselines'}", file=sys.stderr)
        return 1
    return open_in_editor(found[1], load_config(config_dir))


def _cmd_config_show(args: argparse.Namespace) -> int:
    config_dir = _resolve_config_dir(args.config_dir)
    cfg = load_config(config_dir)
    print(f"config file: {config_path(config_dir)}")
    print("[paths]")
    print(f"  pull_data = {cfg.pull_data or '(not set)'}")
    print(f"  push_mods = {cfg.push_mods or '(not set)'}")
    print("[defaults]")
    print(f"  baselines = {cfg.default_baselines}")
    print(f"  use_renv = {'true' if cfg.effective_use_renv else 'false'}")
    print("[theme]")
    print(f"  theme = {cfg.effective_theme}")
    return 0


def _cmd_config_init(args: argparse.Namespace) -> int:
    config_dir = _resolve_config_dir(args.config_dir)
    path = config_path(config_dir)
    if init_config(config_dir):
        print(f"created config at: {path}")
    else:
        print(f"config already exists at: {path}")
    return 0


def _cmd_config_path(args: argparse.Namespace) -> int:
    print(str(config_path(_resolve_config_dir(args.config_dir))))
    return 0


_TEMPLATES_COMMANDS = {
    "list": _cmd_templates_list,
    "show": _cmd_templates_show,
    "new": _cmd_templates_new,
    "save": _cmd_templates_save,
    "copy": _cmd_templates_copy,
    "open": _cmd_templates_open,
}

_CONFIG_COMMANDS = {
    "show": _cmd_config_show,
    "init": _cmd_config_init,
    "path": _cmd_config_path,
}


def _dispatch(args: argparse.Namespace) -> int:
    if args.cmd == "sync":
        return _cmd_sync(args)
    if args.cmd == "init-templates":
        return _cmd_init_templates(args)
    if args.cmd == "templates":
        handler = _TEMPLATES_COMMANDS.get(args.templates_cmd)
        return handler(args) if handler is not None else 2
    if args.cmd == "config":
        handler = _CONFIG_COMMANDS.get(args.config_cmd)
        return handler(args) if handler is not None else 2
    return 2


def main(argv: list[str] | None = None) -> None:
    """Run the CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        code = _dispatch(args)
    except (ConfigError, TemplateError) as e:
        print(str(e), file=sys.stderr)
        code = 1
    raise SystemExit(code)


if __name__ == "__main__":
    main()
