"""CLI subcommand: validate. Resolve a site config and report diagnostics.

Exit codes:
  0 = OK (warnings are printed but do not fail)
  1 = error diagnostics (or any warning with --strict)
  2 = config missing, unreadable or unparsable
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path

from ..errors import ConfigError, format_error
from ..formats import VALIDATORS
from ..io.config import load_raw_config
from ..validate import has_errors, resolve_config
from ._config import discover_config_path, maybe_log_selected
from ._exit import FAILED, OK, USER_ERR
from ._io import add_output_flags, eprint_once, print_json, print_table, set_verbosity

_HELP = "Validate a site configuration"


def register(subparsers: argparse._SubParsersAction) -> None:
    sp = subparsers.add_parser("validate", help=_HELP, description=_HELP)
    sp.add_argument("path", nargs="?", default=None,
                    help="Config file (YAML, JSON or TOML). Use '-' for STDIN. Discovered when omitted.")
    sp.add_argument("--strict", action="store_true",
                    help="Treat warnings as errors (non-zero exit if warnings present).")
    sp.add_argument("--lint-keys", action="store_true",
                    help="Also warn about unrecognized keys inside service sections.")
    add_output_flags(sp)
    sp.set_defaults(command="validate", func=_run)


def _run(ns: argparse.Namespace) -> int:
    set_verbosity(ns.verbose, ns.quiet)

    explicit = ns.path or getattr(ns, "config", None)
    if explicit == "-":
        path, source = Path("-"), "stdin"
    else:
        path, source = discover_config_path(explicit, Path.cwd(), os.environ)
    maybe_log_selected(path, source, verbose=ns.verbose)
    if path is None:
        eprint_once("error: no config file found; pass a path or set SITEGATE_CONFIG")
        return USER_ERR

    try:
        raw = load_raw_config(path)
    except ConfigError as e:
        eprint_once(f"error: {format_error(e)}")
        return USER_ERR

    cfg, diagnostics = resolve_config(raw, lint_keys=ns.lint_keys)
    warnings = [d for d in diagnostics if d.severity == "warning"]
    failed = has_errors(diagnostics) or (ns.strict and bool(warnings))

    if ns.json:
        print_json({
            "ok": not failed,
            "path": str(path),
            "diagnostics": [d.to_dict() for d in diagnostics],
            "config": cfg.to_dict(),
        })
        return FAILED if failed else OK

    if ns.table:
        print_table(
            [d.to_dict() for d in diagnostics],
            headers=["severity", "code", "field", "message"],
        )
        return FAILED if failed else OK

    if has_errors(diagnostics):
        print("CONFIG INVALID")
    elif failed:
        print("CONFIG WARNINGS (treated as errors due to --strict)")
    else:
        print("OK")
    for d in diagnostics:
        print(f"{d.severity}: {d.code} [{d.field}] {d.message}")
    return FAILED if failed else OK


def register_check_id(subparsers: argparse._SubParsersAction) -> None:
    sp = subparsers.add_parser(
        "check-id",
        help="Check a single service ID against its expected format",
        description="Check a single service ID against its expected format",
    )
    sp.add_argument("service", choices=sorted(VALIDATORS))
    sp.add_argument("value")
    add_output_flags(sp, table=False)
    sp.set_defaults(command="check-id", func=_run_check_id)


def _run_check_id(ns: argparse.Namespace) -> int:
    set_verbosity(ns.verbose, ns.quiet)
    valid = VALIDATORS[ns.service](ns.value)
    if ns.json:
        print_json({"service": ns.service, "value": ns.value, "valid": valid})
    else:
        print("valid" if valid else "invalid")
    return OK if valid else FAILED
