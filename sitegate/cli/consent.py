"""CLI subcommand: consent. Inspect and change the stored visitor consent.

  sitegate consent show
  sitegate consent grant [--analytics] [--advertising] [--no-functional] | --all
  sitegate consent withdraw
  sitegate consent permissions [--dnt VALUE] [--json] [CONFIG]

The store is a JSON file; see ``--store`` and SITEGATE_CONSENT_PATH.
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Any, Dict

from ..consent import (
    ConsentManager,
    JsonFileStorage,
    banner_required,
    consent_level,
    gdpr_profile,
    parse_do_not_track,
    runnable_services,
)
from ..errors import CLIError, ConfigError, format_error
from ..io.config import load_raw_config
from ..io.paths import consent_path
from ..validate import resolve_config
from ._config import discover_config_path, maybe_log_selected
from ._exit import OK, USER_ERR
from ._io import add_output_flags, eprint_once, print_json, print_table, set_verbosity

_HELP = "Inspect or change stored visitor consent"


def register(subparsers: argparse._SubParsersAction) -> None:
    sp = subparsers.add_parser("consent", help=_HELP, description=_HELP)
    sp.add_argument("--store", default=None, help="Consent store file (default: ./.sitegate/consent.json)")
    actions = sp.add_subparsers(dest="action", metavar="ACTION")
    actions.required = True

    show = actions.add_parser("show", help="Show the stored decision and its state")
    add_output_flags(show)
    show.set_defaults(func=_show)

    grant = actions.add_parser("grant", help="Record a consent decision")
    grant.add_argument("--analytics", action="store_true", help="allow analytics")
    grant.add_argument("--advertising", action="store_true", help="allow advertising and the social pixel")
    grant.add_argument("--no-functional", dest="functional", action="store_false",
                       help="refuse functional storage")
    grant.add_argument("--all", dest="accept_all", action="store_true", help="accept every category")
    add_output_flags(grant)
    grant.set_defaults(func=_grant)

    withdraw = actions.add_parser("withdraw", help="Withdraw analytics and advertising consent")
    add_output_flags(withdraw)
    withdraw.set_defaults(func=_withdraw)

    perms = actions.add_parser("permissions", help="Print which services may run for this visitor")
    perms.add_argument("path", nargs="?", default=None, help="Site config file (discovered when omitted)")
    perms.add_argument("--dnt", default=None, help="Do-Not-Track signal as sent by the browser (e.g. 1, yes)")
    add_output_flags(perms, table=False)
    perms.set_defaults(func=_permissions)

    sp.set_defaults(command="consent")


def _manager(ns: argparse.Namespace) -> ConsentManager:
    return ConsentManager(JsonFileStorage(consent_path(ns.store)))


def _emit_record(ns: argparse.Namespace, manager: ConsentManager) -> None:
    record = manager.current()
    payload: Dict[str, Any] = {
        "state": manager.state.name,
        "level": consent_level(record),
        "decided": manager.has_decision(),
        "record": record.to_dict(),
    }
    if ns.table:
        print_table([{"category": k, "granted": record.to_dict()[k]}
                     for k in ("analytics", "advertising", "functional")])
    elif ns.json:
        print_json(payload)
    else:
        print(f"state: {payload['state']} (level={payload['level']})")
        for k in ("analytics", "advertising", "functional"):
            print(f"  {k}: {'granted' if getattr(record, k) else 'denied'}")


def _show(ns: argparse.Namespace) -> int:
    set_verbosity(ns.verbose, ns.quiet)
    _emit_record(ns, _manager(ns))
    return OK


def _grant(ns: argparse.Namespace) -> int:
    set_verbosity(ns.verbose, ns.quiet)
    if ns.accept_all and (ns.analytics or ns.advertising or not ns.functional):
        raise CLIError("--all cannot be combined with per-category flags")
    manager = _manager(ns)
    if ns.accept_all:
        manager.accept_all()
    else:
        manager.grant(analytics=ns.analytics, advertising=ns.advertising, functional=ns.functional)
    _emit_record(ns, manager)
    return OK


def _withdraw(ns: argparse.Namespace) -> int:
    set_verbosity(ns.verbose, ns.quiet)
    manager = _manager(ns)
    manager.withdraw()
    _emit_record(ns, manager)
    return OK


def _permissions(ns: argparse.Namespace) -> int:
    set_verbosity(ns.verbose, ns.quiet)
    explicit = ns.path or getattr(ns, "config", None)
    path, source = discover_config_path(explicit, Path.cwd(), os.environ)
    maybe_log_selected(path, source, verbose=ns.verbose)
    raw: Dict[str, Any] = {}
    if path is not None:
        try:
            raw = load_raw_config(path)
        except ConfigError as e:
            eprint_once(f"error: {format_error(e)}")
            return USER_ERR
    cfg, _ = resolve_config(raw)

    manager = _manager(ns)
    dnt = parse_do_not_track(ns.dnt)
    permissions = manager.permissions(dnt, cfg)
    gdpr = gdpr_profile(cfg)
    payload: Dict[str, Any] = {
        "doNotTrack": dnt,
        "state": manager.state.name,
        "permissions": permissions.to_dict(),
        "services": runnable_services(permissions, cfg),
        "bannerRequired": banner_required(cfg, manager.current() if manager.has_decision() else None),
        "gdpr": {"requiresConsent": gdpr.requires_consent, "complianceLevel": gdpr.compliance_level},
    }
    if ns.json:
        print_json(payload)
        return OK

    print(f"state: {payload['state']} (dnt={'on' if dnt else 'off'})")
    print(f"banner: {'required' if payload['bannerRequired'] else 'not required'}")
    print(f"gdpr: {gdpr.compliance_level} (consent {'required' if gdpr.requires_consent else 'optional'})")
    print("services:")
    for name, runs in payload["services"].items():
        print(f"  {name}: {'runs' if runs else 'blocked'}")
    return OK
