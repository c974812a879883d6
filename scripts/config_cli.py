#!/usr/bin/env python3
"""
Inspect and edit configuration overrides from the command line.

Usage:
    python scripts/config_cli.py show povertyThresholds
    python scripts/config_cli.py history povertyThresholds
    python scripts/config_cli.py set-poverty-threshold 15000 --year 2024 \\
        --source PSA --description "Family of 5" --note "raised threshold"
    python scripts/config_cli.py reset povertyThresholds
    python scripts/config_cli.py classify 500

The database comes from the settings file (--settings or
$SITIO_SETTINGS_FILE) or $SITIO_DATABASE_URL.  Without one, an in-memory
store is used and nothing outlives the process.
"""

import argparse
import json
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from sitio_config import build_config_stores, build_persistence, load_settings
from sitio_kernel.domain.income import (
    classify_daily,
    cluster_label,
    range_label,
    threshold_description,
)
from sitio_kernel.domain.schemas import ConfigDomain, PovertyThresholdsConfig
from sitio_kernel.exceptions import ConfigKernelError
from sitio_kernel.logging_config import configure_logging
from sitio_kernel.services.authorization import RoleBasedAuthorizer, UserRole
from sitio_kernel.services.config_store import ConfigWriteResult, describe_entry


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Sitio configuration overrides")
    p.add_argument("--settings", type=Path, default=None, help="YAML settings file")
    p.add_argument("--actor", default="cli", help="Name recorded in audit entries")
    p.add_argument(
        "--role",
        choices=[r.value for r in UserRole],
        default=UserRole.ADMIN.value,
        help="Role used for write authorization",
    )
    domains = [d.value for d in ConfigDomain]
    sub = p.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Print effective value, default and override state")
    show.add_argument("domain", choices=domains)

    history = sub.add_parser("history", help="Print the change audit of a domain")
    history.add_argument("domain", choices=domains)

    reset = sub.add_parser("reset", help="Remove the override of a domain")
    reset.add_argument("domain", choices=domains)
    reset.add_argument("--note", default=None)

    threshold = sub.add_parser("set-poverty-threshold", help="Override the poverty threshold")
    threshold.add_argument("monthly", type=Decimal)
    threshold.add_argument("--year", type=int, required=True)
    threshold.add_argument("--source", required=True)
    threshold.add_argument("--description", required=True)
    threshold.add_argument("--note", default=None)

    classify = sub.add_parser("classify", help="Income cluster of a daily income")
    classify.add_argument("daily_income", type=Decimal)

    return p.parse_args(argv)


def _report(result: ConfigWriteResult) -> int:
    if not result.is_success:
        print(f"{result.status.value}: {result.error}", file=sys.stderr)
        return 1
    entry = result.audit_entry
    if entry is None:
        print(f"{result.domain}: {result.status.value}")
    else:
        print(f"{result.domain}: {result.status.value} (seq {entry.seq}, note: {entry.note})")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = load_settings(args.settings)
    configure_logging(level=settings.log_level)

    stores = build_config_stores(
        build_persistence(settings),
        RoleBasedAuthorizer(args.role, args.actor),
        defaults_dir=settings.defaults_dir,
    )

    try:
        if args.command == "show":
            print(json.dumps(describe_entry(stores.get(args.domain)), indent=2, ensure_ascii=False))
        elif args.command == "history":
            for entry in stores.audit.history(args.domain):
                kind = "reset" if entry.reverted_to_default else "save"
                print(
                    f"{entry.seq:>4}  {entry.timestamp.isoformat()}  {kind:<5}  "
                    f"{entry.actor or '-'}  {entry.note}"
                )
        elif args.command == "reset":
            return _report(stores.get(args.domain).reset(args.note))
        elif args.command == "set-poverty-threshold":
            candidate = PovertyThresholdsConfig(
                monthly_threshold=args.monthly,
                reference_year=args.year,
                source=args.source,
                description=args.description,
            )
            return _report(stores.poverty_thresholds.save(candidate, args.note))
        elif args.command == "classify":
            thresholds = stores.poverty_thresholds.get()
            cluster = classify_daily(args.daily_income, thresholds)
            print(f"{cluster_label(cluster)} ({range_label(cluster, thresholds)})")
            print(threshold_description(thresholds))
    except ConfigKernelError as exc:
        print(f"Error [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
