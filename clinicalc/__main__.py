"""Command line interface: ``python -m clinicalc <command>``."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Dict, List, Optional

from .compute import compute_all, describe
from .config import load_settings
from .errors import ClinicalcError
from .extract import extract_values
from .registry import default_registry
from .runner import build_runner


def _parse_pairs(pairs: List[str]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise SystemExit(f"expected key=value, got {pair!r}")
        values[key] = value
    return values


def _cmd_list(args, registry) -> int:
    for definition in registry:
        if args.family and args.family not in definition.tags:
            continue
        print(f"{definition.id:32s} {definition.label}")
    return 0


def _cmd_info(args, registry) -> int:
    print(describe(registry.lookup(args.calculator)))
    return 0


def _cmd_run(args, registry) -> int:
    runner = build_runner(registry=registry)
    verdict = asyncio.run(runner.run(args.calculator, _parse_pairs(args.inputs)))
    print(verdict.model_dump_json(by_alias=True, indent=2))
    return 0 if not verdict.blocked else 2


def _cmd_extract(args, registry) -> int:
    bag = extract_values(args.text)
    results = compute_all(registry, bag)
    payload = {
        "inputs": bag,
        "results": [{"id": r.id, "label": r.label, "value": r.display, "unit": r.unit, "notes": r.notes}
                    for r in results],
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="clinicalc", description="Clinical calculators with verification")
    parser.add_argument("--log-level", default=None,
                        help="Logging level (default: CLINICALC_LOG_LEVEL or WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List registered calculators")
    p_list.add_argument("--family", default=None, help="Only calculators tagged with this family")
    p_list.set_defaults(func=_cmd_list)

    p_info = sub.add_parser("info", help="Describe a calculator's inputs")
    p_info.add_argument("calculator")
    p_info.set_defaults(func=_cmd_info)

    p_run = sub.add_parser("run", help="Run and verify a calculator")
    p_run.add_argument("calculator")
    p_run.add_argument("inputs", nargs="*", help="key=value pairs, e.g. fio2=0.4 'pao2=8 kPa'")
    p_run.set_defaults(func=_cmd_run)

    p_extract = sub.add_parser("extract", help="Scrape values from text and compute what is possible")
    p_extract.add_argument("text")
    p_extract.set_defaults(func=_cmd_extract)

    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ClinicalcError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    logging.basicConfig(level=(args.log_level or settings.log_level).upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args, default_registry())
    except ClinicalcError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
