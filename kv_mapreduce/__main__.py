#!/usr/bin/env python3
"""
Command-line listing of the built-in phase functions
"""

import argparse
import inspect
import sys

from .config import configure_logging
from .phases import PHASE_REGISTRY


def list_phases(kind=None):
    """Print the registered phase functions, optionally of one kind"""
    for name, (phase_kind, _) in sorted(PHASE_REGISTRY.items()):
        if kind is None or phase_kind.value == kind:
            print(f"{phase_kind.value:<7} {name}")


def describe_phase(name) -> int:
    """Print the kind, signature and documentation of one phase function"""
    if name not in PHASE_REGISTRY:
        print(f"Unknown phase function: {name}", file=sys.stderr)
        return 1
    kind, function = PHASE_REGISTRY[name]
    print(f"{name}{inspect.signature(function)}")
    print(f"Kind: {kind.value}")
    print(f"Reference: {function.__module__}:{function.__name__}")
    doc = inspect.getdoc(function)
    if doc:
        print()
        print(doc)
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Map/reduce phase functions")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List phase functions")
    list_parser.add_argument("--kind", choices=["map", "reduce"],
                             help="Only list phases of this kind")

    describe_parser = subparsers.add_parser("describe", help="Describe a phase function")
    describe_parser.add_argument("name", help="Phase function name")

    args = parser.parse_args(argv)
    configure_logging()

    if args.command == "list":
        list_phases(args.kind)
        return 0
    return describe_phase(args.name)


if __name__ == "__main__":
    sys.exit(main())
