#!/usr/bin/env python3
"""
Generate C code from modulator and PSoC configurations, and import PWM phases
from ModusToolbox design files.

Usage:
    modcat modulator <modulators.yaml> [-o DIR]
    modcat psoc <psoc.yaml> [-o DIR]
    modcat import <design.modus> [-o modulators.yaml] [--name NAME]
"""
import argparse
import logging
import sys
from pathlib import Path

from . import config
from .generators.c import modulator, psoc
from .model import Modulator
from .parsers import modus

log = logging.getLogger(__name__)


def writeResult(result, outdir:Path):
    """ Write the generated file pair, or report the failure """
    if not result.success:
        print(f"Error: {result.error_message}", file=sys.stderr)
        return 1
    outdir.mkdir(parents=True, exist_ok=True)
    for name, text in ((result.header_file_name, result.header), (result.source_file_name, result.source)):
        path = outdir / name
        path.write_text(text, encoding='utf-8')
        print(f"Wrote {path}")
    return 0


def cmdModulator(args):
    modulators = config.loadModulators(args.config)
    log.info("loaded %d modulators from %s", len(modulators), args.config)
    return writeResult(modulator.generate(modulators), args.output)

def cmdPsoc(args):
    cfg = config.loadPsocConfiguration(args.config)
    return writeResult(psoc.generate(cfg), args.output)

def cmdImport(args):
    result = modus.parseFile(args.design)
    if not result.success:
        print(f"Error: {result.error_message}", file=sys.stderr)
        return 1
    log.info("imported %d phases from %s", len(result.phases), args.design)
    comment = f"# Imported from {args.design.name}"
    config.dumpModulators([Modulator(id=1, name=args.name, phases=result.phases)], args.output, comment)
    if args.output:
        print(f"Wrote {args.output}")
    return 0


def main(argv=None):
    ap = argparse.ArgumentParser(prog='modcat', description=__doc__.strip().splitlines()[0])
    ap.add_argument("-v", "--verbose", action="store_true", help="Log debug information")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("modulator", help="Generate the modulator driver")
    p.add_argument("config", type=Path, help="Modulator configuration (YAML)")
    p.add_argument("-o", "--output", type=Path, default=Path("."), help="Output directory")
    p.set_defaults(func=cmdModulator)

    p = sub.add_parser("psoc", help="Generate the peripheral configuration")
    p.add_argument("config", type=Path, help="PSoC configuration (YAML)")
    p.add_argument("-o", "--output", type=Path, default=Path("."), help="Output directory")
    p.set_defaults(func=cmdPsoc)

    p = sub.add_parser("import", help="Import PWM phases from a design file")
    p.add_argument("design", type=Path, help="ModusToolbox design file (.modus)")
    p.add_argument("-o", "--output", type=Path, help="Modulator configuration to write, stdout if omitted")
    p.add_argument("--name", default="Modulator", help="Name of the modulator receiving the phases")
    p.set_defaults(func=cmdImport)

    args = ap.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="[%(levelname)s] %(name)s: %(message)s")
    try:
        return args.func(args)
    except (config.ConfigError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
