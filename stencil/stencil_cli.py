from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import BinaryIO, Mapping, Optional, Sequence, TextIO

from stencil.stencil_config import ConfigMerger, MergeRequest, ParseConfig, search_path
from stencil.stencil_datatypes import NoSourceSpecified, SourceConflict, StencilError, UsageError
from stencil.stencil_engine import Engine
from stencil.stencil_runtime import ScriptRunner
from stencil.stencil_source import Source
from stencil.stencil_stdin import StdinClaim

DEBUG_ENV = "STENCIL_DEBUG"

USAGE = ("%(prog)s [-d] [-l] [-r] [-S] [-e '[prefix=]{\"var\": ...}'] [-E [prefix=]env.json] "
         "[-m module] {-i <file> | -s \"template...\" | <file>}")

# getopt-style: these always take the next word as their value.
_VALUE_OPTIONS = "iseEm"
_FLAG_OPTIONS = "hdlrS"


class _Ordered(argparse.Action):
    """Records the option in command-line order; nothing is opened yet."""

    def __call__(self, parser, namespace, values, option_string=None):
        ops = getattr(namespace, "ops", None)
        if ops is None:
            ops = []
            setattr(namespace, "ops", ops)
        ops.append((self.dest, values))


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(f"{self.prog}: {message}")


def attach_option_values(argv: Sequence[str]) -> list:
    """Glues a dash-leading value onto its option ('-s', '-x' -> '-s-x').

    argparse refuses values that look like options; getopt does not.
    """
    out = []
    it = iter(argv)
    for arg in it:
        out.append(arg)
        if arg == "--":
            out.extend(it)
            break
        if len(arg) < 2 or arg[0] != "-" or arg[1] == "-":
            continue
        for i, ch in enumerate(arg[1:], 1):
            if ch in _VALUE_OPTIONS:
                if i == len(arg) - 1:
                    value = next(it, None)
                    if value is None:
                        break
                    if value.startswith("-") and value != "-":
                        out[-1] = arg + value
                    else:
                        out.append(value)
                break
            if ch not in _FLAG_OPTIONS:
                break
    return out


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(prog="stencil", usage=USAGE, add_help=False)
    parser.add_argument("-h", "--help", action="store_true", help="Print this help")
    parser.add_argument("-i", dest="i", action=_Ordered, default=argparse.SUPPRESS, metavar="file",
                        help="Specify a script file to parse ('-' reads stdin)")
    parser.add_argument("-s", dest="s", action=_Ordered, default=argparse.SUPPRESS, metavar="script",
                        help="Specify a script fragment to parse")
    parser.add_argument("-d", dest="dump_ast", action="store_true",
                        help="Instead of executing the script, dump the parsed template")
    parser.add_argument("-l", dest="no_lstrip", action="store_true",
                        help="Do not strip leading block whitespace")
    parser.add_argument("-r", dest="no_trim", action="store_true",
                        help="Do not trim trailing block newlines")
    parser.add_argument("-S", dest="strict", action="store_true", help="Enable strict mode")
    parser.add_argument("-e", dest="e", action=_Ordered, default=argparse.SUPPRESS, metavar="[prefix=]json",
                        help="Set global variables from given JSON object")
    parser.add_argument("-E", dest="E", action=_Ordered, default=argparse.SUPPRESS, metavar="[prefix=]file",
                        help="Set global variables from given JSON file ('-' reads stdin)")
    parser.add_argument("-m", dest="modules", action="append", metavar="module",
                        help="Preload given module")
    parser.add_argument("file", nargs="*", help="Script file, used when neither -i nor -s is given")
    return parser


def _open_source(option: str, value: str, stdin: StdinClaim) -> Source:
    if option == "s":
        return Source.from_buffer("[-s argument]", value)
    if value == "-":
        return stdin.acquire()
    return Source.from_file(value)


async def main(argv: Optional[Sequence[str]] = None,
               *,
               stdin: Optional[BinaryIO] = None,
               stdout: Optional[TextIO] = None,
               stderr: Optional[TextIO] = None,
               engine: Optional[Engine] = None,
               environ: Optional[Mapping[str, str]] = None) -> int:
    """Run the command line. Returns the process exit status."""
    argv = sys.argv[1:] if argv is None else list(argv)
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    parser = build_parser()

    if not argv:
        parser.print_help(stdout)
        return 0

    try:
        args = parser.parse_intermixed_args(attach_option_values(argv))
    except UsageError as e:
        print(e, file=stderr)
        return e.exit_code
    if args.help:
        parser.print_help(stdout)
        return 0

    config = ParseConfig(
        lstrip_blocks=not args.no_lstrip,
        trim_blocks=not args.no_trim,
        strict_declarations=args.strict,
        dump_ast=args.dump_ast,
    )
    claim = StdinClaim(stdin)
    merger = ConfigMerger(claim)
    source: Optional[Source] = None
    shebang = False

    try:
        try:
            for option, value in getattr(args, "ops", None) or []:
                if option in ("i", "s"):
                    if source is not None:
                        # Last one wins.
                        print(SourceConflict(), file=stderr)
                        source.close()
                        source = None
                    source = _open_source(option, value, claim)
                else:
                    merger.merge(MergeRequest.parse(option, value))

            if source is None and args.file:
                source = Source.from_file(args.file[0])
                shebang = True

            if source is None:
                raise NoSourceSpecified()
        except StencilError as e:
            print(e, file=stderr)
            return e.exit_code

        runner = ScriptRunner(engine, config,
                              search_path=search_path(environ),
                              stdout=stdout, stderr=stderr)
        return await runner.run(source, skip_shebang=shebang,
                                env=merger.take(), modules=args.modules)
    finally:
        if source is not None:
            source.close()


def run():
    level = logging.DEBUG if os.environ.get(DEBUG_ENV) else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s: %(message)s")
    try:
        raise SystemExit(asyncio.run(main()))
    except KeyboardInterrupt:
        raise SystemExit(130)
