# -*- coding: utf-8 -*-

"""
Command line front ends:
  - hackasm : Hack assembly (.asm) -> machine words (.hack)
  - hackvm  : VM module(s) (.vm file or directory) -> Hack assembly (.asm)

"""

import argparse
import glob
import logging
import os
import sys
import time

from rich import box
from rich.console import Console, Group
from rich.columns import Columns
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from hacktools import version
from hacktools.assembler import assemble, format_words, format_listing
from hacktools.codegen import LabelCounter
from hacktools.constants import DEFAULT_ENTRY
from hacktools.errors import AsmError
from hacktools.linker import translate_program

logger = logging.getLogger("hacktools")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s[%(filename)s:%(lineno)s]"


# --------------------------------------------------
# shared helpers
# --------------------------------------------------
def setup_logging(console, args, output):
    """
    console logging through rich, plus '<output>.log' when --log is given.
    """
    level = logging.DEBUG if args.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="    %(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, markup=True)],
        force=True,
    )
    logger.setLevel(level)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    if args.log:
        log_file_handler = logging.FileHandler(f"{output}.log", mode="w", encoding="utf-8")
        log_file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(log_file_handler)


def add_common_arguments(parser):
    parser.add_argument("input", nargs="?", default=None,
                        help="Input file path.")
    parser.add_argument("-o", "--output", default=None,
                        help="Output file path.")
    parser.add_argument("--stdin", action="store_true",
                        help="Read input from stdin.")
    parser.add_argument("--stdout", action="store_true",
                        help="Write output to stdout instead of a file.")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable verbose output.")
    parser.add_argument("-l", "--log", action="store_true",
                        help="Enable log file output.")
    parser.add_argument("-d", "--debug", action="store_true",
                        help="Enable debugging mode.")


def check_io_arguments(parser, args):
    if args.stdout and args.output:
        parser.error("May only use ONE OF --stdout or --output")
    if bool(args.stdin) == bool(args.input):
        parser.error("Must read from ONE of INPUT or --stdin")


def replace_ext(filename, ext):
    root, _ = os.path.splitext(filename)
    return f"{root}.{ext}"


def read_text(path):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        raise AsmError(f"Input file '{path}' not found.")


def write_output(data, output, to_stdout):
    if to_stdout:
        if isinstance(data, bytes):
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()
        else:
            sys.stdout.write(data)
            sys.stdout.flush()
        return
    mode = "wb" if isinstance(data, bytes) else "w"
    encoding = None if isinstance(data, bytes) else "utf-8"
    with open(output, mode, encoding=encoding) as f:
        f.write(data)


def print_failure(console, e, title, tool):
    msg = escape(str(e))
    if isinstance(e, AsmError):
        logger.error(msg)
        summary = f"[bold red]{title} Failed with AsmError[/bold red]\n\nCheck:\n[bold white]{msg}[/bold white]"
    else:
        logger.critical(msg)
        summary = f"[bold red]{title} Failed with Exception[/bold red]\n\nCheck:\n[bold white]{msg}[/bold white]"
    panel = Panel.fit(summary, title=f"{title} Summary", subtitle=f"{tool} v{version}", style="bold red", padding=(2, 1))
    console.print(panel)


def output_table(rows):
    table = Table(title="[bold white]Output File:[/bold white]", title_justify="left", box=box.MINIMAL_DOUBLE_HEAD, show_lines=True)
    table.add_column("Type", style="white", no_wrap=True)
    table.add_column("File", style="magenta")
    for kind, path in rows:
        table.add_row(kind, path)
    return table


# --------------------------------------------------
# hackasm
# --------------------------------------------------
def run_asm(args, console):
    start_time = time.time()

    # 1) Read input
    if args.stdin:
        logger.info("Reading from STDIN")
        text = sys.stdin.read()
    else:
        logger.info(f"Parsing input => [bold magenta]{args.input}[/bold magenta]")
        text = read_text(args.input)

    # 2) Assemble (labels first, then variables and encoding)
    result = assemble(text, verbose=args.verbose)
    symtbl = result.symtbl

    if args.debug:
        labels_table = Table(title="Labels", box=box.MINIMAL_DOUBLE_HEAD)
        labels_table.add_column("Label", style="magenta", no_wrap=True)
        labels_table.add_column("Address", style="yellow")
        for name, addr in symtbl.label_map.items():
            labels_table.add_row(name, str(addr))

        variables_table = Table(title="Variables", box=box.MINIMAL_DOUBLE_HEAD)
        variables_table.add_column("Variable", style="magenta", no_wrap=True)
        variables_table.add_column("Register", style="yellow")
        for name, addr in symtbl.variable_map.items():
            variables_table.add_row(name, str(addr))

        debug_panel = Panel.fit(Columns([labels_table, variables_table]), title="[bold green][DEBUG][/bold green] [bold white]Information[/bold white]", style="bold green")
        console.print(debug_panel)

    # 3) Emit output files
    data = format_words(result.words, args.format, args.endianess)
    write_output(data, args.output, args.stdout)
    rows = [("Machine Code" if args.format == "text" else "Machine Code(Binary)", "<stdout>" if args.stdout else args.output)]

    if args.readable:
        if args.stdout:
            logger.warning("--readable is ignored with --stdout")
        else:
            outread = args.output + "_readable.txt"
            write_output("\n".join(format_listing(result)) + "\n", outread, False)
            rows.append(("Readable File(Text)", outread))
            if args.verbose:
                logger.info(f"Wrote readable text file => {outread}")

    finish_time = time.time()

    summary = f"[bold white]Instructions[/bold white]: [bold blue]{len(result.words)}[/bold blue]\n\
[bold white]Labels[/bold white]: [bold green]{len(symtbl.label_map)}[/bold green]\n\
[bold white]Variables[/bold white]: [bold green]{len(symtbl.variable_map)}[/bold green]\n\n\
[bold white]Input File:[/bold white]\t[bold magenta]{args.input or '<stdin>'}[/bold magenta]"
    if args.verbose or args.debug:
        summary = f"[bold white]Elapsed Time: [/bold white]: [bold green]{finish_time-start_time:.4f}[/bold green] seconds\n\n" + summary

    panel = Panel.fit(Group(summary, output_table(rows)), title="[bold blue][INFO][/bold blue] Assembly Summary", subtitle=f"hackasm v{version}", style="bold blue", padding=(2, 1))
    console.print("\n", panel)
    return result


def asm_main(argv=None):
    parser = argparse.ArgumentParser(prog="hackasm", description="Hack Assembler: .asm -> .hack")
    add_common_arguments(parser)
    parser.add_argument("-f", "--format", choices=["text", "binary"], default="text",
                        help="Output as '0'/'1' text lines or raw 16-bit words.")
    parser.add_argument("-e", "--endianess", choices=["big", "little"], default="big",
                        help="Byte order of raw words (binary format only).")
    parser.add_argument("-r", "--readable", action="store_true",
                        help="Generate a readable listing next to the output.")
    args = parser.parse_args(argv)
    check_io_arguments(parser, args)

    if args.output is None and not args.stdout:
        args.output = "out.hack" if args.stdin else replace_ext(args.input, "hack")

    console = Console(stderr=args.stdout)
    setup_logging(console, args, args.output or "out.hack")
    try:
        run_asm(args, console)
    except Exception as e:
        print_failure(console, e, "Assembly", "hackasm")
        return 1
    return 0


# --------------------------------------------------
# hackvm
# --------------------------------------------------
def collect_modules(path):
    """
    a single .vm file, or every .vm file of a directory sorted by name.

    return: list of (module name, source text)
    """
    if os.path.isdir(path):
        files = sorted(glob.glob(os.path.join(path, "*.vm")))
        if not files:
            raise AsmError(f"No .vm files in directory '{path}'")
    else:
        files = [path]
    modules = []
    for f in files:
        name = os.path.splitext(os.path.basename(f))[0]
        modules.append((name, read_text(f)))
    return modules


def default_vm_output(path):
    if os.path.isdir(path):
        dirname = os.path.basename(os.path.normpath(path))
        return os.path.join(path, f"{dirname}.asm")
    return replace_ext(path, "asm")


def run_vm(args, console):
    start_time = time.time()

    # 1) Read modules
    if args.stdin:
        logger.info("Reading from STDIN")
        modules = [(args.name, sys.stdin.read())]
        program = False
    else:
        logger.info(f"Parsing input => [bold magenta]{args.input}[/bold magenta]")
        modules = collect_modules(args.input)
        program = os.path.isdir(args.input)
    bootstrap = program if args.bootstrap is None else args.bootstrap
    if args.verbose:
        logger.info(f"{len(modules)} module(s), bootstrap={'on' if bootstrap else 'off'}")

    # 2) Translate
    counter = LabelCounter()
    stats = []
    lines = translate_program(modules, bootstrap=bootstrap, entry=args.entry,
                              counter=counter, comments=not args.no_comments, stats=stats)

    if args.debug:
        modules_table = Table(title="Modules", box=box.MINIMAL_DOUBLE_HEAD)
        modules_table.add_column("Module", style="magenta", no_wrap=True)
        modules_table.add_column("Commands", style="green")
        modules_table.add_column("Lines", style="green")
        modules_table.add_column("Statics", style="yellow")
        for s in stats:
            modules_table.add_row(s.name, str(s.commands), str(s.lines), str(s.statics))
        debug_panel = Panel.fit(modules_table, title="[bold green][DEBUG][/bold green] [bold white]Information[/bold white]", style="bold green")
        console.print(debug_panel)

    # 3) Emit output
    write_output("\n".join(lines) + "\n", args.output, args.stdout)
    finish_time = time.time()

    summary = f"[bold white]Modules[/bold white]: [bold blue]{len(modules)}[/bold blue]\n\
[bold white]Commands[/bold white]: [bold green]{sum(s.commands for s in stats)}[/bold green]\n\
[bold white]Assembly Lines[/bold white]: [bold green]{len(lines)}[/bold green]\n\
[bold white]Generated Labels[/bold white]: [bold green]{counter.value}[/bold green]\n\
[bold white]Bootstrap[/bold white]: [bold green]{'yes' if bootstrap else 'no'}[/bold green]\n\n\
[bold white]Input:[/bold white]\t[bold magenta]{args.input or '<stdin>'}[/bold magenta]"
    if args.verbose or args.debug:
        summary = f"[bold white]Elapsed Time: [/bold white]: [bold green]{finish_time-start_time:.4f}[/bold green] seconds\n\n" + summary

    rows = [("Assembly File", "<stdout>" if args.stdout else args.output)]
    panel = Panel.fit(Group(summary, output_table(rows)), title="[bold blue][INFO][/bold blue] Translation Summary", subtitle=f"hackvm v{version}", style="bold blue", padding=(2, 1))
    console.print("\n", panel)
    return lines


def vm_main(argv=None):
    parser = argparse.ArgumentParser(prog="hackvm", description="Hack VM Translator: .vm -> .asm")
    add_common_arguments(parser)
    parser.add_argument("-n", "--name", default="Main",
                        help="Module name for --stdin input (static variable prefix).")
    parser.add_argument("--bootstrap", action=argparse.BooleanOptionalAction, default=None,
                        help="Prepend the bootstrap code. Default: on for directories, off for files.")
    parser.add_argument("--entry", default=DEFAULT_ENTRY,
                        help="Function the bootstrap calls.")
    parser.add_argument("--no-comments", action="store_true",
                        help="Do not echo VM commands as comments.")
    args = parser.parse_args(argv)
    check_io_arguments(parser, args)

    if args.output is None and not args.stdout:
        args.output = "out.asm" if args.stdin else default_vm_output(args.input)

    console = Console(stderr=args.stdout)
    setup_logging(console, args, args.output or "out.asm")
    try:
        run_vm(args, console)
    except Exception as e:
        print_failure(console, e, "Translation", "hackvm")
        return 1
    return 0

