# -*- coding: utf-8 -*-

import logging

from hacktools.codegen import CodeGenerator, LabelCounter, call_sequence, compare_ops
from hacktools.constants import STACK_BASE, DEFAULT_ENTRY
from hacktools.errors import AsmError, AsmSemanticError
from hacktools.vmparser import parse_module

logger = logging.getLogger("hacktools")

HALT_LABEL = "BOOTSTRAP.halt"
# '<tag>.<N>' comparison labels would shadow '<module>.<offset>' statics
reserved_modules = {tag for tag, _ in compare_ops.values()}


class ModuleStats:
    def __init__(self, name, commands, lines, statics):
        self.name = name
        self.commands = commands    # number of VM commands
        self.lines = lines          # number of emitted assembly lines
        self.statics = statics      # number of static slots used


def bootstrap_code(counter, entry=DEFAULT_ENTRY, comments=True):
    """
    SP = 256, then call the entry function. a halt loop behind the
    return label keeps control from falling into module code.

    return: list of assembly lines
    """
    asm = ["// bootstrap"] if comments else []
    asm += [f"@{STACK_BASE}", "D=A", "@SP", "M=D"]
    if comments:
        asm.append(f"// call {entry} 0")
    asm += call_sequence(entry, 0, counter)
    asm += [f"({HALT_LABEL})", f"@{HALT_LABEL}", "0;JMP", ""]
    return asm


def translate_module(name, text, counter=None, comments=True, stats=None):
    """
    translate one VM module; its statics are named '<name>.<offset>'.

    return: list of assembly lines
    """
    if name in reserved_modules:
        raise AsmSemanticError(f"Module name '{name}' is reserved for comparison labels", module=name)
    if counter is None:
        counter = LabelCounter()
    commands = parse_module(text, name)
    gen = CodeGenerator(name, counter, comments)
    out = gen.generate_all(commands)
    logger.info(f"Translated module '{name}': {len(commands)} commands -> {len(out)} lines")
    if stats is not None:
        stats.append(ModuleStats(name, len(commands), len(out), len(gen.statics.used)))
    return out


def translate_program(modules, bootstrap=True, entry=DEFAULT_ENTRY, counter=None, comments=True, stats=None):
    """
    translate (name, text) modules into one assembly stream.
    the bootstrap, when requested, comes first and only once.

    return: list of assembly lines
    """
    if counter is None:
        counter = LabelCounter()
    seen = set()
    out = []
    if bootstrap:
        out += bootstrap_code(counter, entry, comments)
    for name, text in modules:
        if name in seen:
            raise AsmError(f"Duplicate module name '{name}'", module=name)
        seen.add(name)
        out += translate_module(name, text, counter, comments, stats)
    return out
