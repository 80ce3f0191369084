# -*- coding: utf-8 -*-

import logging
import re

from hacktools.constants import MAX_ADDRESS, MAX_COUNT
from hacktools.errors import AsmError, AsmSyntaxError, AsmRangeError, AsmSemanticError, UndefinedOperandError
from hacktools.lexer import normalize_line, normalize_source

logger = logging.getLogger("hacktools")


# --------------------------------------------------
# Command types
# --------------------------------------------------
class CommandType:
    ARITHMETIC = "arithmetic"
    PUSH       = "push"
    POP        = "pop"
    LABEL      = "label"
    GOTO       = "goto"
    IF_GOTO    = "if-goto"
    FUNCTION   = "function"
    CALL       = "call"
    RETURN     = "return"


ARITHMETIC_OPS = ("add", "sub", "neg", "eq", "gt", "lt", "and", "or", "not")
SEGMENTS = ("local", "argument", "this", "that", "constant", "static", "pointer", "temp")
NUMBER_RE = re.compile(r"[+-]?[0-9]+")

# token count each command word expects
command_shapes = {
    CommandType.PUSH:     3,
    CommandType.POP:      3,
    CommandType.LABEL:    2,
    CommandType.GOTO:     2,
    CommandType.IF_GOTO:  2,
    CommandType.FUNCTION: 3,
    CommandType.CALL:     3,
    CommandType.RETURN:   1,
}


class VMCommand:
    def __init__(self, t, arg1=None, arg2=None, lineno=None, source=None):
        self.type = t
        self.arg1 = arg1          # op / segment / label / function name
        self.arg2 = arg2          # offset / nLocals / nArgs
        self.lineno = lineno
        self.source = source

    def __eq__(self, other):
        if not isinstance(other, VMCommand):
            return NotImplemented
        return (self.type, self.arg1, self.arg2) == (other.type, other.arg1, other.arg2)

    def __repr__(self):
        parts = [p for p in (self.type, self.arg1, self.arg2) if p is not None]
        return f"VMCommand({', '.join(repr(p) for p in parts)})"


# --------------------------------------------------
# parse helpers
# --------------------------------------------------
def parse_number(tok, limit, what, lineno=None, line=None):
    """
    parse a non-negative decimal number bounded by limit.

    return: integer
    """
    if not NUMBER_RE.fullmatch(tok):
        raise AsmSyntaxError(f"Invalid {what} '{tok}'", lineno=lineno, line=line)
    value = int(tok, 10)
    if value < 0:
        raise AsmRangeError(f"{what.capitalize()} '{value}' is negative", lineno=lineno, line=line)
    if value > limit:
        raise AsmRangeError(f"{what.capitalize()} '{value}' exceeds maximum {limit}", lineno=lineno, line=line)
    return value


def parse_segment(tok, lineno=None, line=None):
    if tok not in SEGMENTS:
        raise UndefinedOperandError(f"Invalid segment: {tok}", lineno=lineno, line=line)
    return tok


# --------------------------------------------------
# parse_command
# --------------------------------------------------
def parse_command(line, lineno=None):
    """
    turn one VM line into a typed command. the line is normalized first.

    return: VMCommand or None for a blank line
    """
    line = normalize_line(line)
    if not line:
        return None
    tokens = line.split()
    cmd = tokens[0]

    # handle arithmetic
    # ex) "add", "eq"
    if len(tokens) == 1 and cmd in ARITHMETIC_OPS:
        return VMCommand(CommandType.ARITHMETIC, cmd, lineno=lineno, source=line)

    if command_shapes.get(cmd) != len(tokens):
        raise AsmSyntaxError(f"Unknown command: {line}", lineno=lineno, line=line)

    # handle push/pop
    # ex) "push constant 7", "pop local 0"
    if cmd in (CommandType.PUSH, CommandType.POP):
        segment = parse_segment(tokens[1], lineno, line)
        offset = parse_number(tokens[2], MAX_ADDRESS, "offset", lineno, line)
        if cmd == CommandType.POP and segment == "constant":
            raise AsmSemanticError("Constant segment cannot be used with pop command", lineno=lineno, line=line)
        return VMCommand(cmd, segment, offset, lineno, line)

    # handle label/goto/if-goto
    if cmd in (CommandType.LABEL, CommandType.GOTO, CommandType.IF_GOTO):
        return VMCommand(cmd, tokens[1], lineno=lineno, source=line)

    # handle function/call
    # ex) "function Main.fib 2", "call Main.fib 1"
    if cmd == CommandType.FUNCTION:
        count = parse_number(tokens[2], MAX_COUNT, "local count", lineno, line)
        return VMCommand(cmd, tokens[1], count, lineno, line)
    if cmd == CommandType.CALL:
        count = parse_number(tokens[2], MAX_COUNT, "argument count", lineno, line)
        return VMCommand(cmd, tokens[1], count, lineno, line)

    return VMCommand(CommandType.RETURN, lineno=lineno, source=line)


def parse_module(text, module=None):
    """
    parse a whole VM module. the first error aborts the module.

    return: list of VMCommand
    """
    commands = []
    for lineno, line in normalize_source(text):
        logger.debug(f">>> {line}")
        try:
            commands.append(parse_command(line, lineno))
        except AsmError as e:
            e.locate(lineno, line, module)
            raise
    return commands
