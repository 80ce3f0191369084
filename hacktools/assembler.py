# -*- coding: utf-8 -*-

"""
Hack Assembler:
  - Parse normalized lines into labels, A-instructions and C-instructions.
  - Bind labels to instruction addresses before any variable is allocated.
  - Encode every non-label instruction into one 16-bit word.

"""

import itertools
import logging
import re
import struct

from hacktools.constants import MAX_ADDRESS
from hacktools.errors import AsmError, AsmSyntaxError, AsmRangeError, UndefinedOperandError
from hacktools.lexer import normalize_line, normalize_source
from hacktools.symbols import SymbolTable

logger = logging.getLogger("hacktools")


# --------------------------------------------------
# map (comp/dest/jump)    -> bit exact, do not edit
# --------------------------------------------------
comp_map = {
    "0":   "0101010",
    "1":   "0111111",
    "-1":  "0111010",
    "D":   "0001100",
    "A":   "0110000",
    "M":   "1110000",
    "!D":  "0001101",
    "!A":  "0110001",
    "!M":  "1110001",
    "-D":  "0001111",
    "-A":  "0110011",
    "-M":  "1110011",
    "D+1": "0011111",
    "A+1": "0110111",
    "M+1": "1110111",
    "D-1": "0001110",
    "A-1": "0110010",
    "M-1": "1110010",
    "D+A": "0000010",
    "D+M": "1000010",
    "D-A": "0010011",
    "D-M": "1010011",
    "A-D": "0000111",
    "M-D": "1000111",
    "D&A": "0000000",
    "D&M": "1000000",
    "D|A": "0010101",
    "D|M": "1010101",
}
jump_map = {
    "":    "000",
    "JGT": "001",
    "JEQ": "010",
    "JGE": "011",
    "JLT": "100",
    "JNE": "101",
    "JLE": "110",
    "JMP": "111",
}
dest_bits = {
    "A": 0b100,
    "D": 0b010,
    "M": 0b001,
}


def build_dest_map():
    """
    every ordering of distinct destination registers, e.g. "MD" and "DM".

    return: { mnemonic: 3-bit string }
    """
    dmap = {"": "000"}
    for n in range(1, len(dest_bits) + 1):
        for combo in itertools.permutations(dest_bits, n):
            bits = 0
            for reg in combo:
                bits |= dest_bits[reg]
            dmap["".join(combo)] = "{:03b}".format(bits)
    return dmap


dest_map = build_dest_map()

C_PREFIX = "111"
DECIMAL_RE = re.compile(r"[0-9]+")
INNER_WS_RE = re.compile(r"[ \t\r]")


# --------------------------------------------------
# Instructions
# --------------------------------------------------
class LabelDef:
    def __init__(self, name, lineno=None, source=None):
        self.name = name
        self.lineno = lineno
        self.source = source


class AInstruction:
    def __init__(self, value, lineno=None, source=None):
        self.value = value        # literal digits or symbol name
        self.lineno = lineno
        self.source = source


class CInstruction:
    def __init__(self, dest, comp, jump, lineno=None, source=None):
        self.dest = dest
        self.comp = comp
        self.jump = jump
        self.lineno = lineno
        self.source = source


class AssemblyResult:
    def __init__(self, words, instructions, symtbl):
        self.words = words                  # list of int, one per real instruction
        self.instructions = instructions    # parsed lines incl. labels, in order
        self.symtbl = symtbl


# --------------------------------------------------
# parse_line
# --------------------------------------------------
def parse_line(line, lineno=None):
    """
    classify one line. the line is normalized first, so raw lines work too.

    return: LabelDef, AInstruction, CInstruction or None for a blank line
    """
    line = normalize_line(line)
    if not line:
        return None

    # handle A-instruction
    # ex) "@LOOP", "@17"
    if line.startswith("@"):
        value = line[1:].strip()
        if not value:
            raise AsmSyntaxError(f"Missing operand: {line}", lineno=lineno, line=line)
        return AInstruction(value, lineno, line)

    # handle label definition
    # ex) "(LOOP)"
    if line.startswith("("):
        if not line.endswith(")"):
            raise AsmSyntaxError(f"Unexpected instruction: {line}", lineno=lineno, line=line)
        name = line[1:-1].strip()
        if not name:
            raise AsmSyntaxError(f"Empty label name: {line}", lineno=lineno, line=line)
        return LabelDef(name, lineno, line)

    # handle C-instruction: dest=comp;jump
    dest, comp, jump = "", line, ""
    if "=" in comp:
        dest, comp = comp.split("=", 1)
    if ";" in comp:
        comp, jump = comp.rsplit(";", 1)
    return CInstruction(dest, comp, jump, lineno, line)


def parse_source(text):
    """
    parse every line of an assembly text.

    return: list of instructions (labels included)
    """
    instructions = []
    for lineno, line in normalize_source(text):
        logger.debug(f">>> {line}")
        instr = parse_line(line, lineno)
        if instr is not None:
            instructions.append(instr)
    return instructions


# --------------------------------------------------
# resolve_labels
# --------------------------------------------------
def resolve_labels(instructions, symtbl):
    """
    bind each label to the number of real instructions before it.
    no variable is allocated here.

    return: number of real instructions
    """
    count = 0
    for instr in instructions:
        if isinstance(instr, LabelDef):
            symtbl.define_label(instr.name, count, instr.lineno)
        else:
            count += 1
    return count


# --------------------------------------------------
# encode
# --------------------------------------------------
def encode_a(instr, symtbl):
    value = instr.value
    if value[0].isdigit():
        if not DECIMAL_RE.fullmatch(value):
            raise AsmSyntaxError(f"Invalid A-instruction operand '{value}'", lineno=instr.lineno, line=instr.source)
        num = int(value, 10)
        if num > MAX_ADDRESS:
            raise AsmRangeError(f"A-instruction constant value '{num}' exceeds maximum {MAX_ADDRESS}", lineno=instr.lineno, line=instr.source)
        return num
    return symtbl.resolve(value, instr.lineno)


def encode_c(instr):
    fields = []
    for fname, raw, table in (("COMP", instr.comp, comp_map),
                              ("DEST", instr.dest, dest_map),
                              ("JUMP", instr.jump, jump_map)):
        key = INNER_WS_RE.sub("", raw)
        bits = table.get(key)
        if bits is None:
            raise UndefinedOperandError(f"Invalid {fname}: '{raw}'", lineno=instr.lineno, line=instr.source)
        fields.append(bits)
    return int(C_PREFIX + "".join(fields), 2)


def encode_instruction(instr, symtbl):
    """
    encode a single A- or C-instruction.

    return: 16-bit word (int)
    """
    if isinstance(instr, AInstruction):
        logger.debug(f"A-instr: {instr.value}")
        return encode_a(instr, symtbl)
    logger.debug(f"C-instr: [{instr.dest}, {instr.comp}, {instr.jump}]")
    return encode_c(instr)


def assemble(text, verbose=False):
    """
    assemble a whole module. the first error aborts everything.

    return: AssemblyResult
    """
    symtbl = SymbolTable()
    instructions = parse_source(text)
    count = resolve_labels(instructions, symtbl)
    if verbose:
        logger.info(f"Resolved {len(symtbl.label_map)} labels over {count} instructions")

    words = []
    for instr in instructions:
        if isinstance(instr, LabelDef):
            continue
        words.append(encode_instruction(instr, symtbl))

    logger.info(f"Generated {len(words)} words of hack")
    return AssemblyResult(words, instructions, symtbl)


# --------------------------------------------------
# output formats
# --------------------------------------------------
def format_word(word):
    return "{:016b}".format(word)


def format_words(words, fmt="text", endian="big"):
    """
    serialize words as '0'/'1' text lines or as raw 2-byte words.

    return: str (text) or bytes (binary)
    """
    if fmt == "text":
        return "".join(format_word(w) + "\n" for w in words)
    if fmt == "binary":
        order = ">" if endian == "big" else "<"
        return struct.pack(f"{order}{len(words)}H", *words)
    raise AsmError(f"Unknown output format '{fmt}'")


def format_listing(result):
    """
    human-readable listing: address | word | source line.

    return: list of str
    """
    lines = []
    addr = 0
    for instr in result.instructions:
        if isinstance(instr, LabelDef):
            lines.append(f"{'':5} | {'':16} | {instr.source}")
            continue
        word = result.words[addr]
        lines.append(f"{addr:05d} | {format_word(word)} | {instr.source}")
        addr += 1
    return lines
