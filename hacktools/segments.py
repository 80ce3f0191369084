# -*- coding: utf-8 -*-

from hacktools.constants import TEMP_BASE, TEMP_SIZE, STATIC_LIMIT
from hacktools.errors import AsmRangeError, UndefinedOperandError


# --------------------------------------------------
# Addressing modes
# --------------------------------------------------
class Addressing:
    IMMEDIATE = "immediate"   # @offset is the value itself
    INDIRECT  = "indirect"    # RAM[RAM[base] + offset]
    DIRECT    = "direct"      # RAM[symbol]


base_registers = {
    "local":    "LCL",
    "argument": "ARG",
    "this":     "THIS",
    "that":     "THAT",
}
pointer_registers = ("THIS", "THAT")


class StaticSegment:
    """
    Static cells of one module, named '<module>.<offset>'.
    """
    def __init__(self, module):
        self.module = module
        self.used = set()

    def symbol(self, offset):
        if offset >= STATIC_LIMIT:
            raise AsmRangeError(f"Static offset '{offset}' exceeds maximum {STATIC_LIMIT - 1}")
        self.used.add(offset)
        return f"{self.module}.{offset}"


def resolve(segment, offset, statics):
    """
    map a segment + offset to an addressing mode and its operand.
    push and pop go through here alike.

    return: (Addressing, operand) where operand is an int or a register/symbol name
            for INDIRECT the operand is (base register, offset)
    """
    if segment == "constant":
        return Addressing.IMMEDIATE, offset
    if segment in base_registers:
        return Addressing.INDIRECT, (base_registers[segment], offset)
    if segment == "static":
        return Addressing.DIRECT, statics.symbol(offset)
    if segment == "temp":
        if offset >= TEMP_SIZE:
            raise AsmRangeError(f"Temp offset '{offset}' exceeds maximum {TEMP_SIZE - 1}")
        return Addressing.DIRECT, f"R{TEMP_BASE + offset}"
    if segment == "pointer":
        if offset >= len(pointer_registers):
            raise AsmRangeError(f"Pointer offset '{offset}' must be 0 or 1")
        return Addressing.DIRECT, pointer_registers[offset]
    raise UndefinedOperandError(f"Invalid segment: {segment}")
