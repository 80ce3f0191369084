# -*- coding: utf-8 -*-

"""
VM Code Generator:
  - Emit the Hack assembly idiom for each VM command.
  - Keep SP pointing one past the top of the stack after every idiom.
  - Draw comparison and return-address labels from one program-wide counter.
  - Implement the call/return stack frame:

        ARG  -> argument 0 .. argument n-1
                return address
                saved LCL
                saved ARG
                saved THIS
                saved THAT
        LCL  -> local 0 .. local k-1
        SP   -> working stack

"""

import logging

from hacktools.constants import FRAME_SIZE, SCRATCH_ADDR, SCRATCH_FRAME, SCRATCH_RET
from hacktools.errors import AsmError, AsmSemanticError
from hacktools.segments import Addressing, StaticSegment, resolve
from hacktools.vmparser import CommandType

logger = logging.getLogger("hacktools")


class LabelCounter:
    """
    Monotonic counter shared by every module of one translated program.
    """
    def __init__(self, start=0):
        self.value = start

    def next(self):
        n = self.value
        self.value += 1
        return n


# --------------------------------------------------
# idioms
# --------------------------------------------------
binary_ops = {
    "add": "M=D+M",
    "sub": "M=M-D",
    "and": "M=D&M",
    "or":  "M=D|M",
}
unary_ops = {
    "neg": "M=-M",
    "not": "M=!M",
}
compare_ops = {
    "eq": ("EQ", "JEQ"),
    "gt": ("GT", "JGT"),
    "lt": ("LT", "JLT"),
}

# D -> RAM[SP], SP++
PUSH_D = ["@SP", "A=M", "M=D", "@SP", "M=M+1"]
# SP--, D <- RAM[SP]
POP_D = ["@SP", "AM=M-1", "D=M"]


class CodeGenerator:
    def __init__(self, module, counter, comments=True):
        self.module = module
        self.counter = counter
        self.comments = comments
        self.statics = StaticSegment(module)
        self.handlers = {
            CommandType.ARITHMETIC: self.write_arithmetic,
            CommandType.PUSH:       self.write_push,
            CommandType.POP:        self.write_pop,
            CommandType.LABEL:      self.write_label,
            CommandType.GOTO:       self.write_goto,
            CommandType.IF_GOTO:    self.write_if,
            CommandType.FUNCTION:   self.write_function,
            CommandType.CALL:       self.write_call,
            CommandType.RETURN:     self.write_return,
        }

    def generate(self, cmd):
        """
        translate one command, prefixed with an echo comment when enabled.

        return: list of assembly lines
        """
        logger.debug(f"{self.module}: {cmd.source}")
        handler = self.handlers.get(cmd.type)
        if handler is None:
            raise AsmError(f"Unknown command type '{cmd.type}'", lineno=cmd.lineno, line=cmd.source, module=self.module)
        try:
            asm = handler(cmd)
        except AsmError as e:
            e.locate(cmd.lineno, cmd.source, self.module)
            raise
        if self.comments and cmd.source:
            asm = [f"// {cmd.source}"] + asm
        return asm

    def generate_all(self, commands):
        """
        translate a whole module, one blank line after each command.

        return: list of assembly lines
        """
        out = []
        for cmd in commands:
            out.extend(self.generate(cmd))
            out.append("")
        return out

    # --------------------------------------------------
    # arithmetic
    # --------------------------------------------------
    def write_arithmetic(self, cmd):
        op = cmd.arg1
        if op in binary_ops:
            # y in D, A -> x
            return POP_D + ["A=A-1", binary_ops[op]]
        if op in unary_ops:
            return ["@SP", "A=M-1", unary_ops[op]]
        if op in compare_ops:
            return self.write_compare(op)
        raise AsmError(f"Unknown arithmetic op '{op}'")

    def write_compare(self, op):
        tag, jump = compare_ops[op]
        n = self.counter.next()
        true_label = f"{tag}.{n}"
        end_label = f"{tag}.{n}.end"
        return POP_D + [
            "A=A-1",
            "D=M-D",
            f"@{true_label}",
            f"D;{jump}",
            "@SP",
            "A=M-1",
            "M=0",
            f"@{end_label}",
            "0;JMP",
            f"({true_label})",
            "@SP",
            "A=M-1",
            "M=-1",
            f"({end_label})",
        ]

    # --------------------------------------------------
    # push/pop
    # --------------------------------------------------
    def write_push(self, cmd):
        mode, operand = resolve(cmd.arg1, cmd.arg2, self.statics)
        if mode == Addressing.IMMEDIATE:
            load = [f"@{operand}", "D=A"]
        elif mode == Addressing.INDIRECT:
            base, offset = operand
            load = [f"@{base}", "D=M", f"@{offset}", "A=D+A", "D=M"]
        else:
            load = [f"@{operand}", "D=M"]
        return load + PUSH_D

    def write_pop(self, cmd):
        mode, operand = resolve(cmd.arg1, cmd.arg2, self.statics)
        if mode == Addressing.IMMEDIATE:
            raise AsmSemanticError("Constant segment cannot be used with pop command")
        if mode == Addressing.INDIRECT:
            base, offset = operand
            # target address goes to scratch before D is reused for the value
            return [
                f"@{base}",
                "D=M",
                f"@{offset}",
                "D=D+A",
                f"@{SCRATCH_ADDR}",
                "M=D",
            ] + POP_D + [
                f"@{SCRATCH_ADDR}",
                "A=M",
                "M=D",
            ]
        return POP_D + [f"@{operand}", "M=D"]

    # --------------------------------------------------
    # branching
    # --------------------------------------------------
    def write_label(self, cmd):
        return [f"({cmd.arg1})"]

    def write_goto(self, cmd):
        return [f"@{cmd.arg1}", "0;JMP"]

    def write_if(self, cmd):
        return POP_D + [f"@{cmd.arg1}", "D;JNE"]

    # --------------------------------------------------
    # functions
    # --------------------------------------------------
    def write_function(self, cmd):
        asm = [f"({cmd.arg1})"]
        for _ in range(cmd.arg2):
            asm += ["@SP", "A=M", "M=0", "@SP", "M=M+1"]
        return asm

    def write_call(self, cmd):
        return call_sequence(cmd.arg1, cmd.arg2, self.counter)

    def write_return(self, cmd):
        asm = [
            # frame = LCL
            "@LCL",
            "D=M",
            f"@{SCRATCH_FRAME}",
            "M=D",
            # return address = RAM[frame - 5]
            f"@{FRAME_SIZE}",
            "A=D-A",
            "D=M",
            f"@{SCRATCH_RET}",
            "M=D",
        ]
        # RAM[ARG] = pop()
        asm += POP_D + ["@ARG", "A=M", "M=D"]
        # SP = ARG + 1
        asm += ["@ARG", "D=M+1", "@SP", "M=D"]
        # THAT, THIS, ARG, LCL = RAM[frame-1] .. RAM[frame-4]
        for reg in ("THAT", "THIS", "ARG", "LCL"):
            asm += [f"@{SCRATCH_FRAME}", "AM=M-1", "D=M", f"@{reg}", "M=D"]
        asm += [f"@{SCRATCH_RET}", "A=M", "0;JMP"]
        return asm


def call_sequence(function, n_args, counter):
    """
    the caller side of the calling convention, with a return label
    unique to this call site.

    return: list of assembly lines
    """
    ret_label = f"{function}$ret.{counter.next()}"
    asm = [f"@{ret_label}", "D=A"] + PUSH_D
    for reg in ("LCL", "ARG", "THIS", "THAT"):
        asm += [f"@{reg}", "D=M"] + PUSH_D
    asm += [
        # ARG = SP - 5 - nArgs
        "@SP",
        "D=M",
        f"@{FRAME_SIZE + n_args}",
        "D=D-A",
        "@ARG",
        "M=D",
        # LCL = SP
        "@SP",
        "D=M",
        "@LCL",
        "M=D",
        f"@{function}",
        "0;JMP",
        f"({ret_label})",
    ]
    return asm
