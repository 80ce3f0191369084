# -*- coding: utf-8 -*-

"""
hacktools: VM Translator and Assembler for the Hack computer:
  - Translate stack-based VM modules into Hack assembly.
  - Assemble Hack assembly into 16-bit machine words.

"""
version = "1.0.0"

from hacktools.errors import (
    AsmError,
    AsmSyntaxError,
    AsmRangeError,
    UndefinedOperandError,
    AsmSemanticError,
)
from hacktools.assembler import assemble, format_words
from hacktools.codegen import LabelCounter
from hacktools.linker import translate_module, translate_program
