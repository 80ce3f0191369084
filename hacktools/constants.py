# -*- coding: utf-8 -*-

# --------------------------------------------------
# Hack architecture
# --------------------------------------------------
MAX_ADDRESS = 32767     # largest value an A-instruction can load
VARIABLE_BASE = 16      # first register handed out to new variables

predefined_symbols = {
    "SP":     0,
    "LCL":    1,
    "ARG":    2,
    "THIS":   3,
    "THAT":   4,
    "SCREEN": 16384,
    "KBD":    24576,
}
predefined_symbols.update({f"R{i}": i for i in range(16)})

# --------------------------------------------------
# VM memory model
# --------------------------------------------------
STACK_BASE = 256
TEMP_BASE = 5
TEMP_SIZE = 8
STATIC_LIMIT = 240
MAX_COUNT = 127         # nLocals / nArgs
FRAME_SIZE = 5          # return address, LCL, ARG, THIS, THAT

# scratch registers used by pop and return
SCRATCH_ADDR = "R13"
SCRATCH_FRAME = "R13"
SCRATCH_RET = "R14"

DEFAULT_ENTRY = "Sys.init"
