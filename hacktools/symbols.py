# -*- coding: utf-8 -*-

import logging

from hacktools.constants import predefined_symbols, VARIABLE_BASE, MAX_ADDRESS
from hacktools.errors import AsmRangeError, AsmSyntaxError

logger = logging.getLogger("hacktools")


# --------------------------------------------------
# Symbol Table: predefined/label/variable
# --------------------------------------------------
class SymbolTable:
    def __init__(self):
        # symbol_map: { name: address (int) }
        self.symbol_map = dict(predefined_symbols)
        # label_map / variable_map keep what this module added on top
        self.label_map = {}
        self.variable_map = {}
        self.next_register = VARIABLE_BASE

    def define_label(self, lname, addr, lineno=None):
        old = self.symbol_map.get(lname, None)
        if old is not None:
            if old != addr:
                # error: redefined label
                raise AsmSyntaxError(f"Label '{lname}' redefined: old={old}, new={addr}", lineno=lineno)
            # warning: redefined with the same address
            logger.warning(f"line {lineno}: Label '{lname}' redefined with the same address {addr}. Ignoring.")
            return
        if addr > MAX_ADDRESS:
            raise AsmRangeError(f"Label '{lname}' address {addr} exceeds maximum {MAX_ADDRESS}", lineno=lineno)
        self.symbol_map[lname] = addr
        self.label_map[lname] = addr
        logger.debug(f"line {lineno}: Label '{lname}' bound to {addr}")

    def get_address(self, name):
        return self.symbol_map.get(name, None)

    def resolve(self, name, lineno=None):
        """
        look up a symbol, allocating the next free register if unknown.

        return: address (int)
        """
        addr = self.symbol_map.get(name, None)
        if addr is not None:
            return addr
        addr = self.next_register
        if addr > MAX_ADDRESS:
            raise AsmRangeError(f"No free register left for variable '{name}' (exceeds maximum {MAX_ADDRESS})", lineno=lineno)
        self.next_register += 1
        self.symbol_map[name] = addr
        self.variable_map[name] = addr
        logger.debug(f"line {lineno}: Variable '{name}' allocated at {addr}")
        return addr
