# -*- coding: utf-8 -*-

class AsmError(Exception):
    """
    Base error for both translators.

    lineno and line point at the offending source line when known,
    module names the VM module being translated.
    """
    def __init__(self, message, lineno=None, line=None, module=None):
        self.message = message
        self.lineno = lineno
        self.line = line
        self.module = module
        super().__init__(self._format())

    def _format(self):
        where = ""
        if self.module is not None:
            where += f"{self.module}: "
        if self.lineno is not None:
            where += f"line {self.lineno}: "
        return f"{where}{self.message}"

    def locate(self, lineno=None, line=None, module=None):
        """
        fill in location details the raising code did not know about.

        return: self (for re-raising)
        """
        if self.lineno is None:
            self.lineno = lineno
        if self.line is None:
            self.line = line
        if self.module is None:
            self.module = module
        self.args = (self._format(),)
        return self

    def __str__(self):
        return self._format()


class AsmSyntaxError(AsmError):
    pass


class AsmRangeError(AsmError):
    pass


class UndefinedOperandError(AsmError):
    pass


class AsmSemanticError(AsmError):
    pass
