# -*- coding: utf-8 -*-

WHITESPACE = " \t\r"


def normalize_line(raw_line):
    """
    strip the trailing '//' comment and the surrounding whitespace.

    return: normalized line ('' means skip)
    """
    pos = raw_line.find("//")
    if pos != -1:
        raw_line = raw_line[:pos]
    return raw_line.strip(WHITESPACE)


def normalize_source(text):
    """
    normalize every line of a source text and drop the blank ones.

    return: list of (lineno, line), lineno is 1-based
    """
    lines = []
    for idx, raw_line in enumerate(text.split("\n")):
        line = normalize_line(raw_line)
        if not line:
            continue
        lines.append((idx + 1, line))
    return lines
