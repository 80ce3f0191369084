# -*- coding: utf-8 -*-

"""
Minimal Hack CPU used by the tests to run assembled programs.
"""

from hacktools.assembler import assemble
from hacktools.linker import translate_program

MASK = 0xFFFF


def to_signed(v):
    v &= MASK
    return v - 0x10000 if v & 0x8000 else v


class HackCPU:
    def __init__(self, rom, ram=None):
        self.rom = list(rom)
        self.ram = [0] * 32768
        for addr, value in (ram or {}).items():
            self.ram[addr] = value & MASK
        self.a = 0
        self.d = 0
        self.pc = 0

    def alu(self, x, y, c):
        zx, nx, zy, ny, f, no = [(c >> (5 - i)) & 1 for i in range(6)]
        if zx:
            x = 0
        if nx:
            x = ~x & MASK
        if zy:
            y = 0
        if ny:
            y = ~y & MASK
        out = (x + y) & MASK if f else x & y
        if no:
            out = ~out & MASK
        return out

    def step(self):
        word = self.rom[self.pc]
        if not word & 0x8000:
            self.a = word
            self.pc += 1
            return
        a_bit = (word >> 12) & 1
        c = (word >> 6) & 0b111111
        dest = (word >> 3) & 0b111
        jump = word & 0b111

        y = self.ram[self.a] if a_bit else self.a
        out = self.alu(self.d, y, c)

        addr = self.a
        if dest & 0b001:
            self.ram[addr] = out
        if dest & 0b010:
            self.d = out
        if dest & 0b100:
            self.a = out

        s = to_signed(out)
        taken = ((jump & 0b100) and s < 0) or ((jump & 0b010) and s == 0) or ((jump & 0b001) and s > 0)
        self.pc = addr if taken else self.pc + 1

    def run(self, max_steps=100000, stop_at=None):
        steps = 0
        while 0 <= self.pc < len(self.rom) and steps < max_steps:
            if stop_at is not None and self.pc == stop_at:
                break
            self.step()
            steps += 1
        return steps

    def stack(self):
        sp = self.ram[0]
        return [to_signed(v) for v in self.ram[256:sp]]


def run_vm(source, ram=None, module="Test", max_steps=100000):
    """
    translate one module without bootstrap, assemble it and run it.
    SP starts at 256 unless ram says otherwise.
    """
    init = {0: 256}
    init.update(ram or {})
    lines = translate_program([(module, source)], bootstrap=False)
    result = assemble("\n".join(lines))
    cpu = HackCPU(result.words, init)
    cpu.run(max_steps)
    return cpu
