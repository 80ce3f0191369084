import pytest

from hacktools.assembler import assemble
from hacktools.codegen import CodeGenerator, LabelCounter
from hacktools.errors import AsmRangeError
from hacktools.linker import translate_module, translate_program
from hacktools.vmparser import parse_command
from hack_cpu import HackCPU, run_vm, to_signed


def labels_of(lines):
    return [l[1:-1] for l in lines if l.startswith("(")]


# --------------------------------------------------
# arithmetic
# --------------------------------------------------
def test_push_constant_add():
    cpu = run_vm("push constant 7\npush constant 8\nadd")
    assert cpu.stack() == [15]
    assert cpu.ram[0] == 257


def test_push_constant_add_twice():
    cpu = run_vm("push constant 17\npush constant 3\npush constant 2\nadd\nadd")
    assert cpu.stack() == [22]


@pytest.mark.parametrize("x, y, op, expected", [
    (7, 8, "sub", -1),
    (12, 10, "and", 8),
    (12, 10, "or", 14),
])
def test_binary_ops(x, y, op, expected):
    cpu = run_vm(f"push constant {x}\npush constant {y}\n{op}")
    assert cpu.stack() == [expected]


@pytest.mark.parametrize("x, op, expected", [
    (5, "neg", -5),
    (0, "not", -1),
    (0, "neg", 0),
])
def test_unary_ops_keep_sp(x, op, expected):
    cpu = run_vm(f"push constant {x}\n{op}")
    assert cpu.stack() == [expected]
    assert cpu.ram[0] == 257


@pytest.mark.parametrize("x, y, op, expected", [
    (5, 5, "eq", -1),
    (5, 6, "eq", 0),
    (7, 3, "gt", -1),
    (3, 7, "gt", 0),
    (3, 3, "gt", 0),
    (3, 7, "lt", -1),
    (7, 3, "lt", 0),
])
def test_comparisons(x, y, op, expected):
    cpu = run_vm(f"push constant {x}\npush constant {y}\n{op}")
    assert cpu.stack() == [expected]


def test_comparison_labels_are_unique_per_site():
    src = "push constant 1\npush constant 1\neq\npush constant 1\neq\npush constant 2\nlt\ngt"
    lines = translate_module("M", src, LabelCounter())
    labels = labels_of(lines)
    assert labels == ["EQ.0", "EQ.0.end", "EQ.1", "EQ.1.end", "LT.2", "LT.2.end", "GT.3", "GT.3.end"]


def test_comparison_labels_unique_across_modules():
    src = "push constant 1\npush constant 1\neq"
    lines = translate_program([("A", src), ("B", src)], bootstrap=False)
    labels = labels_of(lines)
    assert len(labels) == 4
    assert len(set(labels)) == 4


def test_many_comparisons_run_correctly():
    cpu = run_vm("push constant 1\npush constant 1\neq\npush constant 1\npush constant 2\neq\npush constant 4\npush constant 3\ngt")
    assert cpu.stack() == [-1, 0, -1]


# --------------------------------------------------
# segments
# --------------------------------------------------
BASIC_TEST = """
push constant 10
pop local 0
push constant 21
pop argument 1
push constant 36
pop this 6
push constant 42
pop that 5
push constant 45
pop temp 6
push constant 510
pop static 3
push local 0
push that 5
add
push argument 1
sub
push this 6
push this 6
add
sub
push temp 6
add
push static 3
add
"""


def test_memory_segments():
    cpu = run_vm(BASIC_TEST, {1: 300, 2: 400, 3: 3000, 4: 4000})
    assert cpu.ram[300] == 10
    assert cpu.ram[401] == 21
    assert cpu.ram[3006] == 36
    assert cpu.ram[4005] == 42
    assert cpu.ram[11] == 45
    assert cpu.stack() == [514]


def test_pointer_segment():
    src = """
push constant 3030
pop pointer 0
push constant 3040
pop pointer 1
push constant 32
pop this 2
push constant 46
pop that 6
push pointer 0
push pointer 1
add
push this 2
sub
push that 6
add
"""
    cpu = run_vm(src)
    assert cpu.ram[3] == 3030
    assert cpu.ram[4] == 3040
    assert cpu.ram[3032] == 32
    assert cpu.ram[3046] == 46
    assert cpu.stack() == [6084]


def test_static_names_are_module_scoped():
    gen = CodeGenerator("Foo", LabelCounter(), comments=False)
    assert gen.generate(parse_command("push static 3"))[0] == "@Foo.3"


def test_static_slots_do_not_collide_between_modules():
    lines = translate_program([("A", "push constant 5\npop static 0"),
                               ("B", "push constant 9\npop static 0")], bootstrap=False)
    result = assemble("\n".join(lines))
    cpu = HackCPU(result.words, {0: 256})
    cpu.run()
    variables = result.symtbl.variable_map
    assert variables["A.0"] != variables["B.0"]
    assert cpu.ram[variables["A.0"]] == 5
    assert cpu.ram[variables["B.0"]] == 9


@pytest.mark.parametrize("line", [
    "push pointer 2", "pop pointer 2",
    "push temp 8", "pop temp 8",
    "push static 240", "pop static 240",
])
def test_segment_offset_limits(line):
    with pytest.raises(AsmRangeError):
        translate_module("M", line)


def test_segment_error_carries_location():
    with pytest.raises(AsmRangeError) as exc:
        translate_module("M", "push constant 1\npush pointer 2")
    assert exc.value.lineno == 2
    assert exc.value.module == "M"
    assert exc.value.line == "push pointer 2"


def test_largest_valid_offsets():
    lines = translate_module("M", "push temp 7\npop static 239\npush pointer 1", comments=False)
    assert "@R12" in lines
    assert "@M.239" in lines
    assert "@THAT" in lines


# --------------------------------------------------
# branching
# --------------------------------------------------
def test_loop_with_if_goto():
    src = """
push constant 0
pop local 0
push constant 5
pop local 1
label LOOP
push local 1
push local 0
add
pop local 0
push local 1
push constant 1
sub
pop local 1
push local 1
if-goto LOOP
push local 0
"""
    cpu = run_vm(src, {1: 300})
    assert cpu.stack() == [15]


def test_goto_skips_code():
    cpu = run_vm("push constant 1\ngoto SKIP\npush constant 2\nlabel SKIP\npush constant 3")
    assert cpu.stack() == [1, 3]


def test_if_goto_falls_through_on_zero():
    cpu = run_vm("push constant 0\nif-goto SKIP\npush constant 2\nlabel SKIP\npush constant 3")
    assert cpu.stack() == [2, 3]


def test_label_is_emitted_bare():
    gen = CodeGenerator("M", LabelCounter(), comments=False)
    assert gen.generate(parse_command("label LOOP")) == ["(LOOP)"]


# --------------------------------------------------
# functions
# --------------------------------------------------
def test_function_zeroes_locals():
    lines = translate_module("M", "function f 3")
    result = assemble("\n".join(lines))
    cpu = HackCPU(result.words, {0: 300, 300: 11, 301: 22, 302: 33})
    cpu.run()
    assert cpu.ram[0] == 303
    assert cpu.ram[300:303] == [0, 0, 0]


def test_call_return_labels_are_unique_per_site():
    counter = LabelCounter()
    a = translate_module("A", "call f 2\ncall f 2", counter)
    b = translate_module("B", "call f 2", counter)
    labels = [l for l in labels_of(a + b) if l.startswith("f$ret.")]
    assert labels == ["f$ret.0", "f$ret.1", "f$ret.2"]


def test_return_restores_caller_frame():
    lines = translate_module("M", "function f 3\npush constant 42\nreturn")
    result = assemble("\n".join(lines))
    ret_addr = len(result.words)
    # callee: 2 arguments at 293..294, frame at 295..299, LCL = SP = 300
    ram = {
        0: 300, 1: 300, 2: 293, 3: 5000, 4: 6000,
        293: 1, 294: 2,
        295: ret_addr, 296: 280, 297: 270, 298: 3000, 299: 4000,
    }
    cpu = HackCPU(result.words, ram)
    cpu.run()
    assert cpu.pc == ret_addr
    assert cpu.ram[0] == 294
    assert cpu.ram[293] == 42
    assert cpu.ram[1:5] == [280, 270, 3000, 4000]


def test_return_with_no_locals_keeps_return_address():
    # with no locals the return value lands where the frame sits
    lines = translate_module("M", "function g 0\npush constant 7\nreturn")
    result = assemble("\n".join(lines))
    ret_addr = len(result.words)
    ram = {0: 300, 1: 300, 2: 295, 295: ret_addr, 296: 1, 297: 2, 298: 3, 299: 4}
    cpu = HackCPU(result.words, ram)
    cpu.run()
    assert cpu.pc == ret_addr
    assert cpu.ram[0] == 296
    assert cpu.ram[295] == 7
    assert cpu.ram[1:5] == [1, 2, 3, 4]


def test_call_and_return_round_trip():
    src = """
push constant 10
push constant 20
call Math.add 2
label END
goto END
function Math.add 1
push argument 0
push argument 1
add
return
"""
    lines = translate_module("Main", src)
    result = assemble("\n".join(lines))
    end = result.symtbl.get_address("END")
    cpu = HackCPU(result.words, {0: 256, 1: 256, 2: 250, 3: 3000, 4: 4000})
    cpu.run(stop_at=end)
    assert cpu.pc == end
    assert cpu.stack() == [30]
    assert cpu.ram[0] == 257
    assert cpu.ram[1:5] == [256, 250, 3000, 4000]


FIB_MAIN = """
function Main.fib 0
push argument 0
push constant 2
lt
if-goto BASE
push argument 0
push constant 1
sub
call Main.fib 1
push argument 0
push constant 2
sub
call Main.fib 1
add
return
label BASE
push argument 0
return
"""

FIB_SYS = """
function Sys.init 0
push constant 9
call Main.fib 1
pop static 0
label HALT
goto HALT
"""


def test_recursive_program_with_bootstrap():
    lines = translate_program([("Main", FIB_MAIN), ("Sys", FIB_SYS)], bootstrap=True)
    result = assemble("\n".join(lines))
    halt = result.symtbl.get_address("HALT")
    cpu = HackCPU(result.words)
    cpu.run(max_steps=500000, stop_at=halt)
    assert cpu.pc == halt
    assert cpu.ram[result.symtbl.get_address("Sys.0")] == 34
    # Sys.init frame sits on top of the bootstrap call frame
    assert cpu.ram[0] == 261
    assert to_signed(cpu.ram[1]) == 261
