# emulator.py

# Copyright (C) 2025 The Nano emulator authors. License: GNU GPL Version 3
# See README and LICENSE in the Nano emulator distribution.

# This file is part of the Nano emulator. The Nano emulator is free
# software: you can redistribute it and/or modify it under the terms
# of the GNU General Public License as published by the Free Software
# Foundation, either version 3 of the License, or (at your option)
# any later version. The Nano emulator is distributed in the hope that
# it will be useful, but WITHOUT ANY WARRANTY; without even the
# implied warranty of MERCHANTABILITY or FITNESS FOR A PARTICULAR
# PURPOSE. See the GNU General Public License for more details. You
# should have received a copy of the GNU General Public License along
# with the Nano emulator. If not, see <https://www.gnu.org/licenses/>.

# -------------------------------------------------------------------------
# emulator.py defines the machine language semantics and the run modes
# -------------------------------------------------------------------------

from collections import deque
from dataclasses import dataclass

import common
import architecture as arch
import arithmetic as arith

# -----------------------------------------------------------------------
# Default parameters
# -----------------------------------------------------------------------

default_rate = 0
trace_log_size = 7

# -----------------------------------------------------------------------
# Run modes
# -----------------------------------------------------------------------

# The mode is a value, not a class hierarchy: a kind tag and, for
# automatic mode, the advisory rate. Setup is the initial mode; a
# program is only executed in ManualStep or Automatic mode.

MODE_SETUP = "Setup"
MODE_MANUAL = "ManualStep"
MODE_AUTOMATIC = "Automatic"

@dataclass(frozen=True)
class Mode:
    kind: str
    rate: int = 0

    def show(self):
        if self.kind == MODE_AUTOMATIC:
            return f"Automatic ({self.rate})"
        elif self.kind == MODE_MANUAL:
            return "Manual"
        else:
            return "Setup"

Setup = Mode(MODE_SETUP)
ManualStep = Mode(MODE_MANUAL)

def Automatic(rate=default_rate):
    return Mode(MODE_AUTOMATIC, rate)

def is_running(es):
    return es.mode.kind in (MODE_MANUAL, MODE_AUTOMATIC)

# ------------------------------------------------------------------------
# Emulator state
# ------------------------------------------------------------------------

class EmulatorState:
    def __init__(self, arrbuf_module):
        self.ab = arrbuf_module # Store the arrbuf module in the emulator state
        self.vec = self.ab.new_state_vector()
        self.mode = Setup
        self.trace = deque([""] * trace_log_size, maxlen=trace_log_size)
        self.stores = []

        self.instr_code = 0
        self.ir_op = 0
        self.ir_d = 0
        self.ir_a = 0
        self.ir_b = 0
        self.ir_k = 0
        self.ir_x = 0
        self.next_instr_addr = 0

        common.mode.devlog("em.initialize_machine_state")

        self.rom = Store(self, 'rom', self.ab.ROM, arith.word_to_hex4)
        self.ram = Store(self, 'ram', self.ab.RAM, arith.word_to_hex2)
        self.reg = Store(self, 'reg', self.ab.REG, arith.word_to_hex2)
        self.inp = Store(self, 'inp', self.ab.INP, arith.word_to_hex2)
        self.out = Store(self, 'out', self.ab.OUT, arith.word_to_hex2)
        self.flg = FlagBank(self, 'flg', self.ab.FLG, show_flag)
        self.pc = GenRegister(self, 'pc', self.ab.SCB_PC, arith.limit_pc, arith.word_to_bin6)

        full_reset(self)

def show_flag(b):
    return 'T' if b else 'F'

# A store is a view of one section of the state vector. Indices wrap
# and values are truncated by the state vector itself; the store
# records which indices were fetched and stored during the current
# instruction so a display can highlight them.

class Store:
    def __init__(self, es, name, section, show_fcn):
        self.es = es
        self.name = name
        self.section = section
        self.size = section[1]
        self.show = show_fcn
        self.fetched = []
        self.stored = []
        self.touched = set()
        es.stores.append(self)

    def get(self, i):
        i = arith.wrap(i, self.size)
        x = self.es.ab.read(self.es, self.section, i)
        self.fetched.append(i)
        return x

    def put(self, i, x):
        i = arith.wrap(i, self.size)
        self.stored.append(i)
        self.touched.add(i)
        self.es.ab.write(self.es, self.section, i, x)

    @property
    def last_read(self):
        return self.fetched[-1] if self.fetched else None

    @property
    def last_write(self):
        return self.stored[-1] if self.stored else None

    def clear_access_log(self):
        self.fetched = []
        self.stored = []

    # Every index written since the last reset, kept across cycles

    def clear_touched(self):
        self.touched = set()

    def clear(self):
        self.es.ab.clear(self.es, self.section)

    def snapshot(self):
        return list(self.es.ab.section_values(self.es, self.section))

class FlagBank(Store):
    def get(self, i):
        return super().get(i) == 1

    def snapshot(self):
        return [x == 1 for x in super().snapshot()]

class GenRegister:
    def __init__(self, es, reg_name, scb_elt, limit_fcn, show_fcn):
        self.es = es
        self.reg_name = reg_name
        self.scb_elt = scb_elt
        self.limit = limit_fcn
        self.show = show_fcn

    def get(self):
        return self.limit(self.es.ab.read_scb(self.es, self.scb_elt))

    def put(self, x):
        common.mode.devlog(f"{self.reg_name} := {self.show(x)}")
        self.es.ab.write_scb(self.es, self.scb_elt, self.limit(x))

# -------------------------------------------------------------------------
# Read accessors
# -------------------------------------------------------------------------

def instr_count(es):
    return es.ab.read_instr_count(es)

def trace_lines(es):
    return list(es.trace)

def clear_access_logs(es):
    for s in es.stores:
        s.clear_access_log()

# -------------------------------------------------------------------------
# Trace log
# -------------------------------------------------------------------------

# The trace log always holds trace_log_size lines, newest last; every
# push evicts the oldest line.

def log(es, xs):
    common.mode.devlog(f"trace: {xs}")
    es.trace.append(xs)

# -------------------------------------------------------------------------
# Initialize machine state
# -------------------------------------------------------------------------

def program_reset(es):
    common.mode.devlog("reset the processor")
    n = es.ab.read_instr_count(es)
    for s in (es.ram, es.reg, es.inp, es.out, es.flg):
        s.clear()
    es.flg.put(arch.bit_tr, True)
    es.ab.reset_scb(es)
    es.mode = Setup
    es.next_instr_addr = 0
    clear_instr_decode(es)
    clear_access_logs(es)
    for s in es.stores:
        s.clear_touched()
    log(es, f"executed {n} instructions")

def full_reset(es):
    common.mode.devlog("clear rom and reset the processor")
    es.rom.clear()
    program_reset(es)

# -------------------------------------------------------------------------
# Decode instruction
# -------------------------------------------------------------------------

def clear_instr_decode(es):
    es.instr_code = 0

def decode(es):
    es.ir_op, es.ir_d, es.ir_a, es.ir_b, es.ir_k, es.ir_x = arch.split_instr(es.instr_code)
    common.mode.devlog(f"decode {arch.mnemonic[es.ir_op]} op={es.ir_op} d={es.ir_d} a={es.ir_a}"
                       f" b={es.ir_b} k={es.ir_k} x={es.ir_x}")

def show_trace_line(es, addr):
    return f"{arith.word_to_bin6(addr)} {arch.show_instr(es.instr_code)}"

# -------------------------------------------------------------------------
# Machine language semantics
# -------------------------------------------------------------------------

# cycle executes the instruction at pc. The caller must only invoke it
# in ManualStep or Automatic mode; the mode controller below does so.

def cycle(es):
    common.mode.devlog("em.cycle starting")
    clear_access_logs(es)
    clear_instr_decode(es)

    executed_instr_addr = es.pc.get()
    es.ab.write_scb(es, es.ab.SCB_CUR_INSTR_ADDR, executed_instr_addr)

    es.instr_code = es.rom.get(executed_instr_addr)
    common.mode.devlog(f"cycle pc={arith.word_to_bin6(executed_instr_addr)}"
                       f" ir={arith.word_to_hex4(es.instr_code)}")
    es.next_instr_addr = arith.incr_address(executed_instr_addr, 1)
    decode(es)

    if es.ir_op < limit_primary_code:
        dispatch_primary_opcode[es.ir_op](es)
        log(es, show_trace_line(es, executed_instr_addr))
    else:
        op_unknown(es)
        log(es, f"{arith.word_to_bin6(executed_instr_addr)} unknown opcode")

    es.pc.put(es.next_instr_addr)
    es.ab.incr_instr_count(es)

# -------------------------------------------------------------------------
# Instruction pattern functions
# -------------------------------------------------------------------------

def put_alu_flags(es, cc):
    for i in arch.alu_flags:
        es.flg.put(i, arch.get_bit_in_word_le(cc, i))

def put_cmp_flags(es, cc):
    for i in arch.cmp_flags:
        es.flg.put(i, arch.get_bit_in_word_le(cc, i))

def rrd_cc(f):
    def inner(es):
        a = es.reg.get(es.ir_a)
        b = es.reg.get(es.ir_b)
        primary, cc = f(a, b)
        es.reg.put(es.ir_d, primary)
        put_alu_flags(es, cc)
    return inner

def rd_cc(f):
    def inner(es):
        a = es.reg.get(es.ir_a)
        primary, cc = f(a)
        es.reg.put(es.ir_d, primary)
        put_alu_flags(es, cc)
    return inner

def ab_cc(f):
    def inner(es):
        a = es.reg.get(es.ir_a)
        b = es.reg.get(es.ir_b)
        put_cmp_flags(es, f(a, b))
    return inner

def op_halt(es):
    common.mode.devlog("halt")
    es.mode = Setup

def op_ldi(es):
    es.reg.put(es.ir_d, es.ir_k)

def op_ldm(es):
    es.reg.put(es.ir_d, es.ram.get(es.ir_k))

def op_stm(es):
    es.ram.put(es.ir_k, es.reg.get(es.ir_d))

def op_ldp(es):
    ptr = es.reg.get(es.ir_a)
    es.reg.put(es.ir_d, es.ram.get(ptr))

def op_stp(es):
    ptr = es.reg.get(es.ir_d)
    es.ram.put(ptr, es.reg.get(es.ir_a))

def op_brc(es):
    if es.flg.get(es.ir_d):
        common.mode.devlog("brc is branching")
        es.next_instr_addr = arith.limit_pc(es.ir_k)
    else:
        common.mode.devlog("brc is not branching")

def op_brp(es):
    if es.flg.get(es.ir_d):
        common.mode.devlog("brp is branching")
        es.next_instr_addr = arith.limit_pc(es.reg.get(es.ir_a))
    else:
        common.mode.devlog("brp is not branching")

def op_jmp(es):
    es.next_instr_addr = arith.limit_pc(es.ir_x)

def op_unknown(es):
    common.indicate_error(f"unknown opcode {es.ir_op}")

dispatch_primary_opcode = [
    op_halt,                 # 0
    rrd_cc(arith.op_add),    # 1
    rrd_cc(arith.op_sub),    # 2
    rrd_cc(arith.op_and),    # 3
    rrd_cc(arith.op_nor),    # 4
    rrd_cc(arith.op_xor),    # 5
    rd_cc(arith.op_rsh),     # 6
    ab_cc(arith.op_cmp),     # 7
    op_ldi,                  # 8
    op_ldm,                  # 9
    op_stm,                  # a
    op_ldp,                  # b
    op_stp,                  # c
    op_brc,                  # d
    op_brp,                  # e
    op_jmp                   # f
]

limit_primary_code = len(dispatch_primary_opcode)

# -------------------------------------------------------------------------
# Controlling instruction execution
# -------------------------------------------------------------------------

# Each command returns True if the current mode accepts it and False if
# it was ignored.

def request_manual_mode(es):
    if es.mode.kind in (MODE_SETUP, MODE_AUTOMATIC):
        common.mode.devlog(f"mode {es.mode.show()} -> Manual")
        es.mode = ManualStep
        return True
    return False

def request_automatic_mode(es, rate=default_rate):
    if es.mode.kind == MODE_SETUP:
        es.mode = Automatic(rate)
        common.mode.devlog(f"mode Setup -> {es.mode.show()}")
        return True
    return False

# The step command enters manual mode from Setup, demotes automatic
# mode to manual without executing, and in manual mode executes one
# instruction.

def request_step(es):
    if es.mode.kind == MODE_MANUAL:
        cycle(es)
        return True
    return request_manual_mode(es)

def clear(es):
    program_reset(es)
    return True

def clear_all(es):
    full_reset(es)
    return True

def set_input(es, i, x):
    es.inp.put(i, x)

# One iteration of an external run loop: execute an instruction only
# if the machine is in automatic mode

def run_tick(es):
    if es.mode.kind == MODE_AUTOMATIC:
        cycle(es)
        return True
    return False

def main_run(es, max_instructions):
    icount = 0
    while icount < max_instructions and run_tick(es):
        icount += 1
    common.mode.devlog(f"main_run stopped after {icount} instructions, mode={es.mode.show()}")
    return icount

# -------------------------------------------------------------------------
# Debugging/Output functions
# -------------------------------------------------------------------------

def dump_registers(es):
    print("\n--- Registers ---")
    for i, x in enumerate(es.reg.snapshot()):
        print(f"r{i}: {arith.word_to_hex2(x)} ({x})")
    print(f"pc: {es.pc.show(es.pc.get())}")
    print(f"mode: {es.mode.show()}")
    print(f"executed: {instr_count(es)}")
    print("-----------------")

def dump_flags(es):
    print("\n--- Flags ---")
    flags = es.flg.snapshot()
    print(" ".join(f"{arch.flag_names[i]}={show_flag(b)}" for i, b in enumerate(flags[:8])))
    print(" ".join(f"{arch.flag_names[i + 8]}={show_flag(b)}" for i, b in enumerate(flags[8:])))
    print("-----------------")

def dump_memory(es):
    print("\n--- ROM ---")
    rom = es.rom.snapshot()
    for i in range(0, arch.rom_size, arch.words_per_line):
        words = " ".join(arith.word_to_hex4(x) for x in rom[i:i + arch.words_per_line])
        print(f"{arith.word_to_bin6(i)}: {words}")
    print("\n--- RAM ---")
    ram = es.ram.snapshot()
    for i in range(0, arch.ram_size, arch.cells_per_line):
        cells = " ".join(arith.word_to_hex2(x) for x in ram[i:i + arch.cells_per_line])
        print(f"{arith.word_to_bin(i, 5)}: {cells}")
    print("-----------------")

def dump_trace(es):
    print("\n--- Trace ---")
    for xs in trace_lines(es):
        if xs:
            print(xs)
    print("-----------------")

# Registers written since the last reset, including those written with 0

def dump_modified_registers_summary(es):
    regs = es.reg.snapshot()
    modified = sorted(es.reg.touched)
    if not modified:
        print("\n--- No Registers Modified ---")
        return
    print("\n--- Modified Registers Summary ---")
    for i in modified:
        print(f"r{i}: {arith.word_to_hex2(regs[i])} ({regs[i]})")
    print("--------------------------------")
