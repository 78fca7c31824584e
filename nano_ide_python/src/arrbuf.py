# arrbuf.py

# Copyright (C) 2025 The Nano emulator authors. License: GNU GPL
# Version 3. See README and LICENSE in the Nano emulator
# distribution.

# This file is part of the Nano emulator. The Nano emulator is
# free software: you can redistribute it and/or modify it under
# the terms of the GNU General Public License as published by
# the Free Software Foundation, Version 3 of the License. The
# Nano emulator is distributed in the hope that it will be
# useful, but WITHOUT ANY WARRANTY; without even the implied
# warranty of MERCHANTABILITY or FITNESS FOR A PARTICULAR
# PURPOSE. See the GNU General Public License for more details.
# You should have received a copy of the GNU General Public
# License along with the Nano emulator. If not, see
# <https://www.gnu.org/licenses/>.

# arrbuf.py defines the system state vector, a single fixed
# length array holding every store of the machine.

import arithmetic as arith
import architecture as arch

# -------------------------------------------------------------
# Memory map of the emulator state array
# -------------------------------------------------------------

# Each section is a fixed number of elements. The state vector
# never grows or shrinks; every access wraps its index into the
# section and truncates the value to the section's width.

SCB_SIZE = 3  # emulator variables
ROM_SIZE = arch.rom_size
RAM_SIZE = arch.ram_size
REG_SIZE = arch.reg_size
INP_SIZE = arch.inp_size
OUT_SIZE = arch.out_size
FLG_SIZE = arch.flg_size

STATE_VEC_SIZE = (SCB_SIZE + ROM_SIZE + RAM_SIZE + REG_SIZE +
                  INP_SIZE + OUT_SIZE + FLG_SIZE)

# Offsets of state vector sections

SCB_OFFSET = 0
ROM_OFFSET = SCB_OFFSET + SCB_SIZE
RAM_OFFSET = ROM_OFFSET + ROM_SIZE
REG_OFFSET = RAM_OFFSET + RAM_SIZE
INP_OFFSET = REG_OFFSET + REG_SIZE
OUT_OFFSET = INP_OFFSET + INP_SIZE
FLG_OFFSET = OUT_OFFSET + OUT_SIZE

# A section is described by its offset, its size, and the
# function that truncates a value to its width

ROM = (ROM_OFFSET, ROM_SIZE, arith.limit16)
RAM = (RAM_OFFSET, RAM_SIZE, arith.limit8)
REG = (REG_OFFSET, REG_SIZE, arith.limit8)
INP = (INP_OFFSET, INP_SIZE, arith.limit8)
OUT = (OUT_OFFSET, OUT_SIZE, arith.limit8)
FLG = (FLG_OFFSET, FLG_SIZE, arith.bool_to_bit)

def new_state_vector():
    return [0] * STATE_VEC_SIZE

# -------------------------------------------------------------
# General access functions
# -------------------------------------------------------------

def read(es, section, i):
    offset, size, limit = section
    return es.vec[offset + arith.wrap(i, size)]

def write(es, section, i, x):
    offset, size, limit = section
    es.vec[offset + arith.wrap(i, size)] = limit(x)

def clear(es, section):
    offset, size, limit = section
    for i in range(size):
        es.vec[offset + i] = 0

def section_values(es, section):
    offset, size, limit = section
    return es.vec[offset:offset + size]

# -------------------------------------------------------------
# System control block
# -------------------------------------------------------------

SCB_PC = 0  # program counter
SCB_N_INSTR_EXECUTED = 1  # count instr executed
SCB_CUR_INSTR_ADDR = 2  # addr of the instr last executed

def write_scb(es, elt, x):
    es.vec[SCB_OFFSET + elt] = x

def read_scb(es, elt):
    return es.vec[SCB_OFFSET + elt]

# Clear the SCB, putting the system into initial state

def reset_scb(es):
    clear_instr_count(es)
    write_scb(es, SCB_PC, 0)
    write_scb(es, SCB_CUR_INSTR_ADDR, 0)

def write_instr_count(es, n):
    write_scb(es, SCB_N_INSTR_EXECUTED, n)

def read_instr_count(es):
    return read_scb(es, SCB_N_INSTR_EXECUTED)

def clear_instr_count(es):
    write_instr_count(es, 0)

def incr_instr_count(es):
    write_instr_count(es, read_instr_count(es) + 1)

# -------------------------------------------------------------
# Stores
# -------------------------------------------------------------

def write_rom(es, a, x):
    write(es, ROM, a, x)

def write_ram(es, a, x):
    write(es, RAM, a, x)
