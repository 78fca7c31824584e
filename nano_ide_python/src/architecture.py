# architecture.py

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

# --------------------------------------------------------------------
# architecture.py defines global constants and tables specifying
# store sizes, opcodes, mnemonics, operand layouts, and flag bits
# --------------------------------------------------------------------

# --------------------------------------------------------------------
# Bit indexing
# --------------------------------------------------------------------

# Bits are indexed Little End: the least significant (rightmost) bit
# has index 0. An instruction word is written Big End in program
# files, so the first character of a ROM line is bit 15.

def get_bit_in_word_le(w, i):
    return (w >> i) & 0x0001

def put_bit_in_word_le(x, i, b):
    return x & mask_to_clear_bit_le(i) if b == 0 else x | mask_to_set_bit_le(i)

def mask_to_clear_bit_le(i):
    return ~(1 << i) & 0xFFFF

def mask_to_set_bit_le(i):
    return (1 << i) & 0xFFFF

# Extract the field of the given size whose lowest bit is at index i

def get_field_le(w, i, size):
    return (w >> i) & ((1 << size) - 1)

# --------------------------------------------------------------------
# Architecture constants
# --------------------------------------------------------------------

rom_size = 64   # instruction words, addressed by the 6-bit pc
ram_size = 32   # data cells
reg_size = 8    # general registers
inp_size = 8    # input ports
out_size = 8    # output ports
flg_size = 16   # condition flags

instr_bits = 16
cell_bits = 8

rom_line_length = instr_bits
ram_line_length = cell_bits

words_per_line = 8  # ROM words shown per row in dumps and views
cells_per_line = 4  # RAM cells shown per row

# --------------------------------------------------------------------
# Opcodes
# --------------------------------------------------------------------

# The opcode is the top 4 bits of the instruction. All 16 values are
# defined.

op_halt = 0x0
op_add = 0x1
op_sub = 0x2
op_and = 0x3
op_nor = 0x4
op_xor = 0x5
op_rsh = 0x6
op_cmp = 0x7
op_ldi = 0x8
op_ldm = 0x9
op_stm = 0xA
op_ldp = 0xB
op_stp = 0xC
op_brc = 0xD
op_brp = 0xE
op_jmp = 0xF

# This array is indexed by an opcode to give the corresponding
# mnemonic

mnemonic = [
    "halt", "add", "sub", "and",  # 0-3
    "nor", "xor", "rsh", "cmp",   # 4-7
    "ldi", "ldm", "stm", "ldp",   # 8-b
    "stp", "brc", "brp", "jmp"    # c-f
]

# --------------------------------------------------------------------
# Operand layouts
# --------------------------------------------------------------------

# Each layout names the fields an instruction uses, in the order they
# are written in assembly language and shown in the trace log.
#   d    bits 11..8   register (dest, src or ptr)
#   a    bits  7..4   register
#   b    bits  3..0   register
#   c    bits 11..8   condition flag index
#   k    bits  7..0   8-bit immediate or address
#   x    bits 11..0   12-bit address

fmt_none = ""
fmt_dab = "dab"
fmt_da = "da"
fmt_ab = "ab"
fmt_dk = "dk"
fmt_ck = "ck"
fmt_ca = "ca"
fmt_x = "x"

layout = [
    fmt_none,  # halt
    fmt_dab,   # add
    fmt_dab,   # sub
    fmt_dab,   # and
    fmt_dab,   # nor
    fmt_dab,   # xor
    fmt_da,    # rsh
    fmt_ab,    # cmp
    fmt_dk,    # ldi
    fmt_dk,    # ldm
    fmt_dk,    # stm
    fmt_da,    # ldp
    fmt_da,    # stp
    fmt_ck,    # brc
    fmt_ca,    # brp
    fmt_x      # jmp
]

# Fields that hold register numbers, by layout character

register_fields = "dab"

# --------------------------------------------------------------------
# Condition flags
# --------------------------------------------------------------------

# Flags 0-7 are the ALU flags, written by add, sub, and, nor, xor and
# rsh. Flags 8-15 are the comparison flags, written only by cmp. Flag
# 15 is always true, so "brc 15,x" is an unconditional branch.

# index  name  meaning
# ---------------------------------------
# 0      ZE    result is zero
# 1      NZ    result is not zero
# 2      CA    carry out of bit 7
# 3      NC    no carry
# 4      OF    two's complement overflow
# 5      NO    no overflow
# 6      EV    result is even
# 7      OD    result is odd
# 8      GR    a > b
# 9      LE    a <= b
# 10     LS    a < b
# 11     GE    a >= b
# 12     EQ    a == b
# 13     NE    a != b
# 14     US    unused, always false
# 15     TR    always true

bit_ze = 0
bit_nz = 1
bit_ca = 2
bit_nc = 3
bit_of = 4
bit_no = 5
bit_ev = 6
bit_od = 7
bit_gr = 8
bit_le = 9
bit_ls = 10
bit_ge = 11
bit_eq = 12
bit_ne = 13
bit_us = 14
bit_tr = 15

flag_names = [
    "ZE", "NZ", "CA", "NC", "OF", "NO", "EV", "OD",
    "GR", "LE", "LS", "GE", "EQ", "NE", "US", "TR"
]

alu_flags = range(0, 8)
cmp_flags = range(8, 16)

# Return a string listing the names of the flags that are set in a
# condition word; used in developer logging

def show_cc(c):
    return " ".join(flag_names[i] for i in range(flg_size) if get_bit_in_word_le(c, i))

# --------------------------------------------------------------------
# Instruction fields
# --------------------------------------------------------------------

# Split an instruction word into op, d, a, b, k, x. Every field is
# extracted regardless of the layout; the layout decides which ones
# an instruction uses.

def split_instr(w):
    op = get_field_le(w, 12, 4)
    d = get_field_le(w, 8, 4)
    a = get_field_le(w, 4, 4)
    b = get_field_le(w, 0, 4)
    k = get_field_le(w, 0, 8)
    x = get_field_le(w, 0, 12)
    return op, d, a, b, k, x

# Show the operands of an instruction the way they are written in
# assembly language. Register numbers and targets are shown as the
# machine uses them, after wrapping.

def show_operand(ch, d, a, b, k, x):
    if ch == "d":
        return f"r{d % reg_size}"
    elif ch == "a":
        return f"r{a % reg_size}"
    elif ch == "b":
        return f"r{b % reg_size}"
    elif ch == "c":
        return flag_names[d % flg_size].lower()
    elif ch == "k":
        return f"0x{k:02x}"
    elif ch == "x":
        return f"0x{x % rom_size:02x}"
    else:
        return "?"

def show_instr(w):
    op, d, a, b, k, x = split_instr(w)
    args = ",".join(show_operand(ch, d, a, b, k, x) for ch in layout[op])
    return f"{mnemonic[op]} {args}" if args else mnemonic[op]
