# arithmetic.py

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

# ------------------------------------------------------------------------
# arithmetic.py defines arithmetic for the architecture using Python
# arithmetic. This includes word representation, index wrapping, data
# conversions, and the ALU operations with their condition flags.
# ------------------------------------------------------------------------

import common
import architecture as arch

word16mask = 0x0000FFFF
word8mask = 0x000000FF
pcmask = 0x0000003F

# ------------------------------------------------------------------------
# Ensuring validity of words and indices
# ------------------------------------------------------------------------

# All operations that produce a word produce a valid word, which is
# represented as a nonnegative integer. For a k-bit word the value x
# satisfies 0 <= x < 2^k. Values that exceed the range are truncated,
# never rejected.

def limit16(x):
    return x & word16mask

def limit8(x):
    return x & word8mask

def limit_pc(x):
    return x & pcmask

# Every store index wraps around modulo the size of the store. Python's
# % always gives a nonnegative result for a positive size, so negative
# indices wrap as well.

def wrap(i, size):
    return i % size

# ------------------------------------------------------------------------
# Hexadecimal and binary notation
# ------------------------------------------------------------------------

hex_digit = ['0', '1', '2', '3', '4', '5', '6', '7', '8', '9', 'a', 'b', 'c', 'd', 'e', 'f']

def word_to_hex4(x):
    y = limit16(x)
    return (hex_digit[(y >> 12) & 0xF] + hex_digit[(y >> 8) & 0xF] +
            hex_digit[(y >> 4) & 0xF] + hex_digit[y & 0xF])

def word_to_hex2(x):
    y = limit8(x)
    return hex_digit[(y >> 4) & 0xF] + hex_digit[y & 0xF]

def word_to_bin(x, k):
    return format(x & ((1 << k) - 1), f"0{k}b")

def word_to_bin6(x):
    return word_to_bin(x, 6)

# A bit string is valid only if every character is a binary digit;
# int(xs, 2) alone would also accept "0b" prefixes, signs and
# underscores.

def is_bit_string(xs, k):
    return len(xs) == k and all(c in "01" for c in xs)

def bin_to_word(xs):
    return int(xs, 2)

# ------------------------------------------------------------------------
# Flag words
# ------------------------------------------------------------------------

def bool_to_bit(x):
    return 1 if x else 0

# Zero and parity flags are shared by every ALU operation

def zero_parity_cc(primary):
    cc = 0
    is0 = primary == 0
    even = primary % 2 == 0
    cc = arch.put_bit_in_word_le(cc, arch.bit_ze, bool_to_bit(is0))
    cc = arch.put_bit_in_word_le(cc, arch.bit_nz, bool_to_bit(not is0))
    cc = arch.put_bit_in_word_le(cc, arch.bit_ev, bool_to_bit(even))
    cc = arch.put_bit_in_word_le(cc, arch.bit_od, bool_to_bit(not even))
    return cc

# Carry and overflow are computed from the widened result before it is
# truncated. carry is bit 8 of the 9-bit result; the carry into bit 7
# is bit 7 of the result of the same operation on the low 7 bits, and
# two's complement overflow is carry in xor carry out of bit 7.

def addition_cc(primary, wide, wide7):
    carry_out = arch.get_bit_in_word_le(wide, 8)
    carry_in7 = arch.get_bit_in_word_le(wide7, 7)
    overflow = carry_in7 ^ carry_out
    cc = zero_parity_cc(primary)
    cc = arch.put_bit_in_word_le(cc, arch.bit_ca, carry_out)
    cc = arch.put_bit_in_word_le(cc, arch.bit_nc, 1 - carry_out)
    cc = arch.put_bit_in_word_le(cc, arch.bit_of, overflow)
    cc = arch.put_bit_in_word_le(cc, arch.bit_no, 1 - overflow)
    return cc

# ------------------------------------------------------------------------
# Operations for the instructions
# ------------------------------------------------------------------------

# Each ALU operation returns [primary, cc] where primary is the 8-bit
# result and cc is a word holding flags 0-7. Bitwise operations and
# the shift have no carry or overflow, so those flags are false.

def op_add(a, b):
    wide = limit8(a) + limit8(b)
    wide7 = (a & 0x7F) + (b & 0x7F)
    primary = limit8(wide)
    cc = addition_cc(primary, wide, wide7)
    common.mode.devlog(f"op_add a={a} b={b} primary={primary} cc=[{arch.show_cc(cc)}]")
    return [primary, cc]

def op_sub(a, b):
    wide = (limit8(a) - limit8(b)) & 0x1FF
    wide7 = ((a & 0x7F) - (b & 0x7F)) & 0xFF
    primary = limit8(wide)
    cc = addition_cc(primary, wide, wide7)
    common.mode.devlog(f"op_sub a={a} b={b} primary={primary} cc=[{arch.show_cc(cc)}]")
    return [primary, cc]

def logic_result(primary):
    primary = limit8(primary)
    return [primary, zero_parity_cc(primary)]

def op_and(a, b):
    return logic_result(a & b)

def op_nor(a, b):
    return logic_result(~(a | b))

def op_xor(a, b):
    return logic_result(a ^ b)

def op_rsh(a):
    return logic_result(limit8(a) >> 1)

# op_cmp returns a word holding flags 8-15. The operands are compared
# as 8-bit binary numbers.

def op_cmp(a, b):
    a = limit8(a)
    b = limit8(b)
    cc = 0
    cc = arch.put_bit_in_word_le(cc, arch.bit_gr, bool_to_bit(a > b))
    cc = arch.put_bit_in_word_le(cc, arch.bit_le, bool_to_bit(a <= b))
    cc = arch.put_bit_in_word_le(cc, arch.bit_ls, bool_to_bit(a < b))
    cc = arch.put_bit_in_word_le(cc, arch.bit_ge, bool_to_bit(a >= b))
    cc = arch.put_bit_in_word_le(cc, arch.bit_eq, bool_to_bit(a == b))
    cc = arch.put_bit_in_word_le(cc, arch.bit_ne, bool_to_bit(a != b))
    cc = arch.put_bit_in_word_le(cc, arch.bit_us, 0)
    cc = arch.put_bit_in_word_le(cc, arch.bit_tr, 1)
    common.mode.devlog(f"op_cmp a={a} b={b} cc=[{arch.show_cc(cc)}]")
    return cc

# ------------------------------------------------------------------------
# Addresses
# ------------------------------------------------------------------------

def incr_address(x, i):
    return limit_pc(x + i)
