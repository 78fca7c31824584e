# assembler.py

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

# ---------------------------------------------------------------------
# assembler.py translates assembly language to the ROM text read by
# the loader: one 16-character bit string per instruction
# ---------------------------------------------------------------------

import re
import common
import architecture as arch
import arithmetic as arith

# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

class AssemblyError(ValueError):
    def __init__(self, line_number, msg):
        super().__init__(f"line {line_number}: {msg}")
        self.line_number = line_number
        self.msg = msg

# ----------------------------------------------------------------------
# Regular expressions for the parser
# ----------------------------------------------------------------------

name_parser = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
label_parser = re.compile(r"^([a-zA-Z_][a-zA-Z0-9_]*):\s*(.*)$")
reg_parser = re.compile(r"^[rR]([0-7])$")
int_parser = re.compile(r"^-?[0-9]+$")
hex_parser = re.compile(r"^0[xX]([0-9a-fA-F]+)$")
bin_parser = re.compile(r"^0[bB]([01]+)$")

# Operand widths for the value fields. A negative constant is accepted
# down to -2^(k-1) and stored in two's complement.

field_bits = {"k": 8, "x": 12}

# ----------------------------------------------------------------------
# Assembly language statement
# ----------------------------------------------------------------------

def mk_asm_stmt(line_number, src_line):
    return {
        "lineNumber": line_number,
        "srcLine": src_line,
        "label": "",
        "operation": "",
        "operands": [],
        "address": None,
    }

# Split a line into label, operation and operands. A comment runs from
# ';' to the end of the line.

def parse_asm_line(s):
    line = s["srcLine"]
    comment_start = line.find(";")
    if comment_start != -1:
        line = line[:comment_start]
    line = line.strip()

    m = label_parser.search(line)
    if m:
        s["label"] = m.group(1)
        line = m.group(2).strip()

    if line:
        parts = line.split(None, 1)
        s["operation"] = parts[0].lower()
        if len(parts) > 1:
            s["operands"] = [x.strip() for x in parts[1].split(",")]
    common.mode.devlog(f"parse_asm_line {s['lineNumber']} label=<{s['label']}>"
                       f" op=<{s['operation']}> operands={s['operands']}")

# ----------------------------------------------------------------------
# Operand parsers
# ----------------------------------------------------------------------

def parse_const(xs):
    if int_parser.search(xs):
        return int(xs)
    m = hex_parser.search(xs)
    if m:
        return int(m.group(1), 16)
    m = bin_parser.search(xs)
    if m:
        return int(m.group(1), 2)
    return None

def require_reg(s, xs):
    m = reg_parser.search(xs)
    if not m:
        raise AssemblyError(s["lineNumber"], f"{xs} must be a register r0 to r7")
    return int(m.group(1))

def require_cond(s, xs):
    if xs.upper() in arch.flag_names:
        return arch.flag_names.index(xs.upper())
    c = parse_const(xs)
    if c is None or not 0 <= c < arch.flg_size:
        raise AssemblyError(s["lineNumber"], f"{xs} must be a flag name or a number 0 to 15")
    return c

def require_value(s, symbol_table, xs, bits):
    v = parse_const(xs)
    if v is None:
        if not name_parser.search(xs):
            raise AssemblyError(s["lineNumber"], f"{xs} has invalid syntax")
        if xs not in symbol_table:
            raise AssemblyError(s["lineNumber"], f"symbol {xs} is not defined")
        v = symbol_table[xs]
    if not -(1 << (bits - 1)) <= v < (1 << bits):
        raise AssemblyError(s["lineNumber"], f"{xs} does not fit in {bits} bits")
    return v & ((1 << bits) - 1)

# ----------------------------------------------------------------------
# Code generation
# ----------------------------------------------------------------------

def mk_word(op, d, a, b):
    return ((op & 0xF) << 12) | ((d & 0xF) << 8) | ((a & 0xF) << 4) | (b & 0xF)

def mk_word48(op, d, k):
    return ((op & 0xF) << 12) | ((d & 0xF) << 8) | (k & 0xFF)

def mk_word412(op, x):
    return ((op & 0xF) << 12) | (x & 0xFFF)

def generate(s, symbol_table):
    op = arch.mnemonic.index(s["operation"])
    fmt = arch.layout[op]
    if len(s["operands"]) != len(fmt):
        raise AssemblyError(s["lineNumber"],
                            f"{s['operation']} takes {len(fmt)} operands"
                            f" but {len(s['operands'])} are given")
    fields = {"d": 0, "a": 0, "b": 0, "k": 0, "x": 0}
    for ch, xs in zip(fmt, s["operands"]):
        if ch in arch.register_fields:
            fields[ch] = require_reg(s, xs)
        elif ch == "c":
            fields["d"] = require_cond(s, xs)
        else:
            fields[ch] = require_value(s, symbol_table, xs, field_bits[ch])
    if "x" in fmt:
        return mk_word412(op, fields["x"])
    elif "k" in fmt:
        return mk_word48(op, fields["d"], fields["k"])
    return mk_word(op, fields["d"], fields["a"], fields["b"])

# ----------------------------------------------------------------------
# Assembler
# ----------------------------------------------------------------------

# Pass 1 parses each line, assigns ROM addresses and defines labels;
# pass 2 generates code now that every label is known.

def asm_pass1(src_text):
    stmts = []
    symbol_table = {}
    location_counter = 0
    for i, line in enumerate(src_text.replace("\r", "").split("\n")):
        s = mk_asm_stmt(i + 1, line)
        parse_asm_line(s)
        if s["label"]:
            if s["label"] in symbol_table:
                raise AssemblyError(s["lineNumber"], f"{s['label']} has already been defined")
            symbol_table[s["label"]] = location_counter
        if s["operation"]:
            if s["operation"] not in arch.mnemonic:
                raise AssemblyError(s["lineNumber"], f"{s['operation']} is not a valid operation")
            if location_counter >= arch.rom_size:
                raise AssemblyError(s["lineNumber"],
                                    f"program is longer than {arch.rom_size} instructions")
            s["address"] = location_counter
            location_counter += 1
        stmts.append(s)
    common.mode.devlog(f"asm_pass1: {location_counter} instructions, symbols={symbol_table}")
    return stmts, symbol_table

def asm_pass2(stmts, symbol_table):
    words = []
    for s in stmts:
        if s["address"] is None:
            continue
        w = generate(s, symbol_table)
        common.mode.devlog(f"  {arith.word_to_bin6(s['address'])} {arith.word_to_hex4(w)}"
                           f"  {s['srcLine'].strip()}")
        words.append(w)
    return words

def assemble_words(src_text):
    stmts, symbol_table = asm_pass1(src_text)
    return asm_pass2(stmts, symbol_table)

def assemble(src_text):
    return [arith.word_to_bin(w, arch.instr_bits) for w in assemble_words(src_text)]

def disassemble(word):
    return arch.show_instr(arith.limit16(word))
