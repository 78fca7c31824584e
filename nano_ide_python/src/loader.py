# loader.py

# Copyright (c) 2025 The Nano emulator authors. License: GNU GPL Version 3
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
# loader.py copies a program into the machine. A program is a ROM
# source, one 16-character bit string per instruction word, and an
# optional RAM source, one 8-character bit string per data cell. The
# word on line i goes to address i, wrapped to the size of the store.
# -------------------------------------------------------------------------

from pathlib import Path

import common
import architecture as arch
import arithmetic as arith
import emulator as em
import assembler

rom_suffix = ".rom.txt"
ram_suffix = ".ram.txt"
asm_suffix = ".asm.txt"

# ------------------------------------------------------------------------
# Parsing bit string sources
# ------------------------------------------------------------------------

# Copy the valid lines of a source into a store. Lines whose trimmed
# length differs from line_length are skipped; the first line of the
# right length that is not a bit string stops the copy. Words written
# before that line are kept. Returns None on success, or the 1-based
# number of the corrupt line.

def copy_lines_to_store(es, text, line_length, write_fcn):
    for i, line in enumerate(text.split("\n")):
        xs = line.strip()
        if len(xs) != line_length:
            continue
        if not arith.is_bit_string(xs, line_length):
            common.mode.devlog(f"copy_lines_to_store: bad line {i + 1} {xs!r}")
            return i + 1
        x = arith.bin_to_word(xs)
        common.mode.devlog(f"  {i:02d} {xs} {arith.word_to_hex4(x)}")
        write_fcn(es, i, x)
    return None

def parse_rom(es, text):
    return copy_lines_to_store(es, text, arch.rom_line_length, es.ab.write_rom)

def parse_ram(es, text):
    return copy_lines_to_store(es, text, arch.ram_line_length, es.ab.write_ram)

def report(es, xs):
    common.mode.errlog(xs)
    em.log(es, xs)

# ------------------------------------------------------------------------
# Loading a program
# ------------------------------------------------------------------------

# A missing source is None. Loading never resets the machine and never
# raises; problems are reported in the trace log. Returns True if the
# ROM source was loaded completely.

def load(es, rom_text, ram_text=None, source_id="program"):
    common.mode.devlog(f"loader.load {source_id}")
    if rom_text is None:
        report(es, "program not found")
        return False

    bad_line = parse_rom(es, rom_text)
    if bad_line is not None:
        report(es, f"ROM corrupted at line {bad_line}")
    else:
        em.log(es, f"loaded {source_id}")

    if ram_text is not None:
        bad_ram_line = parse_ram(es, ram_text)
        if bad_ram_line is not None:
            report(es, f"RAM corrupted at line {bad_ram_line}")

    return bad_line is None

# Programs may only be loaded while the machine is in Setup mode

def in_setup(es):
    if es.mode.kind != em.MODE_SETUP:
        common.mode.devlog(f"load ignored in mode {es.mode.show()}")
        return False
    return True

def load_program(es, rom_text, ram_text=None, source_id="program"):
    if not in_setup(es):
        return False
    return load(es, rom_text, ram_text, source_id)

# ------------------------------------------------------------------------
# Program files
# ------------------------------------------------------------------------

# A file that does not exist is a missing source and reads as None.
# A file that is not UTF-8 text raises UnicodeDecodeError.

def read_source(path):
    try:
        return Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return None

# Read a program source, reporting a file that is not text as corrupt.
# Returns (text, ok).

def read_program_source(es, path, store_name):
    try:
        return read_source(path), True
    except UnicodeDecodeError:
        report(es, f"{store_name} corrupted, {Path(path).name} is not text")
        return None, False

def is_assembly(path):
    return Path(path).name.endswith(asm_suffix)

def program_name(path):
    name = Path(path).name
    for suffix in (rom_suffix, asm_suffix):
        if name.endswith(suffix):
            return name[:-len(suffix)]
    return name

# The RAM source of prog.rom.txt or prog.asm.txt is prog.ram.txt in the
# same directory

def ram_path_for(path):
    p = Path(path)
    if not (p.name.endswith(rom_suffix) or is_assembly(p)):
        return None
    return p.with_name(program_name(p) + ram_suffix)

# Load a ROM file, or an assembly language file which is assembled
# first. An AssemblyError propagates to the caller.

def load_program_files(es, rom_path, ram_path=None):
    if not in_setup(es):
        return False
    rom_text, ok = read_program_source(es, rom_path, "ROM")
    if not ok:
        return False
    if rom_text is not None and is_assembly(rom_path):
        rom_text = "\n".join(assembler.assemble(rom_text))

    if ram_path is None:
        ram_path = ram_path_for(rom_path)
    ram_text = None
    if ram_path is not None:
        ram_text, ok = read_program_source(es, ram_path, "RAM")
    return load(es, rom_text, ram_text, Path(rom_path).name)

def list_programs(directory="."):
    return sorted(p.name for p in Path(directory).glob("*" + rom_suffix))
