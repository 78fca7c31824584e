# main.py

import sys
import argparse
from pathlib import Path

# Add the src directory to the Python path
sys.path.insert(0, str(Path(__file__).resolve().parent))

import common
import assembler
import loader
import emulator as em
import arrbuf as ab

default_max_instructions = 1000

def output_path_for(file_path):
    p = Path(file_path)
    name = loader.program_name(p) if loader.is_assembly(p) else p.stem
    return p.with_name(name + loader.rom_suffix)

def assemble_file(file_path):
    src_text = Path(file_path).read_text(encoding="utf-8")
    return assembler.assemble(src_text)

def assemble_command(file_path, out_path=None):
    try:
        rom_lines = assemble_file(file_path)
        out_path = Path(out_path) if out_path else output_path_for(file_path)
        out_path.write_text("\n".join(rom_lines) + "\n", encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: {e}")
        return 1
    except assembler.AssemblyError as e:
        print(f"Assembly error in {file_path}, {e}")
        return 1
    print(f"Assembly successful: {len(rom_lines)} instructions written to {out_path}")
    return 0

# Load a program into a freshly reset machine. An assembly language
# file is assembled first; anything else is read as ROM text.

def load_file(es, file_path, ram_path=None):
    em.full_reset(es)
    return loader.load_program_files(es, file_path, ram_path)

def run_file(file_path, ram_path=None, max_instructions=default_max_instructions,
             rate=em.default_rate, dump_mem=False, dump_regs=False, verbose=False):
    if verbose:
        common.mode.set_trace()
        common.mode.show_mode()
    if not Path(file_path).is_file():
        print(f"Error: File not found at {file_path}")
        return 1
    es = em.EmulatorState(ab)
    try:
        loaded = load_file(es, file_path, ram_path)
    except OSError as e:
        print(f"Error: {e}")
        return 1
    except assembler.AssemblyError as e:
        print(f"Assembly error in {file_path}, {e}")
        return 1
    if not loaded:
        em.dump_trace(es)
        print(f"Error: {file_path} was not loaded")
        return 1

    print("\n--- Running Emulator ---")
    em.request_automatic_mode(es, rate)
    icount = em.main_run(es, max_instructions)
    if em.is_running(es):
        common.modal_warning(f"stopped after {icount} instructions (limit reached)")
    else:
        print(f"Emulator halted after {icount} instructions.")
    print("------------------------")

    em.dump_trace(es)
    em.dump_modified_registers_summary(es)
    em.dump_flags(es)

    if dump_regs:
        em.dump_registers(es)
    if dump_mem:
        em.dump_memory(es)
    return 0

def list_command(directory):
    programs = loader.list_programs(directory)
    if not programs:
        print(f"No programs found in {directory}")
    for name in programs:
        print(name)
    return 0

def gui_command():
    import gui
    return gui.start_gui()

def build_parser():
    parser = argparse.ArgumentParser(description="Nano emulator CLI Tool")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Assemble command
    assemble_parser = subparsers.add_parser("assemble", help="Assemble a Nano assembly file")
    assemble_parser.add_argument("file", help="Path to the assembly file (.asm.txt)")
    assemble_parser.add_argument("-o", "--output", help="Path of the ROM file to write")

    # Run command
    run_parser = subparsers.add_parser("run", help="Load and run a Nano program")
    run_parser.add_argument("file", help="Path to the program (.rom.txt or .asm.txt)")
    run_parser.add_argument("--ram", help="Path to the RAM file (.ram.txt)")
    run_parser.add_argument("--max-instructions", type=int, default=default_max_instructions,
                            help="Stop after this many instructions")
    run_parser.add_argument("--rate", type=int, default=em.default_rate,
                            help="Automatic mode rate (advisory)")
    run_parser.add_argument("--mem-dump", action="store_true", help="Dump memory after execution")
    run_parser.add_argument("--reg-dump", action="store_true", help="Dump registers after execution")
    run_parser.add_argument("--verbose", action="store_true", help="Enable verbose debug logging")

    # List command
    list_parser = subparsers.add_parser("list", help="List the programs in a directory")
    list_parser.add_argument("directory", nargs="?", default=".", help="Directory to search")

    # GUI command
    subparsers.add_parser("gui", help="Start the graphical emulator")
    return parser

def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "assemble":
        return assemble_command(args.file, args.output)
    elif args.command == "run":
        status = run_file(args.file, args.ram, args.max_instructions, args.rate,
                          args.mem_dump, args.reg_dump, args.verbose)
        common.mode.clear_trace()
        return status
    elif args.command == "list":
        return list_command(args.directory)
    elif args.command == "gui":
        return gui_command()
    else:
        parser.print_help()
        return 0

if __name__ == "__main__":
    sys.exit(main())
