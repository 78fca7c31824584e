# common.py

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

# ----------------------------------------------------------------------
# common.py
# ----------------------------------------------------------------------

APP_TITLE = "AnPU Nano emulator"

def stacktrace():
    import traceback
    traceback.print_stack()

# ----------------------------------------------------------------------
# Developer logging
# ----------------------------------------------------------------------

# devlog output is only shown when tracing is on (the --verbose flag
# of the command line tool); errlog output is shown unless show_err
# has been cleared, which the test suite does to keep output quiet.

class Mode:
    def __init__(self):
        self.trace = False
        self.show_err = True

    def set_trace(self):
        self.trace = True

    def clear_trace(self):
        self.trace = False

    def show_mode(self):
        print(f"trace={self.trace} show_err={self.show_err}")

    def devlog(self, xs):
        if self.trace:
            print(xs)

    def errlog(self, xs):
        if self.show_err:
            print(xs)

mode = Mode()

# ----------------------------------------------------------------------
# Logging error message
# ----------------------------------------------------------------------

def indicate_error(xs):
    print(f"\033[91m\033[1m{xs}\033[0m") # ANSI escape codes for red and bold
    stacktrace()

# ----------------------------------------------------------------------
# Dialogues with the user
# ----------------------------------------------------------------------

def modal_warning(msg):
    print(f"WARNING: {msg}")
