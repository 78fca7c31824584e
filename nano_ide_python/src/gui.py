import sys
from pathlib import Path
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QAction, QIcon, QStandardItemModel, QStandardItem
from PySide6.QtWidgets import (
    QApplication, QMainWindow, QTextEdit, QVBoxLayout, QWidget, QLabel,
    QTableView, QHeaderView, QSplitter, QGroupBox, QFileDialog, QToolBar, QSpinBox
)

import common
import assembler
import loader
import emulator
import arrbuf
import architecture as arch
import arithmetic as arith
from machine_view import MachineView

default_interval_ms = 200

read_color = Qt.GlobalColor.cyan
write_color = Qt.GlobalColor.yellow

# The automatic mode rate is in instructions per second; 0 means the
# default pace

def interval_for_rate(rate):
    if rate <= 0:
        return default_interval_ms
    return max(1, 1000 // rate)

# A table model showing one store, cols elements per row. The elements
# fetched and stored by the last instruction are highlighted.

class StoreModel(QStandardItemModel):
    def __init__(self, store, cols, row_label):
        rows = (store.size + cols - 1) // cols
        super().__init__(rows, cols)
        self.store = store
        self.cols = cols
        self.setVerticalHeaderLabels([row_label(r * cols) for r in range(rows)])
        if cols > 1:
            self.setHorizontalHeaderLabels([f"+{i:X}" for i in range(cols)])
        else:
            self.setHorizontalHeaderLabels(["Value"])

    def update(self):
        self.blockSignals(True)
        for i, x in enumerate(self.store.snapshot()):
            item = QStandardItem(self.store.show(x))
            if i == self.store.last_write:
                item.setBackground(write_color)
            elif i == self.store.last_read:
                item.setBackground(read_color)
            item.setEditable(False)
            self.setItem(i // self.cols, i % self.cols, item)
        self.blockSignals(False)
        self.layoutChanged.emit()

# Input ports can be edited; a new value is written with set_input

class InputModel(StoreModel):
    def __init__(self, es, row_label):
        super().__init__(es.inp, 1, row_label)
        self.es = es
        self.itemChanged.connect(self.on_item_changed)

    def update(self):
        super().update()
        self.blockSignals(True)
        for r in range(self.rowCount()):
            self.item(r, 0).setEditable(True)
        self.blockSignals(False)

    def on_item_changed(self, item):
        text = item.text().strip()
        try:
            x = int(text, 16)
        except ValueError:
            common.mode.errlog(f"input {item.row()}: {text} is not a hex number")
            self.update()
            return
        emulator.set_input(self.es, item.row(), x)
        self.update()

class FlagModel(StoreModel):
    def __init__(self, store):
        super().__init__(store, 8, lambda i: "ALU" if i < 8 else "CMP")
        self.setHorizontalHeaderLabels([f"{i}" for i in range(8)])

    def update(self):
        super().update()
        for i in range(self.store.size):
            item = self.item(i // self.cols, i % self.cols)
            item.setText(f"{arch.flag_names[i]} {item.text()}")

class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle(common.APP_TITLE)
        self.setGeometry(100, 100, 1300, 850)

        self.es = emulator.EmulatorState(arrbuf)
        self.timer = QTimer(self)
        self.timer.timeout.connect(self.tick)

        # Create main horizontal splitter
        main_splitter = QSplitter(Qt.Orientation.Horizontal)
        self.setCentralWidget(main_splitter)

        # Left side: memories and the message log
        left_splitter = QSplitter(Qt.Orientation.Vertical)
        main_splitter.addWidget(left_splitter)

        self.rom_model = StoreModel(self.es.rom, arch.words_per_line, arith.word_to_bin6)
        left_splitter.addWidget(self.store_group("ROM", self.rom_model))
        self.ram_model = StoreModel(self.es.ram, arch.cells_per_line,
                                    lambda i: arith.word_to_bin(i, 5))
        left_splitter.addWidget(self.store_group("RAM", self.ram_model))

        log_group = QGroupBox("Messages")
        log_layout = QVBoxLayout(log_group)
        self.io_log = QTextEdit()
        self.io_log.setReadOnly(True)
        log_layout.addWidget(self.io_log)
        left_splitter.addWidget(log_group)

        # Right side: registers, ports, flags and the machine view
        right_splitter = QSplitter(Qt.Orientation.Vertical)
        main_splitter.addWidget(right_splitter)

        reg_splitter = QSplitter(Qt.Orientation.Horizontal)
        self.reg_model = StoreModel(self.es.reg, 1, lambda i: f"r{i}")
        reg_splitter.addWidget(self.store_group("Registers", self.reg_model))
        self.inp_model = InputModel(self.es, lambda i: f"in{i}")
        reg_splitter.addWidget(self.store_group("Inputs", self.inp_model))
        self.out_model = StoreModel(self.es.out, 1, lambda i: f"out{i}")
        reg_splitter.addWidget(self.store_group("Outputs", self.out_model))
        right_splitter.addWidget(reg_splitter)

        self.flg_model = FlagModel(self.es.flg)
        right_splitter.addWidget(self.store_group("Flags", self.flg_model))

        self.machine_view = MachineView(self.es)
        right_splitter.addWidget(self.machine_view)
        right_splitter.setStretchFactor(2, 1)

        main_splitter.setStretchFactor(0, 1)
        main_splitter.setStretchFactor(1, 1)

        # Create Toolbar; the single key shortcuts follow the front panel
        self.toolbar = QToolBar("Main Toolbar")
        self.addToolBar(self.toolbar)

        self.load_action = self.add_action("document-open", "Load", "L", self.load_file)
        self.clear_action = self.add_action("edit-clear", "Clear", "C", self.clear)
        self.clear_all_action = self.add_action("edit-delete", "Clear All", "Shift+C", self.clear_all)
        self.run_action = self.add_action("media-playback-start", "Run", "R", self.run_code)
        self.step_action = self.add_action("media-skip-forward", "Step", "S", self.step_code)

        self.toolbar.addWidget(QLabel(" Rate "))
        self.rate_box = QSpinBox()
        self.rate_box.setRange(0, 1000)
        self.rate_box.setValue(emulator.default_rate)
        self.rate_box.setToolTip("Instructions per second in automatic mode (0 = default)")
        self.toolbar.addWidget(self.rate_box)

        self.update_views()

    def add_action(self, icon, text, shortcut, slot):
        action = QAction(QIcon.fromTheme(icon), text, self)
        action.setShortcut(shortcut)
        action.triggered.connect(slot)
        self.toolbar.addAction(action)
        return action

    def store_group(self, title, model):
        group = QGroupBox(title)
        layout = QVBoxLayout(group)
        view = QTableView()
        view.setModel(model)
        view.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        layout.addWidget(view)
        return group

    def update_views(self):
        for model in (self.rom_model, self.ram_model, self.reg_model, self.inp_model,
                      self.out_model, self.flg_model):
            model.update()
        self.machine_view.update_view()
        self.load_action.setEnabled(self.es.mode.kind == emulator.MODE_SETUP)
        self.run_action.setEnabled(self.es.mode.kind == emulator.MODE_SETUP)

    def load_file(self):
        file_name, _ = QFileDialog.getOpenFileName(
            self, "Load Program", ".",
            "Programs (*.rom.txt *.asm.txt);;All Files (*)")
        if not file_name:
            return
        try:
            ok = loader.load_program_files(self.es, file_name)
        except (OSError, assembler.AssemblyError) as e:
            self.io_log.append(f"Error loading {file_name}: {e}")
            return
        self.io_log.append(f"{'Loaded' if ok else 'Could not load'} {file_name}")
        self.setWindowTitle(f"{common.APP_TITLE} - {Path(file_name).name}")
        self.update_views()

    def clear(self):
        self.timer.stop()
        emulator.clear(self.es)
        self.io_log.append("Processor reset.")
        self.update_views()

    def clear_all(self):
        self.timer.stop()
        emulator.clear_all(self.es)
        self.io_log.append("Processor and ROM reset.")
        self.update_views()

    def run_code(self):
        rate = self.rate_box.value()
        if emulator.request_automatic_mode(self.es, rate):
            self.timer.start(interval_for_rate(rate))
        self.update_views()

    def step_code(self):
        emulator.request_step(self.es)
        if self.es.mode.kind != emulator.MODE_AUTOMATIC:
            self.timer.stop()
        self.update_views()

    # One automatic mode cycle per timer tick

    def tick(self):
        if not emulator.run_tick(self.es):
            self.timer.stop()
        elif not emulator.is_running(self.es):
            self.timer.stop()
            self.io_log.append(f"Halted after {emulator.instr_count(self.es)} instructions.")
        self.update_views()

def start_gui():
    app = QApplication(sys.argv)
    app.setStyleSheet("""
    QMainWindow {
        background-color: #1a1a1a;
        color: #e0e0e0;
    }
    QTextEdit {
        background-color: #2a2a2a;
        color: #00ff00;
        border: 1px solid #007acc;
        padding: 5px;
        font-family: "Consolas", "Monaco", "Courier New", monospace;
        font-size: 10pt;
    }
    QTableView {
        background-color: #2a2a2a;
        color: #e0e0e0;
        border: 1px solid #007acc;
        gridline-color: #444444;
        font-family: "Consolas", "Monaco", "Courier New", monospace;
    }
    QHeaderView::section {
        background-color: #3a3a3a;
        color: #e0e0e0;
        padding: 2px;
        border: 1px solid #007acc;
    }
    QGroupBox {
        color: #e0e0e0;
        border: 1px solid #007acc;
        border-radius: 4px;
        margin-top: 10px;
    }
    QGroupBox::title {
        subcontrol-origin: margin;
        subcontrol-position: top left;
        padding: 0 3px;
        color: #00ff00;
        font-weight: bold;
    }
    QToolBar {
        background-color: #2a2a2a;
        border: none;
        padding: 5px;
    }
    QToolButton, QLabel {
        color: #e0e0e0;
    }
    QToolButton:hover {
        background-color: #005f99;
        border-radius: 3px;
    }
    """)
    window = MainWindow()
    window.show()
    return app.exec()
