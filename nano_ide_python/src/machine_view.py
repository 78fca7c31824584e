from PySide6.QtWidgets import QWidget
from PySide6.QtGui import QPainter, QColor, QFont, QPen
from PySide6.QtCore import Qt, QRect

import architecture as arch
import arithmetic as arith
import emulator as em

# Status line text for each run mode. A machine in Setup mode is not
# executing, so it is shown as halted.

def mode_text(mode):
    if mode.kind == em.MODE_AUTOMATIC:
        return f"AUTOMATIC rate={mode.rate}"
    elif mode.kind == em.MODE_MANUAL:
        return "MANUAL"
    return "HALTED"

class MachineView(QWidget):
    def __init__(self, emulator_state, parent=None):
        super().__init__(parent)
        self.es = emulator_state
        self.setMinimumSize(640, 420)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)

        # Define colors for the diagram
        background_color = QColor("#1a1a1a")
        component_fill_color = QColor("#2a2a2a")
        component_border_color = QColor("#007acc")
        text_color = QColor("#e0e0e0")
        value_color = QColor("#00ff00") # Green for dynamic values
        false_color = QColor("#666666")
        highlight_color = QColor("#ffff00") # Yellow for highlighting

        painter.fillRect(self.rect(), background_color)

        # --- Control block: PC, mode, executed count ---
        ctl_rect = QRect(20, 20, 260, 130)
        self.draw_block(painter, ctl_rect, "Control", component_fill_color,
                        component_border_color, text_color)
        painter.setFont(QFont("Courier New", 10))
        painter.setPen(value_color)
        x = ctl_rect.x() + 10
        y = ctl_rect.y() + 45
        painter.drawText(x, y, f"PC:   {self.es.pc.show(self.es.pc.get())}")
        painter.drawText(x, y + 20, f"MODE: {mode_text(self.es.mode)}")
        painter.drawText(x, y + 40, f"EXEC: {em.instr_count(self.es)}")
        last = self.es.ab.read_scb(self.es, self.es.ab.SCB_CUR_INSTR_ADDR)
        painter.drawText(x, y + 60, f"LAST: {arith.word_to_bin6(last)}")

        # --- Flags panel, two rows of eight ---
        flg_rect = QRect(ctl_rect.right() + 20, 20, 340, 130)
        self.draw_block(painter, flg_rect, "Flags", component_fill_color,
                        component_border_color, text_color)
        painter.setFont(QFont("Courier New", 9))
        flags = self.es.flg.snapshot()
        touched = self.es.flg.stored
        for i, b in enumerate(flags):
            col = i % 8
            row = i // 8
            fx = flg_rect.x() + 10 + col * 40
            fy = flg_rect.y() + 50 + row * 35
            if i in touched:
                painter.setPen(highlight_color)
            else:
                painter.setPen(value_color if b else false_color)
            painter.drawText(fx, fy, arch.flag_names[i])
            painter.drawText(fx + 8, fy + 15, em.show_flag(b))

        # --- Registers and ports ---
        io_rect = QRect(20, ctl_rect.bottom() + 20, 260, 200)
        self.draw_block(painter, io_rect, "Registers / Ports", component_fill_color,
                        component_border_color, text_color)
        painter.setFont(QFont("Courier New", 9))
        regs = self.es.reg.snapshot()
        inps = self.es.inp.snapshot()
        outs = self.es.out.snapshot()
        for i in range(arch.reg_size):
            ry = io_rect.y() + 45 + i * 18
            painter.setPen(highlight_color if i == self.es.reg.last_write else value_color)
            painter.drawText(io_rect.x() + 10, ry, f"r{i} {arith.word_to_hex2(regs[i])}")
            painter.setPen(value_color)
            painter.drawText(io_rect.x() + 90, ry, f"in{i} {arith.word_to_hex2(inps[i])}")
            painter.drawText(io_rect.x() + 175, ry, f"out{i} {arith.word_to_hex2(outs[i])}")

        # --- Trace log, newest last ---
        trace_rect = QRect(io_rect.right() + 20, io_rect.y(), 340, 200)
        self.draw_block(painter, trace_rect, "Trace", component_fill_color,
                        component_border_color, text_color)
        painter.setFont(QFont("Courier New", 9))
        lines = em.trace_lines(self.es)
        for i, xs in enumerate(lines):
            painter.setPen(highlight_color if i == len(lines) - 1 else text_color)
            painter.drawText(trace_rect.x() + 10, trace_rect.y() + 45 + i * 20, xs)

        painter.end()

    def draw_block(self, painter, rect, title, fill, border, text):
        painter.fillRect(rect, fill)
        painter.setPen(QPen(border, 2))
        painter.drawRect(rect)
        painter.setPen(text)
        painter.setFont(QFont("Arial", 12, QFont.Bold))
        painter.drawText(rect.adjusted(0, 5, 0, -rect.height() + 25), Qt.AlignCenter, title)

    def update_view(self):
        self.update() # Schedules a paintEvent call
