from PySide6.QtWidgets import (QWidget, QPushButton, QHBoxLayout, QLabel,
                               QInputDialog, QMessageBox)
from PySide6.QtCore import QTimer
from debugger.session import parse_address

class ControlPanel(QWidget):
    """
    Continue / Pause / Step / Breakpoint buttons and a status label showing
    the run state and the instruction at PC.
    """
    def __init__(self, client, on_change, parent=None):
        super().__init__(parent)
        self.client = client
        self.on_change = on_change

        self.btn_continue = QPushButton("Continue")
        self.btn_pause = QPushButton("Pause")
        self.btn_step = QPushButton("Step")
        self.btn_break = QPushButton("Breakpoint…")
        self.status = QLabel("Attached")

        lay = QHBoxLayout(self)
        for b in (self.btn_continue, self.btn_pause, self.btn_step,
                  self.btn_break, self.status):
            lay.addWidget(b)

        # connections
        self.btn_continue.clicked.connect(lambda: self.send(self.client.resume))
        self.btn_pause.clicked.connect(lambda: self.send(self.client.pause))
        self.btn_step.clicked.connect(lambda: self.send(self.client.step))
        self.btn_break.clicked.connect(self.toggle_breakpoint)

        self.timer = QTimer(self)
        self.timer.timeout.connect(self.update_status)
        self.timer.start(250)

    def send(self, action):
        try:
            action()
        except (OSError, ValueError) as e:
            self.status.setText(str(e))
            return
        self.update_status()
        self.on_change()

    def toggle_breakpoint(self):
        text, ok = QInputDialog.getText(self, "Breakpoint",
                                        "Toggle breakpoint at address (hex):",
                                        text="x3000")
        if not ok:
            return
        try:
            addr = parse_address(text)
            now_set = self.client.toggle_breakpoint(addr)
        except ValueError:
            QMessageBox.warning(self, "Invalid Input",
                                "Please enter a valid hexadecimal address.")
            return
        except OSError as e:
            self.status.setText(str(e))
            return
        self.status.setText(f"Breakpoint {'set' if now_set else 'cleared'} at x{addr:04X}")

    def update_status(self):
        try:
            state = self.client.status()["state"]
            (listing,) = self.client.disassemble()
        except (OSError, ValueError) as e:
            self.timer.stop()
            self.status.setText(f"Detached: {e}")
            return
        self.status.setText(f"{state} | {listing}")
        paused = state == "paused"
        self.btn_continue.setEnabled(paused)
        self.btn_step.setEnabled(paused)
        self.btn_pause.setEnabled(state == "running")
