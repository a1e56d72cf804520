from PySide6.QtWidgets import QWidget, QLabel, QLineEdit, QGridLayout
from PySide6.QtCore import Qt, QTimer
from lc3.registers import GENERAL_REGS

ROWS = [f"R{i}" for i in range(GENERAL_REGS)] + ["PC", "COND"]

class RegisterPanel(QWidget):
    """
    R0–R7, PC and the condition code in a read-only grid.
    Values are pulled from the debug server every 200 ms.
    """
    def __init__(self, client, parent=None):
        super().__init__(parent)
        self.client = client
        self.edits = {}

        layout = QGridLayout(self)
        for row, name in enumerate(ROWS):
            lbl = QLabel(name)
            edit = QLineEdit()
            edit.setReadOnly(True)
            edit.setAlignment(Qt.AlignRight)
            layout.addWidget(lbl, row, 0)
            layout.addWidget(edit, row, 1)
            self.edits[name] = edit

        layout.setColumnStretch(1, 1)

        # periodic refresh
        self.timer = QTimer(self)
        self.timer.timeout.connect(self.update_view)
        self.timer.start(200)   # ms

    def update_view(self):
        """Update register display from the VM"""
        try:
            regs = self.client.registers()
            cond = self.client.condition()
        except (OSError, ValueError):
            self.timer.stop()
            return
        for name, value in regs.items():
            self.edits[name].setText(f"{value:04X}")  # 16-bit values (4 hex digits)
        self.edits["COND"].setText(cond)
