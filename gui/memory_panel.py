from PySide6.QtCore import QAbstractTableModel, Qt, QModelIndex, QTimer
from PySide6.QtGui import QBrush, QColor
from PySide6.QtWidgets import (QTableView, QWidget, QVBoxLayout, QLabel, QHBoxLayout,
                              QPushButton, QInputDialog, QMessageBox)
from debugger.session import parse_address

WINDOW = 256  # words shown at once
COLUMNS = ["Value", "Disassembly"]

class MemoryModel(QAbstractTableModel):
    """A 256-word window of VM memory, fetched over the debug connection."""
    def __init__(self, client, parent=None):
        super().__init__(parent)
        self.client = client
        self.base = 0x3000
        self.words = [0] * WINDOW
        self.listing = [""] * WINDOW
        self.pc = None
        self.breakpoints = set()

    def rowCount(self, parent=QModelIndex()):
        return WINDOW

    def columnCount(self, parent=QModelIndex()):
        return len(COLUMNS)

    def data(self, index, role=Qt.DisplayRole):
        if not index.isValid():
            return None
        addr = (self.base + index.row()) & 0xFFFF
        if role == Qt.DisplayRole:
            if index.column() == 0:
                return f"{self.words[index.row()]:04X}"  # 16-bit values (4 hex digits)
            return self.listing[index.row()]
        if role == Qt.BackgroundRole:
            if addr == self.pc:
                return QBrush(QColor("#fff3b0"))
            if addr in self.breakpoints:
                return QBrush(QColor("#f4c2c2"))
        return None

    def headerData(self, section, orientation, role):
        if role != Qt.DisplayRole:
            return None
        if orientation == Qt.Vertical:
            return f"x{(self.base + section) & 0xFFFF:04X}"
        return COLUMNS[section]

    def reload(self):
        """Pull the window, PC and breakpoints from the VM."""
        count = min(WINDOW, 0x10000 - self.base)
        self.words = self.client.read(self.base, count) + [0] * (WINDOW - count)
        lines = self.client.disassemble(self.base, count)
        # "xADDR: xWORD  TEXT" -> TEXT
        self.listing = [l.split("  ", 1)[1] for l in lines] + [""] * (WINDOW - count)
        self.pc = self.client.registers()["PC"]
        self.breakpoints = set(self.client.breakpoints())
        self.layoutChanged.emit()


class MemoryPanel(QWidget):
    """Scrollable memory view with a movable base address."""
    def __init__(self, client, parent=None):
        super().__init__(parent)
        self.client = client

        layout = QVBoxLayout(self)

        self.base_label = QLabel()
        layout.addWidget(self.base_label)

        self.model = MemoryModel(client, self)
        self.table_view = QTableView(self)
        self.table_view.setModel(self.model)
        self.table_view.setSelectionBehavior(QTableView.SelectRows)
        self.table_view.verticalHeader().setDefaultSectionSize(20)
        self.table_view.horizontalHeader().setStretchLastSection(True)
        layout.addWidget(self.table_view)

        controls = QHBoxLayout()
        self.btn_goto = QPushButton("Go To Address")
        self.btn_goto.clicked.connect(self.goto_address)
        controls.addWidget(self.btn_goto)
        self.btn_follow = QPushButton("Follow PC")
        self.btn_follow.clicked.connect(self.follow_pc)
        controls.addWidget(self.btn_follow)
        layout.addLayout(controls)

        # periodic refresh
        self.timer = QTimer(self)
        self.timer.timeout.connect(self.refresh)
        self.timer.start(500)  # ms
        self.refresh()

    def refresh(self):
        """Refresh the memory view"""
        try:
            self.model.reload()
        except (OSError, ValueError):
            self.timer.stop()
            return
        self.base_label.setText(f"Memory from x{self.model.base:04X}")

    def goto_address(self):
        text, ok = QInputDialog.getText(self, "Go To Address",
                                        "Enter memory address (hex):",
                                        text=f"x{self.model.base:04X}")
        if not ok:
            return
        try:
            self.model.base = parse_address(text)
        except ValueError:
            QMessageBox.warning(self, "Invalid Input",
                                "Please enter a valid hexadecimal address.")
            return
        self.refresh()

    def follow_pc(self):
        if self.model.pc is not None:
            self.model.base = self.model.pc
            self.refresh()
