from PySide6.QtWidgets import QMainWindow, QDockWidget, QApplication, QMessageBox
from PySide6.QtCore import Qt
from .register_panel import RegisterPanel
from .memory_panel import MemoryPanel
from .control_panel import ControlPanel
from debugger.client import DebugClient
import sys

class MainWindow(QMainWindow):
    def __init__(self, client: DebugClient):
        super().__init__()
        self.client = client
        host, port = client.sock.getpeername()[:2]
        self.setWindowTitle(f"LC-3 Debugger ({host}:{port})")

        # central widget: memory
        self.memory_panel = MemoryPanel(client)
        self.setCentralWidget(self.memory_panel)

        # dock 1: registers
        self.register_panel = RegisterPanel(client)
        reg_dock = QDockWidget("Registers", self)
        reg_dock.setWidget(self.register_panel)
        self.addDockWidget(Qt.LeftDockWidgetArea, reg_dock)

        # dock 2: run control
        self.control_panel = ControlPanel(client, self.refresh)
        ctrl_dock = QDockWidget("Control", self)
        ctrl_dock.setWidget(self.control_panel)
        self.addDockWidget(Qt.BottomDockWidgetArea, ctrl_dock)

    def refresh(self):
        self.register_panel.update_view()
        self.memory_panel.refresh()

    def closeEvent(self, event):
        self.client.close()
        super().closeEvent(event)


def run(host: str, port: int) -> int:
    app = QApplication(sys.argv)
    try:
        client = DebugClient(host, port)
    except OSError as e:
        QMessageBox.critical(None, "LC-3 Debugger",
                             f"Cannot attach to {host}:{port}\n{e}")
        return 1
    mw = MainWindow(client)
    mw.resize(1280, 960)
    mw.show()
    return app.exec()
