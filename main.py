"""Application entry-point for the LC-3 virtual machine.
Run `python main.py run PROGRAM.obj [--debug]` to execute an object image, or
`python main.py gui` to attach the GUI debugger to a VM started with --debug."""
import contextlib
import logging
import sys

from lc3.controller import DebugController
from debugger.server import DebugServer
from lc3.config import Config
from lc3.console import Console, Display, Keyboard
from lc3.cpu_core import CPU
from lc3.errors import LC3Error, MalformedImage
from lc3.loader import read_image

logger = logging.getLogger("lc3")


@contextlib.contextmanager
def cbreak_terminal(enabled: bool):
    """Unbuffered, no-echo stdin for the duration of the run."""
    if not enabled:
        yield
        return
    import termios
    import tty
    fd = sys.stdin.fileno()
    old_settings = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)


def run_program(config: Config) -> int:
    try:
        image = read_image(config.program)
    except OSError as e:
        logger.error("cannot read %s: %s", config.program, e)
        return 1

    keyboard = Keyboard()
    console = Console(keyboard, Display(sys.stdout.buffer))
    cpu = CPU(console, DebugController(start_paused=config.debug))
    try:
        origin = cpu.load(image)
    except MalformedImage as e:
        logger.error("%s: %s", config.program, e)
        return 1
    logger.info("starting at x%04X", origin)

    server = None
    if config.debug:
        try:
            server = DebugServer((config.host, config.port), cpu)
        except OSError as e:
            logger.error("cannot listen on %s:%d: %s", config.host, config.port, e)
            return 1
        server.start()
        print(f"debugger listening on {config.host}:{server.port}", file=sys.stderr)

    status = 0
    with cbreak_terminal(config.raw_terminal):
        keyboard.attach(sys.stdin.buffer)
        try:
            cpu.run()
        except LC3Error as e:
            print(f"Application error: {e}", file=sys.stderr)
            status = 1
        except KeyboardInterrupt:
            status = 130

    if server is not None:
        if status != 130 and server.has_session():
            logger.warning("VM halted; waiting for the debug session to detach")
            with contextlib.suppress(KeyboardInterrupt):
                server.wait_for_idle()
        if server.has_session():
            # interrupted while attached; shutdown() would wait on the handler
            server.server_close()
        else:
            server.stop()
    return status


def main(argv=None) -> int:
    config = Config.from_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    if config.command == "gui":
        from gui.main_window import run
        return run(config.host, config.port)
    return run_program(config)


if __name__ == "__main__":
    sys.exit(main())
