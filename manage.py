import logging, sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from config import load_config
from mips_pipeline.executor import SimulationController
from mips_pipeline.instructions import PipelineError
from utils.file_loader import FileLoader, parse_program_text
from utils.timeline import render_timeline

class Log:
    RESET, GREEN, YELLOW, RED, CYAN = '\033[0m', '\033[92m', '\033[93m', '\033[91m', '\033[96m'
    LOG_SRC = "manage.py"

    @staticmethod
    def info(msg): print(f"{Log.CYAN}[INFO] @ {Log.LOG_SRC}: {msg}{Log.RESET}")
    @staticmethod
    def ok(msg): print(f"{Log.GREEN}[OK] @ {Log.LOG_SRC}: {msg}{Log.RESET}")
    @staticmethod
    def warn(msg): print(f"{Log.YELLOW}[WARN] @ {Log.LOG_SRC}: {msg}{Log.RESET}")
    @staticmethod
    def error(msg): print(f"{Log.RED}[ERROR] @ {Log.LOG_SRC}: {msg}{Log.RESET}")

def attach_console(level):
    """Mirror the mips.* loggers on stderr, the GUI does the same into its footer panes."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(name)s | %(message)s'))
    for name in ('mips.raw', 'mips.clean'):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.addHandler(handler)
        logger.setLevel(level)
        logger.propagate = False

def simulate(path, verbose=True):
    """Runs the program in the file to completion and returns the controller."""
    cfg = load_config()
    attach_console(cfg.log_level if verbose else logging.WARNING)

    _, text = FileLoader.load(path)
    controller = SimulationController(gate_branch_fetch=cfg.simulation.gate_branch_fetch)
    controller.start(parse_program_text(text))
    controller.run_to_completion()

    stalls = sum(controller.cumulative_stalls().values())
    forwardings = sum(len(p) for p in controller.cumulative_forwardings().values())
    Log.ok(f"{len(controller.instructions)} instructions | {controller.current_cycle} cycles | "
           f"{stalls} stall(s) | {forwardings} forwarding(s)")
    return controller

def timeline(path):
    controller = simulate(path, verbose=False)
    labels = [f"[{i.index}] {i}" for i in controller.instructions]
    print(render_timeline(controller.history, labels))
    return controller

def run_task(command, path):
    """Maps CLI commands to simulation tasks."""
    tasks = {
        "simulate": lambda: simulate(path),
        "timeline": lambda: timeline(path),
    }

    if command not in tasks:
        Log.error(f"Unknown command: {command}")
        return False

    Log.info(f"Executing {command.upper()} | Program: {path}")
    try:
        tasks[command]()
    except (PipelineError, OSError, ValueError) as e:
        Log.error(str(e))
        return False
    return True

if __name__ == "__main__":
    if len(sys.argv) < 3:
        Log.warn("Usage: python manage.py [simulate|timeline] [program_file]")
        sys.exit(1)

    success = run_task(sys.argv[1], sys.argv[2])
    sys.exit(0 if success else 1)
