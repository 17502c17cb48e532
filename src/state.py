from dataclasses import dataclass
from config import load_config
from mips_pipeline.executor import SimulationController
from utils.file_loader import configure as configure_loader

config = load_config()
configure_loader(config.directories.programs, config.directories.docs)

# Default Instructions
DEFAULT_PROGRAM = "\n".join([
    "0x02108025",  # or $s0,$s0,$s0
    "0x8e110000",  # lw $s1,0($s0)
    "0xae120004",  # sw $s2,4($s0)
    "0x00640820",  # add $at,$v1,$a0
    "0x10800001",  # beq $a0,$zero,1
    "0x00000000",  # nop
])

# Main App section

@dataclass
class AppState:
    last_loaded_program: str = ""

    def is_ready_for_simulation(self):
        return simulation.has_run

app_state = AppState()


# Documentation Section

@dataclass
class LoadedDocumentState:
    filename = ""

loaded_document = LoadedDocumentState()


# Program Input Section

class LoadedProgramState:
    filename = ""
    content = DEFAULT_PROGRAM

loaded_program_state = LoadedProgramState()


# Simulation Section
# Lives at module level so the run and its history survive page switches
simulation = SimulationController(gate_branch_fetch=config.simulation.gate_branch_fetch)
