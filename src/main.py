from pathlib import Path
import sys

SRC_DIR = Path(__file__).resolve().parent
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

import logging
from state import app_state, config
from nicegui import ui
from routing import drawer_menu
from pages import home, instructions, simulation, documentation



ROUTES = {
    '/': ('home', 'Home', home.content),
    '/instructions': ('upload_file', 'Program Input', instructions.content),
    '/simulation': ('view_timeline', 'Simulation', simulation.content),
    '/documentation': ('menu_book', 'Documentation', documentation.content),
}


raw_logger = logging.getLogger('mips.raw')
clean_logger = logging.getLogger('mips.clean')

# Ensure they don't propagate to the root logger (prevents double logging to console)
raw_logger.propagate = False
clean_logger.propagate = False

class UiLogHandler(logging.Handler):
    def __init__(self, log_element: ui.log, replace: bool = False):
        super().__init__()
        self.log_element = log_element
        self.replace = replace
        # No timestamps, just the message
        self.setFormatter(logging.Formatter('%(message)s'))

    def emit(self, record):
        msg = self.format(record)
        if self.replace:
            self.log_element.clear()
        self.log_element.push(msg)



def root():
    # --- 1. Header ---
    with ui.header(elevated=False).classes('bg-black items-center justify-between px-6'):

        with ui.column().classes('flex-1'):
            ui.label(config.title).classes('text-xl font-bold tracking-tight')

        with ui.column().classes('flex-1 items-center'):
            info_icon = ui.icon('info', color='white', size="xl").classes('cursor-help')

            @ui.refreshable
            def state_labels():
                ui.label(f'Program: {app_state.last_loaded_program or "None"}').classes('text-xl text-gray-400 whitespace-nowrap')
                ui.label(f'Branch fetch gating: {"on" if config.simulation.gate_branch_fetch else "off"}').classes('text-xl text-gray-400 whitespace-nowrap')

            info_icon.on('mouseenter', lambda: state_labels.refresh())

            with info_icon:
                with ui.tooltip().classes('p-2 bg-slate-800'):
                    state_labels()

        # Empty column keeps the middle one centered
        with ui.column().classes('flex-1'):
            pass

    # --- 2. Left Drawer ---
    with ui.left_drawer(value=True).classes('bg-slate-800'):
        drawer_menu(ROUTES)


    # --- 3. Footer (Fixed at bottom) ---
    with ui.footer().classes("h-[30vh] bg-slate-900 flex flex-col "):
            with ui.tabs().classes("m-0 p-0") as tabs:
                raw_tab = ui.tab('Raw', icon='sync_alt')
                clean_tab = ui.tab('Clean', icon='terminal')

            with ui.tab_panels(tabs, value=clean_tab).classes('w-full flex flex-col grow bg-black font-mono text-xl p-0 m-0 overflow-hidden'):
                with ui.tab_panel(raw_tab):
                    # Hex words and stage positions
                    raw_log = ui.log().classes('w-full grow text-green-500 overflow-auto')
                with ui.tab_panel(clean_tab):
                    # Disassembly and per cycle summaries
                    clean_log = ui.log().classes('w-full flex flex-col grow text-blue-300 overflow-auto')

    raw_logger.handlers.clear()
    clean_logger.handlers.clear()

    raw_logger.addHandler(UiLogHandler(raw_log))
    clean_logger.addHandler(UiLogHandler(clean_log))

    raw_logger.setLevel(config.log_level)
    clean_logger.setLevel(config.log_level)

    with ui.column().classes('absolute-full bg-rgb(11, 10, 23) p-6 overflow-hidden'):
        # Only this section scrolls
        ui.sub_pages({route: info[2] for route, info in ROUTES.items()}).classes('w-full h-full overflow-auto')

# Start App
if __name__ in {"__main__", "__mp_main__"}:
    ui.run(root, title=config.title, port=config.port, dark=True)
