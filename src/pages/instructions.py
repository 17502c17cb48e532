from nicegui import ui
from utils.file_loader import FileLoader, FileType, parse_program_text
from mips_pipeline.instructions import ValidationError, decode
from state import loaded_program_state, app_state, simulation, DEFAULT_PROGRAM
from routing import drawer_menu


# --- THE DYNAMIC BLOCK ---
@ui.refreshable
def disassembly_preview():
    """Live disassembly of whatever is currently typed in the editor."""
    words = parse_program_text(loaded_program_state.content)
    with ui.column().classes('w-full gap-1 font-mono text-lg'):
        for index, word in enumerate(words):
            try:
                text = str(decode(word, index))
                color = 'text-slate-300'
            except ValidationError as e:
                text = str(e)
                color = 'text-red-400'
            ui.label(f"[{index + 1}] {word:<12} {text}").classes(color)


def on_edit(e):
    loaded_program_state.content = e.value
    disassembly_preview.refresh()


def load(name):
    _, loaded_program_state.content = FileLoader.load(name)
    loaded_program_state.filename = name
    editor.value = loaded_program_state.content
    disassembly_preview.refresh()


def start_simulation():
    words = parse_program_text(loaded_program_state.content)
    try:
        simulation.start(words)
    except ValidationError as e:
        ui.notify(f"Cannot start: {e}", type='negative')
        return

    app_state.last_loaded_program = loaded_program_state.filename.split("/")[-1] or "editor"
    drawer_menu.refresh()
    ui.notify("Simulation started", type='positive')
    ui.navigate.to('/simulation')


def reset_simulation():
    simulation.reset()
    loaded_program_state.filename = ""
    loaded_program_state.content = DEFAULT_PROGRAM
    editor.value = DEFAULT_PROGRAM
    app_state.last_loaded_program = ""
    drawer_menu.refresh()
    disassembly_preview.refresh()
    ui.notify("Simulation reset", type='info')


editor: ui.textarea = None  # Forward declaration


# --- THE LAYOUT ---
def content():
    global editor

    with ui.row().classes('w-full h-full no-wrap p-2 gap-4'):
        # LEFT SIDEBAR: FILE LIST
        with ui.card().classes('w-1/4 h-full bg-slate-800 border-slate-700'):
            ui.label('Programs').classes('text-xl font-bold mb-4')
            with ui.scroll_area().classes('w-full flex-grow'):
                for f in FileLoader.list_files(file_source=FileType.PROGRAM):
                    with ui.button(on_click=lambda f=f: load(f)).classes('flex-none w-full p-5 justify-start text-lg border').props('flat color=white no-caps'):
                        ui.icon('file_open').classes('mr-2')
                        ui.label(f).classes('text-lg')

        # RIGHT SIDE: EDITOR + PREVIEW
        with ui.column().classes('w-3/4 h-full'):
            with ui.row().classes('w-full flex-grow no-wrap gap-4'):
                with ui.card().classes('w-1/2 h-full bg-slate-900 p-0 overflow-hidden'):
                    editor = ui.textarea(value=loaded_program_state.content, on_change=on_edit) \
                        .props('dark outlined autogrow input-class="font-mono text-lg"') \
                        .classes('w-full h-full')
                with ui.card().classes('w-1/2 h-full bg-slate-900 p-4 overflow-auto'):
                    ui.label('Disassembly').classes('text-xl text-slate-300 mb-2')
                    disassembly_preview()

            with ui.row().classes('w-full gap-4'):
                ui.button('Start Simulation', icon='play_arrow', on_click=start_simulation) \
                    .classes('flex-grow font-bold').props('size=lg color=green')
                ui.button('Reset', icon='restart_alt', on_click=reset_simulation) \
                    .classes('font-bold').props('size=lg color=grey')
