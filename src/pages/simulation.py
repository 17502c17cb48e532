import json
from nicegui import ui
from state import simulation, config, app_state
from mips_pipeline.hazards import summarize
from mips_pipeline.schemes import HazardType, Stage
from utils.timeline import build_timeline
from routing import drawer_menu


# Cosmetic per-instruction tags, they never reach the engine
PALETTE = ['bg-sky-700', 'bg-emerald-700', 'bg-amber-700', 'bg-fuchsia-700',
           'bg-rose-700', 'bg-indigo-700', 'bg-teal-700', 'bg-orange-700']

def letter(index: int) -> str:
    return chr(ord('A') + index % 26)

def hue(index: int) -> str:
    return PALETTE[index % len(PALETTE)]

def fmt_hex(raw_hex: str) -> str:
    return 'nop' if raw_hex == '00000000' else f'0x{raw_hex}'

# Datapath components per stage, as drawn on the classic 5-stage diagram
DATAPATH = {
    Stage.IF: ['PC', 'PC Adder', 'Instruction Memory', 'IF/ID'],
    Stage.ID: ['Registers', 'Imm Gen', 'Hazard Unit', 'ID/EX'],
    Stage.EX: ['ALU Src MUX', 'ALU', 'Forwarding Unit', 'EX/MEM'],
    Stage.MEM: ['Data Memory', 'MEM/WB'],
    Stage.WB: ['Write Back MUX'],
}


def refresh_all():
    top_bar_info.refresh()
    stage_strip.refresh()
    history_panel.refresh()
    timeline_grid.refresh()
    hazard_panel.refresh()
    datapath_panel.refresh()
    # Plain-dict view for anything scripted on the client side
    ui.run_javascript(f"window.pipelineView = {json.dumps(simulation.view())};")


def perform_step():
    if not simulation.has_run:
        ui.notify("No program loaded", type='warning')
        return
    if simulation.is_finished:
        ui.notify("Program has ended. Reset or start a new program.", color='green')
        return
    simulation.step()
    if simulation.is_finished:
        ui.notify("Program has ended.", color='green')
    refresh_all()


def autoplay_tick():
    if simulation.is_running:
        perform_step()


def toggle_play():
    if simulation.is_running:
        simulation.pause()
    else:
        simulation.resume()
    top_bar_info.refresh()


def run_to_end():
    if simulation.has_run:
        simulation.run_to_completion()
        refresh_all()


def reset():
    simulation.reset()
    app_state.last_loaded_program = ""
    drawer_menu.refresh()
    ui.navigate.to('/instructions')


# --- UI COMPONENTS ---

def ui_instruction_chip(index: int):
    raw_hex = simulation.instructions[index].raw_hex
    with ui.row().classes(f'{hue(index)} rounded px-2 py-1 items-center gap-2 no-wrap'):
        ui.label(letter(index)).classes('font-bold text-white')
        ui.label(fmt_hex(raw_hex)).classes('font-mono text-white')

def ui_chip(text: str, classes: str):
    ui.label(text).classes(f'px-2 rounded-full text-sm border {classes}')

def ui_kv_row(key: str, value):
    with ui.row().classes('w-full justify-between items-center border-b border-slate-700 py-1'):
        ui.label(key).classes('text-slate-400 text-lg')
        ui.label(str(value)).classes('font-mono text-lg text-white text-right')


# --- REFRESHABLE COMPONENTS ---

@ui.refreshable
def top_bar_info():
    """Cycle counter and run status badge."""
    with ui.row().classes('items-center gap-4'):
        if simulation.is_finished:
            status, color = 'Finished', 'text-green-400'
        elif simulation.is_running:
            status, color = 'Running', 'text-blue-400'
        else:
            status, color = 'Paused', 'text-yellow-400'

        stalls = sum(simulation.cumulative_stalls().values())
        if stalls:
            with ui.row().classes('items-center gap-2 bg-slate-900 px-3 py-1 rounded border border-slate-600'):
                ui.icon('pause_circle').classes('text-blue-400')
                ui.label(f"{stalls} stall cycle(s)").classes('text-blue-400 font-mono')

        ui.label(status).classes(f'{color} font-mono text-lg px-2')
        ui.label(f"Cycle: {simulation.current_cycle} / {simulation.max_cycles}").classes('text-slate-400 font-mono text-lg px-2')


@ui.refreshable
def stage_strip():
    snapshot = simulation.snapshot
    if not snapshot:
        ui.label("No Pipeline Data").classes('text-red-400 p-4')
        return

    with ui.row().classes('w-full no-wrap items-stretch gap-2'):
        for stage in Stage:
            index = snapshot.occupant(stage)
            with ui.card().classes('flex-1 bg-slate-800 border border-slate-700 items-center'):
                ui.label(stage.name).classes('text-2xl font-bold text-slate-300')
                if index is None:
                    ui.label('---').classes('font-mono text-slate-500')
                    continue
                ui_instruction_chip(index)
                ui.label(str(simulation.instructions[index])).classes('font-mono text-sm text-slate-400')
            if stage != Stage.WB:
                ui.icon('chevron_right').classes('text-4xl text-slate-500 self-center')


@ui.refreshable
def history_panel():
    """Per pipeline register history with hazard / stall / forwarding chips."""
    hazards = simulation.cumulative_hazards()
    forwardings = simulation.cumulative_forwardings()
    stalls = simulation.cumulative_stalls()

    with ui.grid(columns=4).classes('w-full gap-4'):
        for stage in (Stage.IF, Stage.ID, Stage.EX, Stage.MEM):
            with ui.column().classes('w-full gap-1'):
                ui.label(f'{stage.latch} Register').classes('text-lg font-bold text-slate-300')
                for snapshot in simulation.history:
                    index = snapshot.occupant(stage)
                    with ui.row().classes('w-full bg-slate-800 rounded px-2 py-1 items-center justify-between no-wrap'):
                        ui.label(str(snapshot.cycle)).classes('text-xs text-slate-500')
                        if index is None:
                            ui.label('empty').classes('font-mono text-slate-500')
                            continue
                        ui.label(f"[{index + 1}] {fmt_hex(simulation.instructions[index].raw_hex)}").classes('font-mono text-white')
                        with ui.row().classes('gap-1 no-wrap'):
                            record = hazards.get(index)
                            if record and record.kind == HazardType.RAW:
                                ui_chip('RAW', 'bg-red-900 text-red-200 border-red-500')
                            if record and record.kind == HazardType.WAW:
                                ui_chip('WAW', 'bg-amber-900 text-amber-200 border-amber-500')
                            if stalls.get(index):
                                ui_chip(f'stall x{stalls[index]}', 'bg-blue-900 text-blue-200 border-blue-500')
                            if forwardings.get(index):
                                ui_chip('fwd', 'bg-green-900 text-green-200 border-green-500')


@ui.refreshable
def timeline_grid():
    history = simulation.history
    rows = build_timeline(history, len(simulation.instructions))
    column_defs = [{'headerName': 'Instruction', 'field': 'instr', 'pinned': 'left', 'width': 220}]
    column_defs += [{'headerName': str(s.cycle), 'field': f'c{s.cycle}', 'width': 70} for s in history]

    row_data = []
    for instr, cells in zip(simulation.instructions, rows):
        row = {'instr': f"{letter(instr.index)} {instr}"}
        row.update({f'c{s.cycle}': cell for s, cell in zip(history, cells)})
        row_data.append(row)

    with ui.card().classes('w-full flex-grow bg-slate-900 p-0 overflow-hidden'):
        ui.aggrid({'columnDefs': column_defs, 'rowData': row_data}).classes('w-full h-[600px] text-lg')


@ui.refreshable
def hazard_panel():
    snapshot = simulation.snapshot
    if not snapshot:
        ui.label("No Pipeline Data").classes('text-red-400 p-4')
        return

    counts = summarize(simulation.cumulative_hazards())
    with ui.row().classes('gap-4 mb-4'):
        ui_chip(f"RAW so far: {counts[HazardType.RAW]}", 'bg-red-900 text-red-200 border-red-500')
        ui_chip(f"WAW so far: {counts[HazardType.WAW]}", 'bg-amber-900 text-amber-200 border-amber-500')

    def hazard_section(title, index, record):
        expansion = ui.expansion(title, icon='warning') \
            .classes('w-full bg-slate-800 mb-2 text-white border border-slate-700 text-2xl') \
            .props('default-opened')
        with expansion:
            with ui.column().classes('w-full p-4 gap-1'):
                ui_kv_row('Type', record.kind)
                ui_kv_row('Forwardable', 'YES' if record.forwardable else 'NO')
                ui_kv_row('Stall Cycles', record.stall_cycles)
                ui_kv_row('Register Usage', simulation.run.usages[index])
                for conflict in record.conflicts:
                    ui_kv_row('Conflict', conflict)

    if not snapshot.hazards:
        ui.label("ID stage is empty this cycle").classes('text-slate-400 text-lg')
    for index, record in snapshot.hazards.items():
        hazard_section(f"[{index + 1}] {simulation.instructions[index]}", index, record)

    ui.label('Forwarding Paths').classes('text-xl text-slate-300 mt-4')
    if not snapshot.forwarding_paths:
        ui.label('None this cycle').classes('text-slate-500')
    for path in snapshot.forwarding_paths:
        ui_kv_row(f"{letter(path.source)} -> {letter(path.target)}", path)


@ui.refreshable
def datapath_panel():
    snapshot = simulation.snapshot
    if not snapshot:
        ui.label("No Pipeline Data").classes('text-red-400 p-4')
        return

    forwarded_to = {path.to_stage for path in snapshot.forwarding_paths}
    with ui.grid(columns=5).classes('w-full gap-3'):
        for stage, components in DATAPATH.items():
            index = snapshot.occupant(stage)
            border = 'border-green-500' if stage in forwarded_to else 'border-slate-700'
            with ui.card().classes(f'bg-slate-800 border {border}'):
                ui.label(stage.name).classes('text-2xl font-bold text-slate-300')
                if index is not None:
                    ui_instruction_chip(index)
                for component in components:
                    active = 'text-white' if index is not None else 'text-slate-600'
                    ui.label(component).classes(f'{active} text-lg')


# --- MAIN PAGE LAYOUT ---

def content():
    """
    Static layout scaffold.
    This function runs ONCE and defines the UI structure.
    """
    ui.timer(config.simulation.autoplay_interval, autoplay_tick)

    with ui.column().classes('w-full h-screen no-wrap gap-0 overflow-hidden bg-black'):

        # 1. HEADER (Static Bar + Dynamic Info)
        with ui.row().classes('w-full h-auto bg-slate-800 border-b border-slate-600 p-2 items-center justify-between'):
            with ui.row().classes('items-center gap-4'):
                with ui.tabs().classes('text-white bg-slate-700 rounded-lg') as tabs:
                    t_stages = ui.tab('Stages')
                    t_history = ui.tab('History')
                    t_timeline = ui.tab('Timeline')
                    t_hazards = ui.tab('Hazards')
                    t_datapath = ui.tab('Datapath')

                ui.separator().props('vertical')

                ui.button('Next Step', icon='skip_next', on_click=perform_step).props('color=blue')
                ui.button('Play / Pause', icon='play_arrow', on_click=toggle_play).props('color=green')
                ui.button('Run to End', icon='fast_forward', on_click=run_to_end).props('color=teal')
                ui.button('Reset', icon='restart_alt', on_click=reset).props('color=grey')

            top_bar_info()

        # 2. MAIN AREA
        with ui.column().classes('w-full flex-grow bg-black overflow-hidden'):
            with ui.tab_panels(tabs, value=t_stages).classes('w-full h-full bg-transparent text-white'):

                with ui.tab_panel(t_stages).classes('w-full h-full p-0'):
                    with ui.scroll_area().classes('w-full h-full p-6'):
                        ui.label('Pipeline Stages').classes('text-xl text-slate-300 mb-4')
                        stage_strip()

                with ui.tab_panel(t_history).classes('w-full h-full p-0'):
                    with ui.scroll_area().classes('w-full h-full p-6'):
                        ui.label('Pipeline History').classes('text-xl text-slate-300 mb-4')
                        history_panel()

                with ui.tab_panel(t_timeline).classes('w-full h-full p-0'):
                    with ui.column().classes('w-full h-full p-6'):
                        ui.label('Instruction / Cycle Diagram').classes('text-xl text-slate-300 mb-4')
                        timeline_grid()

                with ui.tab_panel(t_hazards).classes('w-full h-full p-0'):
                    with ui.scroll_area().classes('w-full h-full p-6'):
                        ui.label('Hazards in ID').classes('text-xl text-slate-300 mb-4')
                        hazard_panel()

                with ui.tab_panel(t_datapath).classes('w-full h-full p-0'):
                    with ui.scroll_area().classes('w-full h-full p-6'):
                        ui.label('Datapath Overlay').classes('text-xl text-slate-300 mb-4')
                        datapath_panel()
