from nicegui import ui

def content():

    with ui.card().classes('w-full h-full p-6 bg-slate-800 shadow-lg'):
        ui.label('1. Enter the Program').classes('text-xl font-bold mb-4 w-full')
        ui.label('Type 32-bit MIPS words (8 hex digits, one per line) or pick a file in "Program Input".').classes('text-lg mb-4 w-full')

        ui.label('2. Start the Simulation').classes('text-lg font-bold mb-4 w-full mt-8')
        ui.label('Every word is decoded first. A malformed word stops the run from starting.').classes('text-lg mb-4 w-full')

        ui.label('3. Step Through the Pipeline').classes('text-lg font-bold mb-4 w-full mt-8')
        ui.label('Step cycle by cycle, play it at a fixed pace or run it to the end in "Simulation".').classes('text-lg mb-4 w-full')

        ui.label('4. Read the Hazards').classes('text-lg font-bold mb-4 w-full mt-8')
        ui.label('RAW hazards are forwarded or stalled, WAW hazards are only reported.').classes('text-lg mb-4 w-full')

        ui.element('div').classes('grow')
