from nicegui import ui
from state import loaded_document
from utils.file_loader import FileLoader, FileType


@ui.refreshable
def doc_viewer():
    if not loaded_document.filename:
        ui.label("Select a document from the list").classes('text-2xl p-4 text-white')
        return

    try:
        _, content = FileLoader.load(loaded_document.filename)
    except OSError as e:
        ui.label(f"Could not load: {e}").classes('text-red-500 p-4')
        return

    # scroll_area keeps the page itself from scrolling
    with ui.scroll_area().classes('w-full flex-grow p-4'):
        ui.markdown(content).classes('text-xl text-white')


def commit_file_load(filename):
    loaded_document.filename = filename
    doc_viewer.refresh()
    ui.notify(f"Loaded: {filename}", type='positive')


def content():

    with ui.row().classes('w-full h-screen no-wrap p-2 gap-4 overflow-hidden'):

        # LEFT SIDEBAR
        with ui.card().classes('w-1/4 h-full bg-slate-800 border-slate-700 flex-nowrap'):
            ui.label('Documents').classes('text-2xl font-bold mb-4 text-white')

            with ui.scroll_area().classes('w-full flex-grow'):
                for f in FileLoader.list_files(file_source=FileType.DOCUMENTATION):
                    with ui.button(on_click=lambda f=f: commit_file_load(f)).classes('w-full justify-start text-lg border mb-2').props('flat color=white no-caps'):
                        ui.icon('description').classes('mr-2')
                        ui.label(f).classes('text-truncate')

        # RIGHT SIDE: markdown viewer
        with ui.column().classes('w-3/4 h-full'):
            with ui.card().classes('w-full h-full bg-slate-900 p-0 overflow-hidden'):
                doc_viewer()
