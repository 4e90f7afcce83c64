from pathlib import Path
from typing import Optional
from textual.app import App
from ..core.store import SettingsStore
from .screens import FileSelectionScreen, DotMatrixScreen


class DotMatrixApp(App):
    TITLE = "dotmatrix-lab"
    SUB_TITLE = "dot-matrix label art"

    def __init__(self, initial_image: Optional[str] = None, store: Optional[SettingsStore] = None):
        super().__init__()
        self.initial_image = Path(initial_image) if initial_image else None
        self.store = store if store is not None else SettingsStore()

    def on_mount(self):
        if self.initial_image is None:
            self.push_screen(FileSelectionScreen())
        else:
            self.push_screen(DotMatrixScreen(self.initial_image, self.store.load()))

    def on_unmount(self):
        # Settings edits still waiting on the debounce timer
        self.store.flush()
