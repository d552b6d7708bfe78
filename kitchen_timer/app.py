import logging
import threading

import tkinter as tk
from tkinter import messagebox, ttk

from . import hms
from .labels import TrayTitleLabel, VarLabel
from .notifier import APP_NAME, Notifier
from .scheduler import TkScheduler
from .settings import JsonSettingsStore
from .timers import Timer, Timers

try:
    import pystray
    from PIL import Image, ImageDraw
except ImportError:  # pragma: no cover
    pystray = None
    Image = None
    ImageDraw = None

logger = logging.getLogger(__name__)


class KitchenTimerApp:
    """Tray icon plus a small window listing the enabled timers."""

    WINDOW_BG = "#C0C0C0"
    PANEL_BG = "#D4D0C8"
    EDGE_LIGHT = "#FFFFFF"
    ACCENT = "#0A246A"
    TEXT_DARK = "#000000"

    def __init__(self, master: tk.Tk, settings: JsonSettingsStore) -> None:
        self.master = master
        self.settings = settings
        self.master.title(APP_NAME)
        self.master.configure(bg=self.WINDOW_BG)
        self.master.minsize(280, 120)

        self.tray_icon = self._create_tray_icon()
        panel_label = TrayTitleLabel(self.tray_icon, APP_NAME) if self.tray_icon else None
        self.notifier = Notifier(settings, show_modal=self._show_modal)
        self.timers = Timers(settings, self.notifier, panel_label=panel_label, scheduler=TkScheduler(master))

        self.rows = ttk.Frame(self.master, padding=8)
        self.rows.pack(expand=True, fill="both")
        self._build_rows()

        if self.tray_icon:
            self.master.protocol("WM_DELETE_WINDOW", self._hide_window)
            threading.Thread(target=self.tray_icon.run, daemon=True).start()
        else:
            self.master.protocol("WM_DELETE_WINDOW", self._quit_app)

    def _build_rows(self) -> None:
        for child in self.rows.winfo_children():
            child.destroy()
        if self.timers.is_empty():
            ttk.Label(self.rows, text="No timers defined").grid(row=0, column=0, sticky="w")
            return
        for row, timer in enumerate(self.timers.sorted()):
            var = tk.StringVar(value=hms.format(timer.duration))
            timer.label = VarLabel(var)
            if self.settings.show_label:
                ttk.Label(self.rows, text=timer.name).grid(row=row, column=0, sticky="w", padx=4)
            if self.settings.show_time:
                ttk.Label(self.rows, textvariable=var, width=9).grid(row=row, column=1, sticky="e", padx=4)
            ttk.Button(self.rows, text="Start", command=lambda t=timer: self.start_timer(t)).grid(
                row=row, column=2, padx=2
            )
            ttk.Button(self.rows, text="Reset", command=timer.reset).grid(row=row, column=3, padx=2)

    def start_timer(self, timer: Timer) -> None:
        self.notifier.stop()
        timer.start()

    def quick_timer(self) -> None:
        timer = self.timers.add_quick()
        self._build_rows()
        if self.tray_icon:
            self.tray_icon.update_menu()
        self.start_timer(timer)

    def _show_modal(self, title: str, message: str) -> None:
        self.master.after(0, lambda: messagebox.showinfo(title, message, parent=self.master))

    def _create_tray_icon(self):
        if not pystray or not Image:
            return None

        size = 64
        image = Image.new("RGB", (size, size), self.ACCENT)
        draw = ImageDraw.Draw(image)
        draw.ellipse((6, 6, size - 7, size - 7), fill=self.PANEL_BG, outline=self.EDGE_LIGHT)
        draw.line((size // 2, size // 2, size // 2, 14), fill=self.TEXT_DARK, width=3)
        draw.line((size // 2, size // 2, size - 18, size // 2), fill=self.TEXT_DARK, width=3)

        return pystray.Icon(
            "kitchen_timer",
            image,
            APP_NAME,
            menu=pystray.Menu(self._menu_items),
        )

    def _menu_items(self):
        for timer in self.timers.sorted():
            yield pystray.MenuItem(
                f"{timer.name} ({hms.format(timer.duration, compact=True)})",
                lambda icon, item, t=timer: self.master.after(0, self.start_timer, t),
                checked=lambda item, t=timer: t.is_running(),
            )
        yield pystray.Menu.SEPARATOR
        yield pystray.MenuItem("Quick timer", lambda icon, item: self.master.after(0, self.quick_timer))
        yield pystray.MenuItem("Show", self._show_window, default=True)
        yield pystray.MenuItem("Quit", self._quit_app)

    def _show_window(self, icon=None, item=None) -> None:
        self.master.after(0, self.master.deiconify)
        self.master.after(0, self.master.lift)

    def _hide_window(self, icon=None, item=None) -> None:
        self.master.after(0, self.master.withdraw)

    def _quit_app(self, icon=None, item=None) -> None:
        if self.tray_icon:
            self.tray_icon.stop()
        self.master.after(0, self._shutdown)

    def _shutdown(self) -> None:
        running = self.timers.running()
        logger.info("Shutting down with %d running timers", len(running))
        for timer in running:
            timer.reset()
        self.notifier.stop()
        self.master.destroy()

    def run(self) -> None:
        self.master.mainloop()


def main() -> None:
    settings = JsonSettingsStore()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    root = tk.Tk()
    app = KitchenTimerApp(root, settings)
    app.run()


if __name__ == "__main__":
    main()
