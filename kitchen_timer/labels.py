import logging

logger = logging.getLogger(__name__)


class MemoryLabel:
    """Keeps the last text pushed to it."""

    def __init__(self, text: str = "") -> None:
        self.text = text

    def set_text(self, text: str) -> None:
        self.text = text

    def get_text(self) -> str:
        return self.text


class VarLabel:
    """Forwards text to a tk ``StringVar``."""

    def __init__(self, var) -> None:
        self.var = var

    def set_text(self, text: str) -> None:
        self.var.set(text)

    def get_text(self) -> str:
        return self.var.get()


class TrayTitleLabel:
    """Shows text as the tray icon tooltip, or ``default`` when there is none."""

    def __init__(self, icon, default: str = "") -> None:
        self.icon = icon
        self.default = default
        self.text = ""

    def set_text(self, text: str) -> None:
        if text == self.text:
            return
        self.text = text
        self.icon.title = f"{self.default} {text}".strip() if text else self.default

    def get_text(self) -> str:
        return self.text
