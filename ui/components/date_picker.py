import customtkinter as ctk
from tkcalendar import Calendar
import tkinter as tk
from datetime import date
from utils.date_helpers import (
    parse_date, format_date, format_display_date, parse_display_date,
)


class DatePickerWidget(ctk.CTkFrame):
    """Business-date entry with a calendar popup.

    The entry shows the user's display format; .get() returns YYYY-MM-DD for the ledger.
    """

    def __init__(
        self,
        master,
        initial_date: str | None = None,
        date_format: str = "DD/MM/YYYY",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self.grid_columnconfigure(0, weight=1)
        self._date_format = date_format
        self._popup: ctk.CTkToplevel | None = None

        self._var = tk.StringVar(
            value=format_display_date(initial_date, date_format) if initial_date else ""
        )
        self._entry = ctk.CTkEntry(self, textvariable=self._var, width=110)
        self._entry.grid(row=0, column=0, sticky="ew")
        self._entry.bind("<FocusOut>", self._normalize)
        self._entry.bind("<Return>", self._normalize)

        ctk.CTkButton(
            self, text="📅", width=32, command=self._toggle_popup
        ).grid(row=0, column=1, padx=(4, 0))

    def _parse(self) -> date | None:
        raw = self._var.get().strip()
        if not raw:
            return None
        return parse_display_date(raw, self._date_format)

    def get(self) -> str:
        """YYYY-MM-DD, or the raw text if it can't be parsed (the ledger rejects it)."""
        d = self._parse()
        return format_date(d) if d else self._var.get().strip()

    def set(self, date_str: str):
        d = parse_date(date_str) if date_str else None
        self._var.set(format_display_date(format_date(d), self._date_format) if d else "")
        self._entry.configure(border_color=("gray65", "gray35"))

    def is_valid(self) -> bool:
        return self._parse() is not None

    def _normalize(self, _event=None):
        if not self._var.get().strip():
            return
        d = self._parse()
        if d:
            self.set(format_date(d))
        else:
            self._entry.configure(border_color="#F44336")

    def _toggle_popup(self):
        if self._popup and self._popup.winfo_exists():
            self._popup.destroy()
            self._popup = None
            return

        popup = ctk.CTkToplevel(self)
        popup.overrideredirect(True)
        popup.resizable(False, False)
        self._popup = popup

        current = self._parse() or date.today()
        cal = Calendar(
            popup, selectmode="day", date_pattern="yyyy-mm-dd",
            year=current.year, month=current.month, day=current.day,
            showweeknumbers=False,
        )
        cal.pack(padx=4, pady=4)
        cal.bind("<<CalendarSelected>>", lambda _e: self._on_selected(cal))

        self._entry.update_idletasks()
        x = self._entry.winfo_rootx()
        y = self._entry.winfo_rooty() + self._entry.winfo_height() + 2
        popup.geometry(f"+{x}+{y}")

    def _on_selected(self, cal: Calendar):
        self.set(cal.get_date())
        if self._popup:
            self._popup.destroy()
            self._popup = None
