import customtkinter as ctk
from tkinter import colorchooser
from services.category_service import CategoryService
from models.category import Category, CATEGORY_TYPES
from ui.components.confirm_dialog import center_over_master
from utils.constants import DEFAULT_CATEGORY_COLOR, DEFAULT_CATEGORY_ICON
from utils.errors import LedgerError


class CategoryForm(ctk.CTkToplevel):
    """Add or edit a user category. The type is fixed once created."""

    def __init__(
        self,
        master,
        category_service: CategoryService,
        owner_id: str,
        category: Category | None = None,
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._svc = category_service
        self._owner_id = owner_id
        self._category = category
        self.saved = False

        self.title("Edit Category" if category else "New Category")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        r = 0
        self._label("Name:", r, top=16)
        self._name_var = ctk.StringVar(value=category.name if category else "")
        ctk.CTkEntry(self, textvariable=self._name_var, width=220).grid(
            row=r, column=1, padx=(0, 16), pady=(16, 4), sticky="ew"
        )
        r += 1

        self._label("Type:", r)
        self._type_var = ctk.StringVar(value=category.type if category else "expense")
        ctk.CTkComboBox(
            self, values=list(CATEGORY_TYPES), variable=self._type_var,
            width=220, state="disabled" if category else "readonly",
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._label("Icon:", r)
        self._icon_var = ctk.StringVar(value=category.icon if category else DEFAULT_CATEGORY_ICON)
        ctk.CTkEntry(self, textvariable=self._icon_var, width=220).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
        )
        r += 1

        self._label("Color:", r)
        color_row = ctk.CTkFrame(self, fg_color="transparent")
        color_row.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        self._color_var = ctk.StringVar(
            value=category.color_hex if category else DEFAULT_CATEGORY_COLOR
        )
        ctk.CTkEntry(color_row, textvariable=self._color_var, width=100).pack(side="left")
        self._swatch = ctk.CTkLabel(
            color_row, text="", width=32, height=24, corner_radius=4,
            fg_color=self._color_var.get(),
        )
        self._swatch.pack(side="left", padx=(8, 0))
        ctk.CTkButton(
            color_row, text="Pick", width=60,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._pick_color,
        ).pack(side="left", padx=(8, 0))
        r += 1

        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var,
            text_color="#F44336", wraplength=300, anchor="w",
        ).grid(row=r, column=0, columnspan=2, padx=16, pady=(0, 4), sticky="ew")
        r += 1

        buttons = ctk.CTkFrame(self, fg_color="transparent")
        buttons.grid(row=r, column=0, columnspan=2, padx=16, pady=(4, 16), sticky="ew")
        ctk.CTkButton(
            buttons, text="Cancel", width=90,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self.destroy,
        ).pack(side="left")
        ctk.CTkButton(buttons, text="Save", width=90, command=self._on_save).pack(side="right")

        self.transient(master)
        self.grab_set()
        center_over_master(self)

    def _label(self, text, row, top=4):
        ctk.CTkLabel(self, text=text).grid(
            row=row, column=0, padx=(16, 8), pady=(top, 4), sticky="e"
        )

    def _pick_color(self):
        result = colorchooser.askcolor(
            color=self._color_var.get(), parent=self, title="Pick Category Color"
        )
        if result and result[1]:
            self._color_var.set(result[1])
            self._swatch.configure(fg_color=result[1])

    def _on_save(self):
        color = self._color_var.get().strip()
        if color and not color.startswith("#"):
            color = "#" + color
        try:
            if self._category:
                self._svc.update(
                    self._category.id, self._owner_id, self._name_var.get(),
                    icon=self._icon_var.get().strip(), color_hex=color,
                )
            else:
                self._svc.create(
                    self._owner_id, self._name_var.get(), self._type_var.get(),
                    icon=self._icon_var.get().strip(), color_hex=color,
                )
            self.saved = True
            self.destroy()
        except LedgerError as e:
            self._error_var.set(str(e))
