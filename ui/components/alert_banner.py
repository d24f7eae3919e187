import customtkinter as ctk


class AlertBanner(ctk.CTkFrame):
    """Colored banner for a load error, with an optional action (e.g. Retry).

    `on_dismiss` runs when the ✕ is pressed, before the banner is destroyed.
    """

    def __init__(self, master, message: str, color: str = "#F44336",
                 action_text: str | None = None, action_cmd=None,
                 on_dismiss=None, **kwargs):
        super().__init__(master, fg_color=color, corner_radius=6, **kwargs)
        self._on_dismiss = on_dismiss
        self.grid_columnconfigure(0, weight=1)

        ctk.CTkLabel(
            self, text=message, text_color="white",
            anchor="w", padx=10, pady=6, wraplength=700, justify="left",
        ).grid(row=0, column=0, sticky="ew")

        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.grid(row=0, column=1, padx=(0, 4))

        if action_text and action_cmd:
            ctk.CTkButton(
                btn_frame, text=action_text, width=60, height=24,
                fg_color="transparent", border_width=1, border_color="white",
                hover_color="#B71C1C",
                text_color="white", command=action_cmd,
            ).pack(side="left", padx=2)

        ctk.CTkButton(
            btn_frame, text="✕", width=28, height=24,
            fg_color="transparent",
            hover_color="#B71C1C",
            text_color="white",
            command=self._dismiss,
        ).pack(side="left")

    def _dismiss(self):
        if self._on_dismiss:
            self._on_dismiss()
        self.destroy()
