"""Tkinter-based translation browser for formlingo."""

from __future__ import annotations

import threading
from typing import Callable, Optional

import tkinter as tk
from tkinter import messagebox, ttk

from .components import index_tk_widgets
from .configuration import FormlingoConfig, normalise_language
from .errors import FormlingoError
from .ignore_rules import IgnoreRuleSet, load_ignore_file
from .store import TranslationStore, translate
from .translator import (
    CaptureSummary,
    TranslationSummary,
    capture_translations,
    translate_components,
)

FORM_NAME = "formlingoBrowser"

SummaryPrinter = Callable[[TranslationSummary | CaptureSummary], None]


class FormlingoGUI:
    """Looks up translations and retranslates its own labels on demand."""

    def __init__(
        self,
        *,
        root: tk.Tk,
        settings: FormlingoConfig,
        store: TranslationStore,
        summary_printer: Optional[SummaryPrinter] = None,
    ) -> None:
        self.root = root
        self.settings = settings
        self.store = store
        self.summary_printer = summary_printer

        self.lookup_in_progress = False
        self.source_language = settings.FORMLINGO_SOURCE_LANGUAGE
        self.current_language = self.source_language

        self._build_variables()
        self._build_ui()
        self._capture_labels()

        self.root.protocol("WM_DELETE_WINDOW", self.root.destroy)

    def _build_variables(self) -> None:
        self.text_var = tk.StringVar(value="")
        self.language_var = tk.StringVar(value=self.settings.FORMLINGO_LANGUAGE)
        self.status_var = tk.StringVar(
            value="Enter a text or id, choose a language, then press Translate."
        )

    def _build_ui(self) -> None:
        """Construct the Tkinter layout.

        Translatable widgets get explicit names; they form the component
        paths stored in the ``form_controls`` table.
        """

        self.root.title("Formlingo")
        self.root.geometry("520x300")
        self.root.resizable(False, False)

        self.main_frame = ttk.Frame(self.root, padding=20, name="main")
        self.main_frame.grid(row=0, column=0, sticky="nsew")

        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(0, weight=1)

        ttk.Label(self.main_frame, text="Text to translate", name="textLabel").grid(
            row=0, column=0, sticky="w"
        )
        ttk.Entry(self.main_frame, textvariable=self.text_var, width=45).grid(
            row=1, column=0, sticky="we", pady=(0, 10)
        )

        ttk.Label(self.main_frame, text="Target language", name="languageLabel").grid(
            row=2, column=0, sticky="w"
        )
        ttk.Entry(self.main_frame, textvariable=self.language_var, width=20).grid(
            row=3, column=0, sticky="w", pady=(0, 10)
        )

        # Text set at runtime; captured as a dynamic binding.
        self.result_label = ttk.Label(self.main_frame, text="", name="resultLabel")
        self.result_label.grid(row=4, column=0, columnspan=2, sticky="w", pady=(0, 10))

        ttk.Label(self.main_frame, textvariable=self.status_var, foreground="#555").grid(
            row=5, column=0, columnspan=2, sticky="w", pady=(5, 15)
        )

        action_frame = ttk.Frame(self.main_frame, name="actions")
        action_frame.grid(row=6, column=0, columnspan=2, sticky="e")

        self.translate_button = ttk.Button(
            action_frame, text="Translate", name="translateButton", command=self._on_translate
        )
        self.translate_button.grid(row=0, column=0, padx=(0, 10))
        ttk.Button(
            action_frame, text="Toggle language", name="toggleButton", command=self._on_toggle
        ).grid(row=0, column=1, padx=(0, 10))
        ttk.Button(action_frame, text="Close", name="closeButton", command=self.root.destroy).grid(
            row=0, column=2
        )

        self.root.bind("<Return>", lambda event: self._on_translate())

    def _load_ignore_rules(self) -> Optional[IgnoreRuleSet]:
        if not self.settings.FORMLINGO_IGNORE_FILE:
            return None
        return load_ignore_file(
            self.settings.FORMLINGO_IGNORE_FILE,
            case_sensitive=self.settings.FORMLINGO_CASE_SENSITIVE_PATTERNS,
        )

    def _capture_labels(self) -> None:
        """Record the window's own labels so they can be retranslated."""

        try:
            self.store.create_schema()
            summary = capture_translations(
                FORM_NAME,
                index_tk_widgets(self.main_frame),
                self.store,
                source_language=self.source_language,
                ignore_rules=self._load_ignore_rules(),
            )
        except FormlingoError as exc:
            self.status_var.set("Translation database unavailable.")
            messagebox.showerror("Formlingo", str(exc))
            return
        if self.summary_printer is not None:
            self.summary_printer(summary)

    def _on_translate(self) -> None:
        """Look the text up in a worker thread."""

        if self.lookup_in_progress:
            return

        text = self.text_var.get().strip()
        language = normalise_language(self.language_var.get())
        if not text:
            messagebox.showerror("Formlingo", "Please enter a text or id to translate.")
            return
        if not language:
            messagebox.showerror("Formlingo", "Please provide a target language.")
            return

        self.lookup_in_progress = True
        self.status_var.set("Looking up translation.")
        self.translate_button.config(state="disabled")

        threading.Thread(
            target=self._execute_lookup,
            args=(text, language),
            daemon=True,
        ).start()

    def _execute_lookup(self, text: str, language: str) -> None:
        try:
            result, message = translate(text, language, self.store), None
        except FormlingoError as exc:
            result, message = None, str(exc)
        self.root.after(0, self._handle_result, text, result, message)

    def _handle_result(self, text: str, result: Optional[str], message: Optional[str]) -> None:
        self.lookup_in_progress = False
        self.translate_button.config(state="normal")

        if message:
            self.status_var.set("Lookup failed.")
            messagebox.showerror("Formlingo", message)
            return

        self.result_label.configure(text=result)
        if result == text:
            self.status_var.set("No translation found; showing the text unchanged.")
        else:
            self.status_var.set("Translation found.")

    def _on_toggle(self) -> None:
        """Switch the window's labels between the source and target language."""

        target = normalise_language(self.language_var.get()) or self.settings.FORMLINGO_LANGUAGE
        language = self.source_language if self.current_language != self.source_language else target
        try:
            summary = translate_components(
                index_tk_widgets(self.main_frame), FORM_NAME, language, self.store
            )
        except FormlingoError as exc:
            messagebox.showerror("Formlingo", str(exc))
            return

        self.current_language = language
        self.status_var.set(f"Interface shown in '{language}' ({summary.total_applied} labels).")
        if self.summary_printer is not None:
            self.summary_printer(summary)


def launch_gui(
    *,
    settings: FormlingoConfig,
    store: TranslationStore,
    summary_printer: Optional[SummaryPrinter] = None,
) -> int:
    """Entry point called from the CLI ``gui`` command."""

    root = tk.Tk()
    FormlingoGUI(root=root, settings=settings, store=store, summary_printer=summary_printer)
    root.mainloop()
    return 0
