"""Component tree walking: building name indexes and capturing bindings."""

from __future__ import annotations

import csv
import io
import re
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

from .classifier import DEFAULT_NAME_PATTERNS, classify_text
from .errors import FormlingoError
from .structures import ComponentHandle, FormControlBinding, NameIndex, join_path


NameOf = Callable[[Any], str]
ChildrenOf = Callable[[Any], Iterable[Any]]
HandleFor = Callable[[Any, str], Optional[ComponentHandle]]


def attribute_handle(
    path: str,
    obj: Any,
    *,
    attribute: str = "text",
    tooltip_attribute: str | None = None,
    kind: str = "control",
) -> ComponentHandle:
    """Wrap a plain object whose text lives in an attribute."""

    def _getter() -> str:
        return getattr(obj, attribute, "") or ""

    def _setter(translated: str) -> None:
        setattr(obj, attribute, translated)

    tooltip = None
    if tooltip_attribute and getattr(obj, tooltip_attribute, None):
        tooltip = attribute_handle(
            f"{path}.tooltip",
            obj,
            attribute=tooltip_attribute,
            kind="tooltip",
        )
    return ComponentHandle(path=path, getter=_getter, setter=_setter, tooltip=tooltip, kind=kind)


def build_name_index(
    root: Any,
    *,
    name_of: NameOf,
    children_of: ChildrenOf,
    handle_for: HandleFor,
) -> NameIndex:
    """Walk a component tree and index text-bearing nodes by path.

    A named node's path extends its parent's path; unnamed nodes are not
    indexed and their children start again from an empty path. When two nodes
    serialise to the same path the first one wins.
    """

    index: NameIndex = {}

    def _walk(node: Any, parent_path: str) -> None:
        name = name_of(node)
        path = ""
        if name:
            path = join_path([parent_path, name]) if parent_path else name
            if path not in index:
                handle = handle_for(node, path)
                if handle is not None:
                    index[path] = handle
        for child in children_of(node):
            _walk(child, path)

    _walk(root, "")
    return index


def _import_tkinter():
    try:
        import tkinter  # type: ignore
    except ImportError as exc:  # pragma: no cover - import guard
        raise FormlingoError(
            "tkinter is required to index Tk widgets. Install your platform's "
            "Tk bindings (e.g. the python3-tk package)."
        ) from exc
    return tkinter


def index_tk_widgets(
    root: Any,
    tooltips: Optional[Mapping[Any, Any]] = None,
) -> NameIndex:
    """Index every named Tk widget that has a ``text`` option.

    Tk has no native tool-tips, so callers pass them explicitly as a mapping
    from widget to an object exposing a ``text`` attribute.
    """

    tkinter = _import_tkinter()
    tooltips = tooltips or {}

    def _name(widget: Any) -> str:
        name = widget.winfo_name()
        # Tk generates "!button2"-style names for widgets created without one.
        return "" if name.startswith("!") else name

    def _handle(widget: Any, path: str) -> Optional[ComponentHandle]:
        try:
            widget.cget("text")
        except tkinter.TclError:
            return None

        def _getter() -> str:
            return str(widget.cget("text"))

        def _setter(translated: str) -> None:
            widget.configure(text=translated)

        tooltip = None
        tip = tooltips.get(widget)
        if tip is not None:
            tooltip = attribute_handle(f"{path}.tooltip", tip, kind="tooltip")
        return ComponentHandle(
            path=path,
            getter=_getter,
            setter=_setter,
            tooltip=tooltip,
            kind=widget.winfo_class(),
        )

    return build_name_index(
        root,
        name_of=_name,
        children_of=lambda widget: widget.winfo_children(),
        handle_for=_handle,
    )


def capture_bindings(
    form_name: str,
    index: NameIndex,
    patterns: Sequence[re.Pattern[str]] = DEFAULT_NAME_PATTERNS,
) -> List[FormControlBinding]:
    """Classify the current text of every indexed component."""

    return [
        FormControlBinding(
            form_name=form_name,
            control_name=path,
            id_text=classify_text(handle.text, patterns).id_text,
        )
        for path, handle in index.items()
    ]


def bindings_as_csv(bindings: Iterable[FormControlBinding]) -> str:
    """Render bindings as ``form,control,id_text`` CSV lines."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for binding in bindings:
        writer.writerow([binding.form_name, binding.control_name, binding.id_text])
    return buffer.getvalue()
