from __future__ import annotations

from nbformat import NotebookNode

from .utils import _norm_text

# Cell tags honoured when a post body is a notebook
HIDE_INPUT_TAGS = {"hide-input", "remove-input", "hide_input", "remove_input"}
HIDE_OUTPUT_TAGS = {"hide-output", "remove-output", "hide_output", "remove_output"}
DROP_CELL_TAGS = {"remove-cell", "hide-cell", "remove_cell", "hide_cell"}


def _flag(cell: NotebookNode, key: str, tags: set) -> bool:
    md = cell.get("metadata") or {}
    jupyter = md.get("jupyter") if isinstance(md.get("jupyter"), dict) else {}
    cell_tags = set(md.get("tags") or [])
    return bool(jupyter.get(key) or md.get(key) or (cell_tags & tags))


def _visible_cell(cell: NotebookNode):
    """The cell as it should be published, or None to drop it."""
    md = cell.get("metadata") or {}
    if set(md.get("tags") or []) & DROP_CELL_TAGS:
        return None

    kind = cell.get("cell_type")
    if kind == "markdown":
        if _flag(cell, "source_hidden", HIDE_INPUT_TAGS):
            return None
        if not _norm_text(cell.get("source", "")).strip() and not cell.get("attachments"):
            return None
        return cell

    if kind == "code":
        if _flag(cell, "source_hidden", HIDE_INPUT_TAGS):
            cell["source"] = ""
        if _flag(cell, "outputs_hidden", HIDE_OUTPUT_TAGS):
            cell["outputs"] = []
            cell["execution_count"] = None
        if not _norm_text(cell.get("source", "")).strip() and not cell.get("outputs"):
            return None
        return cell

    return cell


def strip_hidden_cells(nb: NotebookNode) -> int:
    """Drop or blank hidden cells in place; returns how many were dropped."""
    kept = [c for c in (_visible_cell(cell) for cell in nb.cells) if c is not None]
    dropped = len(nb.cells) - len(kept)
    nb.cells = kept
    return dropped
