"""Jinja2 template rendering for project scaffolding.

Provides the TemplateRenderer class which loads templates from the bundled
``scaffolder/templates/`` directory (or an override) and renders them with
project-specific context data.

Template paths may carry flag markers in any segment: ``account(auth)/`` is
only written when ``auth`` is active, ``app(sass).scss`` only when ``sass``
is active, and ``(a&b)`` requires both.  Markers are stripped from the
destination path.  Files ending in ``.j2`` are rendered; everything else is
copied verbatim.
"""

from __future__ import annotations

import asyncio
import re
import shutil
from pathlib import Path, PurePosixPath
from typing import Any, Iterable, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ngfullstack.utils import pascal_case, slugify

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

_MARKER_RE = re.compile(r"\(([A-Za-z0-9_.&-]+)\)")


# ---------------------------------------------------------------------------
# Path predicates
# ---------------------------------------------------------------------------


def split_markers(rel_path: str) -> tuple[str, set[str]]:
    """Strip ``(flag)`` markers from *rel_path*.

    Returns:
        ``(destination, markers)`` where *markers* is every flag named in any
        segment of the path.

    Examples::

        split_markers("client/app/account(auth)/login.js")
            -> ("client/app/account/login.js", {"auth"})
    """
    markers: set[str] = set()
    for group in _MARKER_RE.findall(rel_path):
        markers.update(part for part in group.split("&") if part)
    return _MARKER_RE.sub("", rel_path), markers


def destination_for(rel_path: str, *, typescript: bool, renames: Optional[dict[str, str]] = None) -> str:
    """Compute the output path for a template path whose markers are satisfied.

    Drops a trailing ``.j2``, applies placeholder *renames*, and swaps
    ``.js`` for ``.ts`` on client script files when *typescript* is set.
    Manifest files (``.json``) are never rewritten.
    """
    dest, _ = split_markers(rel_path)
    if dest.endswith(".j2"):
        dest = dest[: -len(".j2")]
    for placeholder, value in (renames or {}).items():
        dest = dest.replace(placeholder, value)

    path = PurePosixPath(dest)
    if typescript and path.parts and path.parts[0] == "client" and path.suffix == ".js":
        dest = str(path.with_suffix(".ts"))
    return dest


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders and copies template trees for project scaffolding."""

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["slugify"] = slugify
        self.env.filters["pascal_case"] = pascal_case

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template (path relative to the template root)."""
        template = self.env.get_template(template_path)
        return template.render(**context)

    # -- Tree rendering (async) --------------------------------------------

    async def render_tree(
        self,
        template_prefix: str,
        output_dir: str | Path,
        context: dict[str, Any],
        *,
        active: Iterable[str] = (),
        typescript: bool = False,
        renames: Optional[dict[str, str]] = None,
    ) -> list[Path]:
        """Write every file under *template_prefix* whose markers are active.

        The directory structure below the prefix is preserved in
        *output_dir*.

        Returns:
            Written file paths, in template order.
        """
        prefix_path = self.template_dir / template_prefix
        if not prefix_path.is_dir():
            return []

        active_set = set(active)
        written: list[Path] = []
        out_base = Path(output_dir)

        for template_file in sorted(p for p in prefix_path.rglob("*") if p.is_file()):
            rel = template_file.relative_to(prefix_path).as_posix()
            _, markers = split_markers(rel)
            if not markers <= active_set:
                continue

            output_file = out_base / destination_for(rel, typescript=typescript, renames=renames)
            if rel.endswith(".j2"):
                content = self.render(f"{template_prefix}/{rel}", context)
                await asyncio.to_thread(_write_file, output_file, content)
            else:
                await asyncio.to_thread(_copy_file, template_file, output_file)
            written.append(output_file)

        return written


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _copy_file(source: Path, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, target)
