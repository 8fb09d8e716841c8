"""Turns a stored template into a concrete page.

A composed page is a pure function of (template markup, resolved palette,
resolved content map, mode): the same inputs always give byte-identical html.
Only reading the template from the database can fail; palette and content
problems fall back to template defaults.
"""
import html
import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from shared.core.exceptions import InternalError
from shared.utils.app_status_code import AppStatusCode
from ..crud import template_crud
from ..enum.site_enum import (EXPLICIT_COLORS_KEY, SELECTED_PALETTE_KEY,
                              RenderMode)
from ..schemas.templates_schemas import ContentKey, TemplateMetadataOut

logger = logging.getLogger(__name__)

PALETTE_STYLE_ID = "palette-overrides"
EDIT_KEY_ATTR = "data-edit-key"

COLOR_ROLES = ("primary", "secondary", "accent")
DEFAULT_COLORS = {
    "primary": "#1f2937",
    "secondary": "#dc2626",
    "accent": "#f3f4f6",
}

PALETTE_BLOCK_PATTERN = re.compile(
    r"<style\b[^>]*\bid\s*=\s*[\"']" + PALETTE_STYLE_ID + r"[\"'][^>]*>.*?</style\s*>\n?",
    re.IGNORECASE | re.DOTALL)
HEAD_CLOSE_PATTERN = re.compile(r"</head\s*>", re.IGNORECASE)
BODY_OPEN_PATTERN = re.compile(r"<body\b[^>]*>", re.IGNORECASE)
TOKEN_PATTERN = re.compile(r"\{\{\s*([A-Za-z0-9_.-]+)\s*\}\}")
TAG_PATTERN = re.compile(r"<[^<>]*>")
RAW_TEXT_PATTERN = re.compile(
    r"<(title|script|style|textarea)\b[^>]*>(.*?)</\1\s*>",
    re.IGNORECASE | re.DOTALL)
COLOR_PATTERN = re.compile(
    r"^(#[0-9a-fA-F]{3,8}"
    r"|(rgb|rgba|hsl|hsla)\(\s*[0-9.%\s,/+-]+\)"
    r"|[a-zA-Z]{3,30})$")
SLOT_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")

EDIT_MODE_CSS = (
    f"[{EDIT_KEY_ATTR}] {{ outline: 2px dashed rgba(59, 130, 246, 0.3); "
    "outline-offset: 2px; transition: outline-color 0.2s; }\n"
    f"[{EDIT_KEY_ATTR}]:hover {{ outline-color: rgba(59, 130, 246, 0.8); "
    "background-color: rgba(59, 130, 246, 0.05); }\n"
)


@dataclass(frozen=True)
class EditRegion:
    """One declared content key as seen by the editor.

    ``occurrences`` counts every substituted token for the key, including
    the ones inside tags, comments or raw-text elements that carry no
    ``data-edit-key`` wrapper; ``wrapped`` counts only the targetable ones.
    """
    key: str
    label: str
    value: str
    occurrences: int
    wrapped: int = 0


@dataclass(frozen=True)
class ComposedPage:
    template_id: str
    mode: RenderMode
    palette: Dict[str, str]
    html: str
    edit_regions: List[EditRegion] = field(default_factory=list)


# ----------------- Base markup -----------------

@lru_cache(maxsize=128)
def prepare_base_markup(raw: bytes) -> str:
    """Decode template bytes; templates are immutable so this is cached by content."""
    try:
        markup = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise InternalError("Template asset is not valid UTF-8",
                            AppStatusCode.TEMPLATE_MALFORMED)

    if not markup.strip():
        raise InternalError("Template asset is empty",
                            AppStatusCode.TEMPLATE_MALFORMED)
    return markup


# ----------------- Palette -----------------

def is_valid_color(value: Any) -> bool:
    return isinstance(value, str) and bool(COLOR_PATTERN.match(value.strip()))


def _overlay(target: Dict[str, str], colors: Optional[Mapping[str, Any]], source: str):
    for slot, value in (colors or {}).items():
        if not isinstance(slot, str) or not SLOT_NAME_PATTERN.match(slot):
            logger.warning("Ignoring palette slot %r from %s", slot, source)
            continue
        if not is_valid_color(value):
            logger.warning("Ignoring invalid color %r for slot %s from %s",
                           value, slot, source)
            continue
        target[slot] = value.strip()


def default_palette_name(palettes: Mapping[str, Any]) -> Optional[str]:
    if "default" in palettes:
        return "default"
    return next(iter(palettes), None)


def resolve_palette(palettes: Mapping[str, Mapping[str, Any]],
                    palette_id: Optional[str] = None,
                    colors: Optional[Mapping[str, Any]] = None) -> Dict[str, str]:
    """Built-in defaults < template default palette < named palette < explicit colors."""
    resolved = dict(DEFAULT_COLORS)

    default_name = default_palette_name(palettes)
    if default_name is not None:
        _overlay(resolved, palettes[default_name], f"palette {default_name}")

    if palette_id and palette_id != default_name:
        if palette_id in palettes:
            _overlay(resolved, palettes[palette_id], f"palette {palette_id}")
        else:
            logger.warning("Unknown palette %r, using template default", palette_id)

    _overlay(resolved, colors, "explicit colors")

    # roles first, then any extra slots in name order
    extra = sorted(slot for slot in resolved if slot not in COLOR_ROLES)
    return {slot: resolved[slot] for slot in (*COLOR_ROLES, *extra)}


def build_palette_block(palette: Mapping[str, str], mode: RenderMode) -> str:
    lines = [f'<style id="{PALETTE_STYLE_ID}">', ":root {"]
    for slot, value in palette.items():
        lines.append(f"  --color-{slot}: {value};")
    lines.append("}")

    for role in COLOR_ROLES:
        value = palette[role]
        lines.append(f".bg-{role} {{ background-color: {value} !important; }}")
        lines.append(f".text-{role} {{ color: {value} !important; }}")
        lines.append(f".border-{role} {{ border-color: {value} !important; }}")

    block = "\n".join(lines) + "\n"
    if mode == RenderMode.EDIT:
        block += EDIT_MODE_CSS
    return block + "</style>\n"


def strip_palette_blocks(markup: str) -> str:
    return PALETTE_BLOCK_PATTERN.sub("", markup)


def apply_palette(markup: str, palette: Mapping[str, str], mode: RenderMode) -> str:
    """Replace any injected palette block with a fresh one.

    Goes before ``</head>``, else right after the ``<body>`` open tag, else
    at the very top of the document.
    """
    markup = strip_palette_blocks(markup)
    block = build_palette_block(palette, mode)

    head_close = HEAD_CLOSE_PATTERN.search(markup)
    if head_close:
        return markup[:head_close.start()] + block + markup[head_close.start():]

    body_open = BODY_OPEN_PATTERN.search(markup)
    if body_open:
        return markup[:body_open.end()] + "\n" + block + markup[body_open.end():]

    return block + markup


# ----------------- Content -----------------

def _spans(pattern: re.Pattern, markup: str, group: int = 0) -> List[Tuple[int, int]]:
    return [m.span(group) for m in pattern.finditer(markup)]


def _inside(spans: List[Tuple[int, int]], pos: int) -> bool:
    return any(start <= pos < end for start, end in spans)


def coerce_content_value(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


def resolve_content(content_keys: List[ContentKey],
                    overrides: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Declared keys only; override text when usable, else the declared default."""
    resolved = {}
    for item in content_keys:
        value = coerce_content_value((overrides or {}).get(item.key))
        resolved[item.key] = value if value is not None else item.default
    return resolved


def substitute_content(markup: str, content_keys: List[ContentKey],
                       content: Mapping[str, str],
                       mode: RenderMode) -> Tuple[str, List[EditRegion]]:
    labels = {item.key: item.label for item in content_keys}
    tag_spans = _spans(TAG_PATTERN, markup)
    raw_text_spans = _spans(RAW_TEXT_PATTERN, markup, group=2)
    counts: Dict[str, int] = {}
    wrapped: Dict[str, int] = {}

    def replace(match: re.Match) -> str:
        key = match.group(1)
        if key not in content:
            return match.group(0)

        counts[key] = counts.get(key, 0) + 1
        text = html.escape(content[key], quote=True)
        pos = match.start()
        if mode != RenderMode.EDIT or _inside(tag_spans, pos) or _inside(raw_text_spans, pos):
            return text
        wrapped[key] = wrapped.get(key, 0) + 1
        return f'<span {EDIT_KEY_ATTR}="{html.escape(key, quote=True)}">{text}</span>'

    result = TOKEN_PATTERN.sub(replace, markup)

    regions = []
    if mode == RenderMode.EDIT:
        regions = [
            EditRegion(key=key, label=labels[key], value=content[key],
                       occurrences=counts[key], wrapped=wrapped.get(key, 0))
            for key in labels if key in counts
        ]
    return result, regions


# ----------------- Composition -----------------

def compose(template_id: str, markup: str, metadata: TemplateMetadataOut,
            palette_id: Optional[str] = None,
            colors: Optional[Mapping[str, Any]] = None,
            content: Optional[Mapping[str, Any]] = None,
            mode: RenderMode = RenderMode.PREVIEW) -> ComposedPage:
    palette = resolve_palette(metadata.palettes, palette_id, colors)
    resolved_content = resolve_content(metadata.content_keys, content)

    page = apply_palette(markup, palette, mode)
    page, regions = substitute_content(
        page, metadata.content_keys, resolved_content, mode)

    return ComposedPage(template_id=template_id, mode=mode, palette=palette,
                        html=page, edit_regions=regions)


def compose_template(db: Session, template_id: str,
                     palette_id: Optional[str] = None,
                     colors: Optional[Mapping[str, Any]] = None,
                     content: Optional[Mapping[str, Any]] = None,
                     mode: RenderMode = RenderMode.PREVIEW) -> ComposedPage:
    bundle = template_crud.get_template_bundle(db, template_id)
    markup = prepare_base_markup(bundle.markup)
    return compose(template_id, markup, bundle.metadata,
                   palette_id, colors, content, mode)


def design_inputs(design_data: Optional[Mapping[str, Any]]):
    """Split a site's design data into (palette id, explicit colors, content)."""
    design_data = design_data or {}
    palette_id = design_data.get(SELECTED_PALETTE_KEY)
    if not isinstance(palette_id, str):
        palette_id = None
    colors = design_data.get(EXPLICIT_COLORS_KEY)
    if not isinstance(colors, Mapping):
        colors = None
    return palette_id, colors, design_data


def compose_site(db: Session, site, mode: RenderMode) -> ComposedPage:
    palette_id, colors, content = design_inputs(site.design_data)
    return compose_template(db, site.template_id, palette_id, colors,
                            content, mode)
