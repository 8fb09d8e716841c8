from enum import Enum


class RenderMode(str, Enum):
    EDIT = "edit"
    PREVIEW = "preview"
    PUBLISH = "publish"


class HostKind(str, Enum):
    PLATFORM = "platform"
    TENANT = "tenant"


UNTITLED_SITE = "Untitled Site"

# design data keys with a fixed meaning for composition
SELECTED_PALETTE_KEY = "__selectedPalette"
EXPLICIT_COLORS_KEY = "colors"
SITE_TITLE_KEY = "title"
