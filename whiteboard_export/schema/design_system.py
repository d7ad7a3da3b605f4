"""Design system utilities - themes, high contrast and WCAG contrast rules.

Implements the export color settings:
- Themes: light, dark, colorful, monochrome (unknown names fall back to light)
- High contrast: pure black/white text and background, strong accent
- Accessibility: body and title text must reach a 4.5:1 contrast ratio
  against the background, otherwise they are replaced by black or white
"""

from dataclasses import replace

from .models import DesignSystem, ExportOptions


WCAG_AA_RATIO = 4.5

THEMES: dict[str, DesignSystem] = {
    "light": DesignSystem(
        name="light",
        background="#FFFFFF",
        title_text="#1E293B",
        body_text="#334155",
        accent="#2563EB",
        muted="#64748B",
    ),
    "dark": DesignSystem(
        name="dark",
        background="#0F172A",
        title_text="#F8FAFC",
        body_text="#E2E8F0",
        accent="#38BDF8",
        muted="#94A3B8",
    ),
    "colorful": DesignSystem(
        name="colorful",
        background="#FFF7ED",
        title_text="#7C2D12",
        body_text="#431407",
        accent="#DB2777",
        muted="#EA580C",
    ),
    "monochrome": DesignSystem(
        name="monochrome",
        background="#FAFAFA",
        title_text="#171717",
        body_text="#262626",
        accent="#525252",
        muted="#737373",
    ),
}

DEFAULT_THEME = "light"


def _channel(value: int) -> float:
    c = value / 255.0
    if c <= 0.03928:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


def relative_luminance(hex_color: str) -> float:
    """WCAG 2.x relative luminance of a '#RRGGBB' color."""
    h = hex_color.lstrip("#")
    r, g, b = bytes.fromhex(h)
    return 0.2126 * _channel(r) + 0.7152 * _channel(g) + 0.0722 * _channel(b)


def contrast_ratio(foreground: str, background: str) -> float:
    """Contrast ratio between two colors, from 1.0 to 21.0."""
    l1 = relative_luminance(foreground)
    l2 = relative_luminance(background)
    lighter, darker = max(l1, l2), min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def readable_text_color(background: str) -> str:
    """Black or white, whichever contrasts more with *background*."""
    if contrast_ratio("#000000", background) >= contrast_ratio("#FFFFFF", background):
        return "#000000"
    return "#FFFFFF"


def high_contrast(design: DesignSystem) -> DesignSystem:
    """Collapse a theme to black/white, keeping its light or dark polarity."""
    dark_bg = relative_luminance(design.background) < 0.5
    bg = "#000000" if dark_bg else "#FFFFFF"
    fg = "#FFFFFF" if dark_bg else "#000000"
    return replace(
        design,
        background=bg,
        title_text=fg,
        body_text=fg,
        accent="#FFD700" if dark_bg else "#0000CC",
        muted=fg,
    )


def enforce_contrast(design: DesignSystem,
                     minimum: float = WCAG_AA_RATIO) -> DesignSystem:
    """Replace text colors that fall below *minimum* contrast."""
    updates = {}
    for attr in ("title_text", "body_text", "muted"):
        color = getattr(design, attr)
        if contrast_ratio(color, design.background) < minimum:
            updates[attr] = readable_text_color(design.background)
    return replace(design, **updates) if updates else design


def resolve_design(theme: str = DEFAULT_THEME, high_contrast_mode: bool = False,
                   accessibility: bool = False) -> DesignSystem:
    """Build the design system for a theme name and accessibility flags."""
    base = THEMES.get((theme or DEFAULT_THEME).lower(), THEMES[DEFAULT_THEME])
    design = replace(base)
    if high_contrast_mode:
        design = high_contrast(design)
    if accessibility:
        design = enforce_contrast(design)
    return design


def design_for_options(options: ExportOptions) -> DesignSystem:
    """Shortcut: resolve the design system an ExportOptions asks for."""
    return resolve_design(
        options.theme,
        high_contrast_mode=options.high_contrast,
        accessibility=options.accessibility,
    )
