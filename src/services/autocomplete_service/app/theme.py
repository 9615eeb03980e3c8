import logging
import re
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

THEME_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

OPTIONS_TEMPLATE = "_options.html.j2"
CHIP_TEMPLATE = "_chip.html.j2"


class TemplateResolver:
    """
    Maps a requested theme onto the template directory that renders it.
    Anything that is not a plain name on the allow-list falls back to the
    default theme, so a request can never point outside ``theme/``.
    """

    def __init__(self, allowed_themes: Iterable[str], default_theme: str = "default"):
        self.allowed_themes = frozenset(allowed_themes) | {default_theme}
        self.default_theme = default_theme

    def resolve_theme(self, theme: Optional[str]) -> str:
        if not theme:
            return self.default_theme
        if not THEME_NAME_PATTERN.match(theme) or theme not in self.allowed_themes:
            logger.info("Unknown autocomplete theme requested, using default.", extra={"theme": theme})
            return self.default_theme
        return theme

    def options_template(self, theme: Optional[str]) -> str:
        return f"theme/{self.resolve_theme(theme)}/{OPTIONS_TEMPLATE}"

    def chip_template(self, theme: Optional[str]) -> str:
        return f"theme/{self.resolve_theme(theme)}/{CHIP_TEMPLATE}"
