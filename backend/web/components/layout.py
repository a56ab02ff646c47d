"""
Layout Component for Touchline

Main layout wrapper that combines navigation, breadcrumbs, one-time notices
and the page content into a complete HTML page (or an HTMX fragment).
"""

from typing import Any, Dict, Iterable, Optional

from .base import Component
from .breadcrumbs import Breadcrumbs
from .navigation import Navigation


class NoticeBanner(Component):
    """Renders queued one-time notices (e.g. "Access Denied")."""

    def __init__(self, notices: Optional[Iterable[Any]] = None):
        self.notices = list(notices or [])

    def render(self) -> str:
        if not self.notices:
            return ""
        parts = []
        for notice in self.notices:
            level = getattr(notice, "level", "info")
            title = getattr(notice, "title", "")
            message = getattr(notice, "message", "")
            body = f"<strong>{self.escape(title)}</strong>"
            if message:
                body += f" {self.escape(message)}"
            parts.append(f'<div class="{self.classes("alert", f"alert-{level}")}" role="alert">{body}</div>')
        return f'<div class="notices" id="notices">{"".join(parts)}</div>'


class Layout(Component):
    """Main layout component that assembles the complete page"""

    def __init__(
        self,
        title: str,
        content: str,
        user: Optional[Dict[str, Any]] = None,
        show_nav: bool = True,
        current_path: str = "/",
        notices: Optional[Iterable[Any]] = None,
        head_extra: str = "",
    ):
        """
        Args:
            title: Page title (will be escaped)
            content: Main content HTML (pre-rendered components)
            user: Current user dict with 'name' and 'role' (optional)
            show_nav: Whether to show navigation and breadcrumbs
            current_path: Current URL path for active navigation highlighting
            notices: One-time notices to show above the content
            head_extra: Trusted markup appended to <head> (e.g. meta refresh)
        """
        self.title = title
        self.content = content
        self.user = user
        self.show_nav = show_nav
        self.current_path = current_path
        self.notices = list(notices or [])
        self.head_extra = head_extra

    def render(self) -> str:
        nav_html = Navigation(self.user, self.current_path).render() if self.show_nav else ""
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    {self._render_head()}
</head>
<body>
    <a href="#main-content" class="skip-link">Skip to main content</a>
    {nav_html}
    <div id="live-region" class="sr-only" role="status" aria-live="polite" aria-atomic="true"></div>
    <main id="main-content" class="main-content" role="main">
        {self._render_main_inner()}
    </main>
</body>
</html>"""

    def render_fragment(self) -> str:
        """HTMX fragment: main content plus a single out-of-band sidebar.

        The sidebar toggle expects exactly one `#sidebar` element in the DOM,
        so the aside is swapped out-of-band instead of duplicated.
        """
        main_inner = self._render_main_inner()
        if not self.show_nav:
            return main_inner
        return f"{main_inner}{Navigation(self.user, self.current_path).render_aside(oob=True)}"

    def _render_head(self) -> str:
        return f"""
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <meta name="description" content="Touchline - club performance analytics">
    <title>{self.escape(self.title)} - Touchline</title>
    <link rel="stylesheet" href="/static/css/touchline.css?v=1">
    {self.head_extra}
    """

    def _render_main_inner(self) -> str:
        breadcrumb_html = Breadcrumbs(self.current_path).render() if self.show_nav else ""
        return f"""
        {breadcrumb_html}
        {NoticeBanner(self.notices).render()}
        {self.content}
        <footer class="content-footer" role="contentinfo">
            <p class="text-center text-muted">Touchline</p>
        </footer>
        """
