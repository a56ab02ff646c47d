"""
Navigation Component for Touchline

Sidebar links are derived from the role registry: an entry is rendered only
when the active role may open its surface. All links use HTMX for SPA-like
navigation without page reloads.
"""

from typing import Any, Dict, List, Optional

from identity_access.domain import role_display_name
from identity_access.registry import NavItem, navigation_items

from .base import Component


class Navigation(Component):
    """Role-aware sidebar navigation"""

    def __init__(self, user: Optional[Dict[str, Any]] = None, current_path: str = "/"):
        """
        Args:
            user: Dict with 'role' and 'name' keys; None renders the public sidebar
            current_path: Current URL path for active link highlighting
        """
        self.user = user
        self.current_path = current_path or "/"

    def items(self) -> List[NavItem]:
        if not self.user:
            return []
        return navigation_items(self.user.get("role"))

    def render(self) -> str:
        return f"""
    <button class="sidebar-toggle" data-action="sidebar-toggle" aria-label="Toggle navigation">
        <span class="sidebar-toggle-icon">☰</span>
    </button>
    {self.render_aside()}
    <div class="sidebar-overlay" data-action="sidebar-close"></div>"""

    def render_aside(self, oob: bool = False) -> str:
        """Render only the <aside> element (HTMX out-of-band updates use oob=True)."""
        oob_attr = ' hx-swap-oob="true"' if oob else ""
        if not self.user:
            links = self._create_nav_link("/auth/login", "Sign in", "🔑", is_active=False)
            footer = ""
        else:
            tree = self.items()
            active = self._determine_active_href(tree)
            links = "".join(self._render_item(item, active) for item in tree) + self._render_logout()
            footer = self._render_user_footer()
        return f"""
    <aside class="sidebar" id="sidebar" aria-label="Sidebar"{oob_attr}>
        <nav class="sidebar-nav" role="navigation" aria-label="Main navigation">
            <div class="sidebar-header">
                <span class="sidebar-logo" aria-hidden="true"></span>
                <span class="sidebar-title">Touchline</span>
            </div>
            <div class="sidebar-items">
                {links}
            </div>
            {footer}
        </nav>
    </aside>"""

    def _render_user_footer(self) -> str:
        name = (self.user or {}).get("name", "")
        role = role_display_name((self.user or {}).get("role"))
        return f"""
            <div class="sidebar-footer">
                <div class="user-info-compact">
                    <div class="user-name">{self.escape(name)}</div>
                    <div class="user-role">{self.escape(role)}</div>
                </div>
            </div>"""

    def _determine_active_href(self, tree: List[NavItem]) -> str:
        """Best prefix match across parents and children."""
        path = self.current_path
        best = ""
        for item in tree:
            for href in [item.href] + [child.href for child in item.children]:
                if href == path:
                    return href
                if href != "/" and path.startswith(href + "/") and len(href) > len(best):
                    best = href
        return best

    def _render_item(self, item: NavItem, active: str) -> str:
        parent_active = active == item.href or any(c.href == active for c in item.children)
        parent_link = self._create_nav_link(
            item.href, item.label, item.icon, is_active=parent_active, aria_current=(active == item.href)
        )
        if not item.children:
            return parent_link
        child_links = "".join(
            self._create_nav_link(c.href, c.label, c.icon, is_active=(c.href == active)) for c in item.children
        )
        return f"""
        <div class="sidebar-group">
            {parent_link}
            <div class="sidebar-subitems">{child_links}</div>
        </div>"""

    def _create_nav_link(
        self,
        href: str,
        text: str,
        icon: str = "",
        is_active: bool = False,
        aria_current: Optional[bool] = None,
    ) -> str:
        icon_html = f'<span class="nav-icon">{icon}</span>' if icon else ""
        if aria_current is None:
            aria_current = is_active
        aria_attr = ' aria-current="page"' if aria_current else ""
        return f"""
        <a href="{self.escape(href)}"
           hx-get="{self.escape(href)}"
           hx-target="#main-content"
           hx-push-url="true"
           class="{self.classes('sidebar-link', active=is_active)}"
           data-tooltip="{self.escape(text)}"{aria_attr}>
            {icon_html}<span class="nav-text">{self.escape(text)}</span>
        </a>"""

    def _render_logout(self) -> str:
        # Full page navigation: logout clears the cookie and leaves the app shell.
        return """
        <a href="/auth/logout" class="sidebar-link sidebar-logout" data-tooltip="Sign out">
            <span class="nav-icon">🚪</span><span class="nav-text">Sign out</span>
        </a>"""
