"""Page rendering and layout state for the dashboard shell."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from flask import current_app, render_template, request

from clinic_dashboard.forms import SearchForm
from clinic_dashboard.services.formatting import date_part, format_currency

THEME_COOKIE = "theme"
SIDER_COOKIE = "sider_collapsed"
THEME_MODES = ("light", "dark")


@dataclass(frozen=True)
class NavItem:
    key: str
    label: str
    path: str
    icon: str = ""


NAV_ITEMS: tuple[NavItem | None, ...] = (
    NavItem("home", "Главная", "/", "home"),
    NavItem("search", "Поиск пациента", "/search", "search"),
    NavItem("visits", "Приемы", "/visits", "schedule"),
    NavItem("categories", "Категории", "/categories", "appstore"),
    NavItem("costs", "Расходы", "/costs", "dollar"),
    NavItem("doctors", "Сотрудники", "/doctors", "team"),
    NavItem("products", "Товары", "/products", "shopping"),
    NavItem("sales", "Продажи товаров", "/sales", "cart"),
    NavItem("warehouse", "Склад", "/warehouse", "database"),
    NavItem("blacklist", "Черный список", "/blacklist", "block"),
    NavItem("diagnostics", "Анализы", "/diagnostics", "experiment"),
    None,  # divider
    NavItem("about", "О нас", "/about", "info"),
    NavItem("apps", "App Gallery", "/apps", "appstore"),
)


@dataclass(frozen=True)
class LayoutContext:
    """Theme mode and sidebar state for one request."""

    theme: str = "light"
    sider_collapsed: bool = False

    @classmethod
    def from_request(cls) -> "LayoutContext":
        theme = request.cookies.get(THEME_COOKIE, "light")
        if theme not in THEME_MODES:
            theme = "light"
        collapsed = request.cookies.get(SIDER_COOKIE) == "1"
        return cls(theme=theme, sider_collapsed=collapsed)

    def toggled_theme(self) -> str:
        return "dark" if self.theme == "light" else "light"


def active_nav_key(path: str) -> str | None:
    for item in NAV_ITEMS:
        if item is None:
            continue
        if item.path == "/":
            if path in ("/", "/home"):
                return item.key
        elif path.startswith(item.path):
            return item.key
    return None


def render_page(template: str, **context: Any) -> str:
    """Render ``template`` inside the dashboard shell."""
    context.setdefault("layout", LayoutContext.from_request())
    context.setdefault("nav_items", NAV_ITEMS)
    context.setdefault("active_nav", active_nav_key(request.path))
    context.setdefault("header_search_form", SearchForm(formdata=request.args))
    return render_template(template, **context)


def register_ui(app) -> None:
    @app.template_filter("currency")
    def _currency_filter(value):
        return format_currency(value or 0, current_app.config.get("CURRENCY_LOCALE", "ru_RU"))

    app.add_template_filter(date_part, "date_part")


def wants_json() -> bool:
    return request.is_json or "application/json" in (request.headers.get("Accept") or "")
