"""Flask extension singletons, bound to the app in ``init_extensions``."""

from __future__ import annotations

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect

csrf = CSRFProtect()
limiter = Limiter(key_func=get_remote_address)


def init_extensions(app) -> None:
    csrf.init_app(app)
    limiter.init_app(app)
