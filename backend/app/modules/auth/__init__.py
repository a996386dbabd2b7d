# Authentication module

from app.modules.auth.dependencies import (
    CurrentAccount,
    get_current_account,
    require_roles,
    get_actor,
)

__all__ = [
    "CurrentAccount",
    "get_current_account",
    "require_roles",
    "get_actor",
]
