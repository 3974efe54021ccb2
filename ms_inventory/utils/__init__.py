"""
Utilidades del microservicio
"""
from .auth import get_current_user, get_current_actor, actor_from_user
from .exception_handlers import register_exception_handlers

__all__ = [
    "get_current_user",
    "get_current_actor",
    "actor_from_user",
    "register_exception_handlers"
]
