"""Application wiring layer."""

from travelsphere.application.context import AppContext, make_app_context

__all__ = ["AppContext", "make_app_context"]
