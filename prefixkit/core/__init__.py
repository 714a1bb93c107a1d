from .event_system import EventSystem

__all__ = ["EventSystem"]
