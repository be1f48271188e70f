from .debounce import Debounced, debounce

__all__ = ["Debounced", "debounce"]
