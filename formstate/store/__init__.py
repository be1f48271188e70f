"""Form State Container

Usage:
    from formstate.store import create_form_store

    store = create_form_store()
    store.register_field("email", initial_value="", validation=min_length(1))
    await store.validate_form()
"""
from .state import FieldMeta, FieldEntry, FormSnapshot
from .submission import SubmissionCoordinator, SubmissionResult
from .container import FormStore, create_form_store

__all__ = [
    "FieldMeta",
    "FieldEntry",
    "FormSnapshot",
    "SubmissionCoordinator",
    "SubmissionResult",
    "FormStore",
    "create_form_store",
]
