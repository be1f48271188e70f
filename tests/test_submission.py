import asyncio

import pytest
import structlog
from structlog.testing import capture_logs

from formstate.errors import ConfigurationError, ErrorCode
from formstate.store import SubmissionResult
from formstate.validation import SchemaRule, min_length, required

from conftest import run


def test_submit_without_handler_logs_and_returns(store):
    store.register_field("name", initial_value="Ada")
    with capture_logs() as logs:
        assert run(store.submit_form()) is None
    assert logs[0]["event"] == "submit_handler_missing"


def test_submit_passes_nested_values(store, submitted):
    store.register_form(on_submit=submitted)
    store.register_field("user.name", initial_value="Ada")
    result = run(store.submit_form())
    assert submitted.calls == [{"user": {"name": "Ada"}}]
    assert result == SubmissionResult(success=True)


def test_submit_does_not_gate_on_validity(store, submitted):
    store.register_form(on_submit=submitted)
    store.register_field("name", initial_value="", validation=required())
    run(store.validate_form())
    assert not store.state.is_valid
    run(store.submit_form())
    assert submitted.calls == [{"name": ""}]


def test_async_handler_is_awaited(store):
    async def handler(values):
        await asyncio.sleep(0)
        return SubmissionResult(success=True)

    store.register_form(on_submit=handler)
    assert run(store.submit_form()).success


def test_rejected_submission_injects_errors(store):
    store.register_field("email", initial_value="ada@example.org")
    store.register_form(on_submit=lambda values: {
        "success": False, "formErrors": ["Could not save."], "fieldErrors": {"email": ["Already registered."]}})

    result = run(store.submit_form())
    assert result.success is False
    assert store.get_form_errors() == ["Could not save."]
    assert store.get_field_errors("email") == ["Already registered."]
    assert store.state.errors.issues[0].code is ErrorCode.E2030_SUBMISSION_REJECTED
    assert not store.state.is_valid


def test_handler_exceptions_propagate(store):
    def handler(values):
        raise RuntimeError("network down")

    store.register_form(on_submit=handler)
    store.register_field("name", initial_value="x", validation=min_length(1))
    with pytest.raises(RuntimeError):
        run(store.submit_form())
    assert not store.state.is_validating


def test_unexpected_handler_return_is_a_configuration_error(store):
    store.register_form(on_submit=lambda values: "ok")
    with pytest.raises(ConfigurationError):
        run(store.submit_form())


def test_set_submitting_is_a_plain_flag(store, submitted):
    store.register_form(on_submit=submitted)
    store.set_submitting(True)
    assert store.state.is_submitting
    run(store.submit_form())
    assert store.state.is_submitting
    store.set_submitting(False)
    assert not store.state.is_submitting


def test_handle_submit_gates_on_field_issues(store, submitted):
    invalid = []
    store.register_form(on_submit=submitted, on_submit_invalid=invalid.append)
    store.register_field("name", initial_value="", validation=required())

    assert run(store.handle_submit()) is None
    assert submitted.calls == []
    assert invalid[0].field_errors == {"name": ["You must answer this question before continuing."]}
    assert not store.state.is_submitting

    store.set_field_value("name", "Ada")
    assert run(store.handle_submit()).success
    assert submitted.calls == [{"name": "Ada"}]


def test_handle_submit_tracks_submitting_flag(store):
    observed = []

    def handler(values):
        observed.append(store.state.is_submitting)
        return None

    store.register_form(on_submit=handler)
    run(store.handle_submit())
    assert observed == [True]
    assert not store.state.is_submitting


def test_failed_validation_still_clears_validating(store):
    async def slow_failure(form_values):
        raise ConnectionError("lookup failed")

    store.register_field("name", initial_value="x", validation=slow_failure)
    run(store.validate_field("name"))
    meta = store.get_field_state("name").meta
    assert not meta.is_validating
    assert not meta.is_valid
    assert store.get_field_errors("name") == ["Something went wrong during validation"]


def test_configuration_error_surfaces_after_cleanup(store):
    def misconfigured(form_values):
        return min_length(None)(form_values)

    store.register_field("name", initial_value="x", validation=misconfigured)
    with pytest.raises(ConfigurationError):
        run(store.validate_field("name"))
    assert not store.get_field_state("name").meta.is_validating
    with pytest.raises(ConfigurationError):
        run(store.validate_form())
    assert not store.state.is_validating


def test_last_resolving_validation_wins(store):
    """Concurrent validations are not serialized; the slower, older call overwrites."""
    delays = iter([0.02, 0.0])

    async def build(form_values):
        await asyncio.sleep(next(delays))
        value = form_values["name"]
        return SchemaRule().refine(lambda v, ctx: ctx.add_issue(f"checked {value}"))

    store.register_field("name", initial_value="old", validation=build)

    async def scenario():
        first = asyncio.create_task(store.validate_field("name"))
        await asyncio.sleep(0)
        store.set_field_value("name", "new")
        second = asyncio.create_task(store.validate_field("name"))
        await asyncio.gather(first, second)

    run(scenario())
    assert store.get_field_errors("name") == ["checked old"]


def test_validation_for_unregistered_field_is_dropped(store):
    async def build(form_values):
        await asyncio.sleep(0.01)
        return SchemaRule()

    store.register_field("name", initial_value="x", validation=build)

    async def scenario():
        task = asyncio.create_task(store.validate_field("name"))
        await asyncio.sleep(0)
        store.unregister_field("name")
        await task

    run(scenario())
    assert store.get_field_state("name") is None
    assert store.state.errors is None


@pytest.mark.parametrize("replacement", [None, min_length(1)])
def test_validation_for_reregistered_field_is_dropped(store, replacement):
    async def build(form_values):
        await asyncio.sleep(0.01)
        return SchemaRule().refine(lambda v, ctx: ctx.add_issue("bad"))

    async def scenario(validate):
        store.register_field("name", initial_value="x", validation=build)
        task = asyncio.create_task(validate())
        await asyncio.sleep(0)
        store.register_field("name", initial_value="x", validation=replacement)
        await task

    for validate in (lambda: store.validate_field("name"), store.validate_form):
        run(scenario(validate))
        entry = store.get_field_state("name")
        assert entry.meta.is_valid is (replacement is None)
        assert entry.meta.errors is None
        assert store.get_field_errors("name") is None


def test_field_name_is_bound_to_log_context_while_validating(store):
    seen = {}

    def recorder(name):
        def build(form_values):
            seen[name] = structlog.contextvars.get_contextvars().get("field")
            return SchemaRule()
        return build

    store.register_field("user.name", initial_value="Ada", validation=recorder("user.name"))
    store.register_field("user.email", initial_value="a@b.co", validation=recorder("user.email"))

    run(store.validate_field("user.name"))
    assert seen == {"user.name": "user.name"}
    assert "field" not in structlog.contextvars.get_contextvars()

    seen.clear()
    run(store.validate_form())
    assert seen == {"user.name": "user.name", "user.email": "user.email"}
    assert "field" not in structlog.contextvars.get_contextvars()
