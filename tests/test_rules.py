from typing import Annotated

from pydantic import BaseModel, StringConstraints

from formstate.errors import ErrorCode
from formstate.validation import AllOf, SchemaRule, as_rule

from conftest import run


def test_schema_rule_parses_and_returns_data():
    result = run(SchemaRule(int).safe_parse("42"))
    assert result.is_ok()
    assert result.unwrap() == 42


def test_schema_rule_type_failure_maps_pydantic_errors():
    result = run(SchemaRule(str, strict=True).safe_parse(5))
    assert result.is_err()
    issue = result.unwrap_err().issues[0]
    assert issue.path == ()
    assert issue.code is ErrorCode.E2004_INVALID_TYPE


def test_prefault_replaces_none_before_parsing():
    rule = SchemaRule(str, strict=True, prefault="")
    assert run(rule.safe_parse(None)).unwrap() == ""


def test_refinements_run_after_parse_and_collect_all():
    def too_short(value, ctx):
        if len(value) < 3:
            ctx.add_issue("short")

    async def no_digits(value, ctx):
        if any(c.isdigit() for c in value):
            ctx.add_issue("digits", path=("detail",))

    rule = SchemaRule(str).refine(too_short).refine(no_digits)
    failure = run(rule.safe_parse("a1")).unwrap_err()
    assert failure.messages == ["short", "digits"]
    assert failure.issues[1].path == ("detail",)


def test_refinements_skipped_when_parse_fails():
    called = []
    rule = SchemaRule(str, strict=True).refine(lambda value, ctx: called.append(value))
    assert run(rule.safe_parse(3)).is_err()
    assert called == []


def test_builders_return_new_rules():
    base = SchemaRule(str)
    hinted = base.with_hint("Say something.")
    assert base.hint is None
    assert hinted.hint == "Say something."


def test_pydantic_model_as_rule_reports_nested_paths():
    class Address(BaseModel):
        city: Annotated[str, StringConstraints(min_length=2)]

    failure = run(as_rule(Address).safe_parse({"city": "X"})).unwrap_err()
    assert failure.issues[0].path == ("city",)
    assert failure.issues[0].code is ErrorCode.E2003_OUT_OF_RANGE


def test_all_of_concatenates_issues():
    first = SchemaRule().refine(lambda v, ctx: ctx.add_issue("one"))
    second = SchemaRule().refine(lambda v, ctx: ctx.add_issue("two")).with_hint("Second.")
    combined = first & second
    assert isinstance(combined, AllOf)
    assert combined.hint == "Second."
    assert run(combined.safe_parse("x")).unwrap_err().messages == ["one", "two"]
