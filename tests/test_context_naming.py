import pytest

from syntaxkit.context_naming import ContextNamer, resolve_variables


def test_first_name_is_the_base_name():
    namer = ContextNamer("a")
    assert namer.next_name() == "a"


def test_following_names_are_anonymous_and_numbered():
    namer = ContextNamer("a")
    names = [namer.next_name() for _ in range(4)]
    assert names == ["a", "#anon_a_0", "#anon_a_1", "#anon_a_2"]


def test_namers_are_independent():
    first = ContextNamer("main")
    second = ContextNamer("main")
    first.next_name()
    first.next_name()
    assert second.next_name() == "main"
    assert first.next_name() == "#anon_main_1"


def test_resolves_simple_variable():
    result = resolve_variables(r"\b(if|else|{{ident}})\b", {"ident": "[QY]+"})
    assert result == r"\b(if|else|[QY]+)\b"


def test_resolves_nested_variables():
    variables = {"outer": "x{{inner}}y", "inner": "[0-9]"}
    assert resolve_variables("{{outer}}", variables) == "x[0-9]y"


def test_unknown_variable_becomes_empty():
    assert resolve_variables("a{{missing}}b", {}) == "ab"


def test_text_without_variables_is_unchanged():
    text = r"(foo)\s+{1,2}[bar]"
    assert resolve_variables(text, {"foo": "zzz"}) == text


@pytest.mark.parametrize("text", ["{{a-b}}", "{{}}", "{ {ident} }"])
def test_malformed_references_are_left_alone(text):
    assert resolve_variables(text, {"ident": "[QY]+", "a": "q"}) == text


def test_multiple_occurrences_are_all_replaced():
    result = resolve_variables("{{v}}-{{v}}", {"v": "ab"})
    assert result == "ab-ab"