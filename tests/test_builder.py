import textwrap

import pytest

from syntaxkit.builder import SyntaxSetBuilder
from syntaxkit.scope import Scope
from syntaxkit.syntax_definition import DirectReference
from syntaxkit.yaml_load import ParseSyntaxError, load_syntax_from_str


def load(text):
    return load_syntax_from_str(textwrap.dedent(text), True, None)


def syntax_a():
    return load(
        """
        name: A
        scope: source.a
        file_extensions: [a]
        contexts:
          main:
            - match: 'a'
              scope: a
            - match: 'go_b'
              push: scope:source.b#main
        """
    )


def syntax_b():
    return load(
        """
        name: B
        scope: source.b
        file_extensions: [b]
        contexts:
          main:
            - match: 'b'
              scope: b
        """
    )


def main_context(syntax_set, syntax):
    return syntax_set.get_context(syntax.context_ids()["main"])


def assert_prototype_only_on(expected, syntax_set, syntax):
    for name, context_id in syntax.context_ids().items():
        if name in ("__main", "__start"):
            continue
        context = syntax_set.get_context(context_id)
        if name in expected:
            assert context.prototype is not None, name
        else:
            assert context.prototype is None, name


def test_can_list_added_syntaxes():
    builder = SyntaxSetBuilder()
    builder.add(syntax_a())
    builder.add(syntax_b())
    assert [s.name for s in builder.syntaxes()] == ["A", "B"]


def test_plain_text_syntax():
    builder = SyntaxSetBuilder()
    builder.add_plain_text_syntax()
    ss = builder.build()
    plain = ss.find_syntax_plain_text()
    assert plain.name == "Plain Text"
    assert plain.file_extensions == ["txt"]
    assert plain.scope == Scope.parse("text.plain")
    assert ss.find_syntax_by_token("rs") is None


def test_links_reference_by_scope():
    builder = SyntaxSetBuilder()
    builder.add(syntax_a())
    builder.add(syntax_b())
    ss = builder.build()
    a = ss.find_syntax_by_extension("a")
    ref = main_context(ss, a).match_at(1).operation.contexts[0]
    assert isinstance(ref, DirectReference)
    target = ss.get_context(ref.id())
    assert target.match_at(0).scope == [Scope.parse("b")]


def test_can_add_more_syntaxes_with_builder():
    builder = SyntaxSetBuilder()
    builder.add(syntax_a())
    builder.add(syntax_b())
    original = builder.build()

    builder = original.into_builder()
    builder.add(
        load(
            """
            name: C
            scope: source.c
            file_extensions: [c]
            contexts:
              main:
                - match: 'c'
                  scope: c
                - match: 'go_a'
                  push: scope:source.a#main
            """
        )
    )
    ss = builder.build()
    c = ss.find_syntax_by_extension("c")
    to_a = main_context(ss, c).match_at(1).operation.contexts[0]
    a_main = ss.get_context(to_a.id())
    assert a_main.match_at(0).scope == [Scope.parse("a")]
    to_b = a_main.match_at(1).operation.contexts[0]
    assert ss.get_context(to_b.id()).match_at(0).scope == [Scope.parse("b")]


@pytest.mark.parametrize(
    "embed",
    ["scope:does.not.exist", "DoesNotExist.sublime-syntax"],
)
def test_falls_back_to_plain_text_when_embedded_target_is_missing(embed):
    syntax = load(
        f"""
        name: Z
        scope: source.z
        file_extensions: [z]
        contexts:
          main:
            - match: 'z'
              scope: z
            - match: 'go_x'
              embed: {embed}
              escape: 'leave_x'
        """
    )
    builder = SyntaxSetBuilder()
    builder.add_plain_text_syntax()
    builder.add(syntax)
    ss = builder.build()
    z = ss.find_syntax_by_extension("z")
    ref = main_context(ss, z).match_at(1).operation.contexts[1]
    assert isinstance(ref, DirectReference)
    plain = ss.find_syntax_plain_text()
    assert ref.id() == plain.context_ids()["main"]


def test_can_find_unlinked_contexts():
    builder = SyntaxSetBuilder()
    builder.add(syntax_a())
    builder.add(syntax_b())
    assert builder.build().find_unlinked_contexts() == []

    builder = SyntaxSetBuilder()
    builder.add(syntax_a())
    assert builder.build().find_unlinked_contexts() == [
        "Syntax 'A' with scope 'source.a' has unresolved context reference "
        "ByScopeReference(scope=<source.b>, sub_context='main', with_escape=False)"
    ]


def test_can_override_syntaxes():
    builder = SyntaxSetBuilder()
    builder.add(syntax_a())
    builder.add(syntax_b())
    builder.add(
        load(
            r"""
            name: A improved
            scope: source.a
            file_extensions: [a]
            first_line_match: syntax\s+a
            contexts:
              main:
                - match: a
                  scope: a2
                - match: go_b
                  push: scope:source.b#main
            """
        )
    )
    builder.add(
        load(
            r"""
            name: C
            scope: source.c
            file_extensions: [c]
            first_line_match: syntax\s+.*
            contexts:
              main:
                - match: c
                  scope: c
                - match: go_a
                  push: scope:source.a#main
            """
        )
    )
    ss = builder.build()
    assert ss.find_syntax_by_extension("a").name == "A improved"
    assert ss.find_syntax_by_scope(Scope.parse("source.a")).name == "A improved"
    c = ss.find_syntax_by_first_line("syntax a")
    assert c.name == "C"
    to_a = main_context(ss, c).match_at(1).operation.contexts[0]
    assert ss.get_context(to_a.id()).match_at(0).scope == [Scope.parse("a2")]


def test_no_prototype_for_contexts_included_from_prototype():
    builder = SyntaxSetBuilder()
    builder.add(
        load(
            """
            name: Test Prototype
            scope: source.test
            file_extensions: [test]
            contexts:
              prototype:
                - include: included_from_prototype
              main:
                - match: main
                - match: other
                  push: other
              other:
                - match: o
              included_from_prototype:
                - match: p
                  scope: p
            """
        )
    )
    ss = builder.build()
    assert_prototype_only_on(["main", "other"], ss, ss.syntaxes()[0])
    rebuilt = ss.into_builder().build()
    assert_prototype_only_on(["main", "other"], rebuilt, rebuilt.syntaxes()[0])


def test_no_prototype_for_contexts_inline_in_prototype():
    builder = SyntaxSetBuilder()
    builder.add(
        load(
            """
            name: Test Prototype
            scope: source.test
            file_extensions: [test]
            contexts:
              prototype:
                - match: p
                  push:
                    - match: p2
              main:
                - match: main
            """
        )
    )
    ss = builder.build()
    assert_prototype_only_on(["main"], ss, ss.syntaxes()[0])
    rebuilt = ss.into_builder().build()
    assert_prototype_only_on(["main"], rebuilt, rebuilt.syntaxes()[0])


def test_add_from_folder(tmp_path):
    rust_dir = tmp_path / "Packages" / "Rust"
    rust_dir.mkdir(parents=True)
    (rust_dir / "Rust.sublime-syntax").write_text(
        "name: Rust\nscope: source.rust\nfile_extensions: [rs]\ncontexts: {main: []}\n",
        encoding="utf-8",
    )
    (rust_dir / "Nameless.sublime-syntax").write_text(
        "scope: source.nameless\ncontexts: {main: []}\n", encoding="utf-8"
    )
    (rust_dir / "notes.txt").write_text("ignored", encoding="utf-8")

    builder = SyntaxSetBuilder()
    builder.add_from_folder(tmp_path, False)
    assert [s.name for s in builder.syntaxes()] == ["Nameless", "Rust"]
    ss = builder.build()
    assert ss.find_syntax_by_path("Packages/Rust/Rust.sublime-syntax").name == "Rust"
    assert ss.find_syntax_by_path("Rust.sublime-syntax").name == "Rust"
    assert ss.find_syntax_by_path("ust.sublime-syntax") is None


def test_add_from_folder_reports_bad_file(tmp_path):
    (tmp_path / "Broken.sublime-syntax").write_text("scope: source.x\ncontexts: {}\n", encoding="utf-8")
    builder = SyntaxSetBuilder()
    with pytest.raises(ParseSyntaxError, match="Broken.sublime-syntax"):
        builder.add_from_folder(tmp_path, False)


def test_add_from_missing_folder(tmp_path):
    builder = SyntaxSetBuilder()
    with pytest.raises(FileNotFoundError):
        builder.add_from_folder(tmp_path / "absent", False)