# syntaxkit

syntaxkit reads syntax definitions written in the `.sublime-syntax` YAML
format, links them into a syntax set, and finds syntaxes in that set by name,
scope, file extension, file path or first line. It also provides scopes,
scope stacks and scope-selector scoring of the kind TextMate-style themes use.

## Installation

```
pip install syntaxkit
```

## Loading syntax definitions

```python
from syntaxkit.builder import SyntaxSetBuilder
from syntaxkit.yaml_load import load_syntax_from_str

definition = load_syntax_from_str("""
name: A
scope: source.a
file_extensions: [a]
contexts:
  main:
    - match: 'a'
      scope: a
""", True, None)

builder = SyntaxSetBuilder()
builder.add(definition)
builder.add_plain_text_syntax()
syntax_set = builder.build()

print(syntax_set.find_syntax_by_extension("a").name)  # A
```

`load_syntax_from_str(s, lines_include_newline, fallback_name)` returns a
`SyntaxDefinition`. `fallback_name` is used when the YAML has no `name` key;
without either, the name is `Unnamed`. Problems raise `ParseSyntaxError`
(from `syntaxkit.yaml_load`), with the subclasses `MissingMandatoryKeyError`
(its `key` attribute names the key) and `RegexCompileError` (its `regex`
attribute holds the offending pattern).

While loading, `{{variable}}` references are expanded, POSIX classes such as
`[:alpha:]` become Unicode property classes, `embed`/`escape` are turned into
the equivalent pushes, and anonymous contexts are named `#anon_<name>_<n>`.
Every definition also gets the `__start` and `__main` contexts used as the
top-level entry points.

Pass `lines_include_newline=True` when the lines you match against keep their
trailing `\n`; each `$` is then made to match at the end of a line. With
`False`, patterns that match `\n` are rewritten to match the end of the line
instead. The rewrites are available on their own in `syntaxkit.regex_rewrite`.

A directory tree can be loaded with
`SyntaxSetBuilder.add_from_folder(folder, lines_include_newline)`, which reads
every `.sublime-syntax` file in file-name order and follows symbolic links, or
with `SyntaxSet.load_from_folder(folder)`, which does the same with
`lines_include_newline=False` and builds the set.

## Finding a syntax

A `SyntaxSet` (from `syntaxkit.syntax_set`) offers:

- `find_syntax_by_name`, `find_syntax_by_scope`, `find_syntax_by_extension`
  (extensions compare without regard to ASCII case)
- `find_syntax_by_token`: the extension first, then a case-insensitive name
- `find_syntax_by_first_line`: for shebangs and mode lines
- `find_syntax_by_path`: matches the end of the path a syntax was loaded from
- `find_syntax_for_file`: the file name and extension, then the file's first
  line (raises `OSError` if the file has to be read and cannot be)
- `find_syntax_plain_text`: the `Plain Text` syntax; raises `LookupError` if
  the set has none

Each returns a `SyntaxReference` or `None`. Later syntaxes take precedence over
earlier ones. To add syntaxes to a built set, call `into_builder()`, add them
and build again. `find_unlinked_contexts()` returns a sorted list describing
the push and set references that could not be linked, and
`get_context(context_id)` returns a linked context, raising `ParsingError` if
there is none. `syntaxkit.syntax_definition.context_iter(syntax_set, context)`
walks every match pattern of a context, following its includes in order.

## Scopes and selectors

```python
from syntaxkit.scope import Scope
from syntaxkit.scope_stack import ScopeStack

Scope.parse("string").is_prefix_of(Scope.parse("string.quoted"))  # True

selector = ScopeStack.parse("a.b c e.f")
selector.does_match(ScopeStack.parse("a.b c.d e.f.g").scopes)  # 138.0
```

A scope holds at most eight dot-separated atoms; more raise
`ParseScopeError`. `does_match` returns a score, higher for deeper and longer
matches, or `None` when the selector does not match.

A `ScopeStack` changes when you apply `ScopeStackOp` values made with
`ScopeStackOp.push`, `pop`, `clear`, `restore` and `noop`.
`apply_with_hook(op, hook)` calls `hook` with a `BasicScopeStackOp` and the
scopes on the stack after every single push or pop. Restoring when nothing was
cleared raises `ScopeError`.

## What the package does not do

syntaxkit loads, links and looks up syntax definitions and scores scope
selectors. It does not parse or highlight text line by line with a syntax,
does not load colour themes, and does not save syntax sets to or load them
from binary dumps. It reads only `.sublime-syntax` files, not `.tmLanguage`
or `.tmPreferences` files.

## Running the tests

```
pip install -e ".[test]"
pytest
```