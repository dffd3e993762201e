import pytest

from syntaxkit.scope import ClearAmount, ParseScopeError, Scope, ScopeRepository


def test_repo_works():
    repo = ScopeRepository()
    assert repo.build("source.php") == repo.build("source.php")
    assert repo.build("source.php.wow.hi.bob.troll.clock.5") == repo.build(
        "source.php.wow.hi.bob.troll.clock.5"
    )
    assert repo.build("") == repo.build("")
    s1 = repo.build("")
    assert repo.to_string(s1) == ""
    s2 = repo.build("source.php.wow")
    assert repo.to_string(s2) == "source.php.wow"
    assert repo.build("source.php") != repo.build("source.perl")
    assert repo.build("source.php") != repo.build("source.php.wagon")
    assert repo.build("comment.line.") == repo.build("comment.line")


def test_global_repo_works():
    assert Scope.parse("source.php") == Scope.parse("source.php")
    assert len(Scope.parse("1.2.3.4.5.6.7.8")) == 8
    with pytest.raises(ParseScopeError):
        Scope.parse("1.2.3.4.5.6.7.8.9")


@pytest.mark.parametrize(
    "prefix, full, expected",
    [
        ("1.2.3.4.5.6.7.8", "1.2.3.4.5.6.7.8", True),
        ("1.2.3.4.5.6", "1.2.3.4.5.6.7.8", True),
        ("1.2.3.4", "1.2.3.4.5.6.7.8", True),
        ("1.2.3.4.5.6.a", "1.2.3.4.5.6.7.8", False),
        ("1.2.a.4.5.6.7", "1.2.3.4.5.6.7.8", False),
        ("1.2.a.4.5.6.7", "1.2.3.4.5", False),
        ("1.2.a", "1.2.3.4.5.6.7.8", False),
        ("string", "string.quoted", True),
        ("string.quoted", "string.quoted", True),
        ("", "meta.rails.controller", True),
        ("source.php", "source", False),
        ("source.php", "source.ruby", False),
        ("meta.php", "source.php", False),
        ("meta.php", "source.php.wow", False),
    ],
)
def test_prefixes_work(prefix, full, expected):
    assert Scope.parse(prefix).is_prefix_of(Scope.parse(full)) is expected


def test_len_and_empty():
    assert len(Scope.parse("")) == 0
    assert len(Scope.parse("a.b.c")) == 3
    assert len(Scope.parse("a.b.c.d.e")) == 5
    assert Scope.parse("") == Scope()


def test_string_round_trip_and_repr():
    scope = Scope.parse("  meta.function.parameters.rust  ")
    assert str(scope) == "meta.function.parameters.rust"
    assert scope.build_string() == "meta.function.parameters.rust"
    assert repr(scope) == "<meta.function.parameters.rust>"


def test_atom_at():
    repo = ScopeRepository()
    scope = repo.build("x.y.z.w.v")
    assert [scope.atom_at(i) for i in range(8)] == [1, 2, 3, 4, 5, 0, 0, 0]
    assert repo.atom_str(scope.atom_at(4)) == "v"
    with pytest.raises(IndexError):
        scope.atom_at(8)


def test_atom_str_rejects_zero():
    repo = ScopeRepository()
    repo.build("a")
    with pytest.raises(IndexError):
        repo.atom_str(0)


def test_scopes_are_hashable():
    assert len({Scope.parse("a.b"), Scope.parse("a.b"), Scope.parse("a")}) == 2


def test_clear_amount():
    assert ClearAmount().is_all is True
    assert ClearAmount(2).is_all is False
    assert ClearAmount(2) == ClearAmount(2)