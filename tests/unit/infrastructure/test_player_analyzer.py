"""Tests for player cipher analysis."""

from __future__ import annotations

import pytest
from builders import PLAYER_JS

from tubextract.domain.entities import Reverse, Splice, Swap
from tubextract.domain.exceptions import (
    CipherError,
    CipherProgramNotFound,
    UnknownOperationShape,
)
from tubextract.infrastructure.cipher import analyze, analyze_player, describe

_HELPERS = (
    "var Xy={Ab:function(a){a.reverse()},"
    "Cd:function(a,b){a.splice(0,b)},"
    "Ef:function(a,b){var c=a[0];a[0]=a[b%a.length];a[b%a.length]=c}};"
)


def _player(body: str, helpers: str = _HELPERS) -> str:
    return helpers + f'var Zz=function(a){{a=a.split("");{body}return a.join("")}};'


class TestAnalyze:
    def test_fixture_player(self) -> None:
        seq = analyze(PLAYER_JS, "v1")
        assert seq.player_version == "v1"
        assert seq.operations == (Reverse(), Splice(2))

    def test_call_order_preserved(self) -> None:
        seq = analyze(_player("Xy.Ef(a,3);Xy.Ab(a,41);Xy.Cd(a,1);Xy.Ef(a,52);"), "v2")
        assert seq.operations == (Swap(3), Reverse(), Splice(1), Swap(52))

    def test_bracket_helper_calls(self) -> None:
        seq = analyze(_player('Xy["Cd"](a,3);Xy.Ab(a,0);'), "v3")
        assert seq.operations == (Splice(3), Reverse())

    def test_inline_statements(self) -> None:
        seq = analyze(_player("a.reverse();a.splice(0,4);Xy.Ef(a,2);"), "v4")
        assert seq.operations == (Reverse(), Splice(4), Swap(2))

    def test_function_declaration_form(self) -> None:
        source = _HELPERS + 'function Zz(a){a=a.split("");Xy.Cd(a,2);return a.join("")}'
        assert analyze(source, "v5").operations == (Splice(2),)

    def test_dollar_identifiers(self) -> None:
        helpers = "var $x={r$:function(a){a.reverse()}};"
        source = helpers + 'var $z=function(a){a=a.split("");$x.r$(a,1);return a.join("")};'
        assert analyze(source, "v6").operations == (Reverse(),)

    def test_swap_without_modulo_on_store(self) -> None:
        helpers = "var Xy={Ef:function(a,b){var c=a[0];a[0]=a[b%a.length];a[b]=c}};"
        assert analyze(_player("Xy.Ef(a,7);", helpers), "v7").operations == (Swap(7),)

    def test_describe(self) -> None:
        seq = analyze(_player("Xy.Ab(a,1);Xy.Cd(a,2);Xy.Ef(a,3);"), "v8")
        assert describe(seq) == ["Reverse", "Splice(2)", "Swap(3)"]


class TestAnalyzeFailures:
    def test_no_scramble_function(self) -> None:
        with pytest.raises(CipherProgramNotFound) as exc:
            analyze("var x=1;function f(){return 2}", "v9")
        assert exc.value.player_version == "v9"
        assert "scramble" in exc.value.what

    def test_missing_helper(self) -> None:
        with pytest.raises(CipherProgramNotFound) as exc:
            analyze(_player("Xy.Zq(a,1);"), "v10")
        assert "Zq" in exc.value.what

    def test_unknown_helper_shape(self) -> None:
        helpers = "var Xy={Ab:function(a,b){a.push(b)}};"
        with pytest.raises(UnknownOperationShape) as exc:
            analyze(_player("Xy.Ab(a,1);", helpers), "v11")
        assert exc.value.function_name == "Ab"
        assert "push" in exc.value.body

    def test_unknown_statement(self) -> None:
        with pytest.raises(UnknownOperationShape) as exc:
            analyze(_player("a=a.concat(a);"), "v12")
        assert exc.value.function_name == "Zz"

    def test_non_literal_index(self) -> None:
        with pytest.raises(UnknownOperationShape):
            analyze(_player("Xy.Cd(a,b);"), "v13")

    def test_non_ascii_digit_index(self) -> None:
        with pytest.raises(UnknownOperationShape):
            analyze(_player("Xy.Cd(a,\u00b2);"), "v1")
        with pytest.raises(UnknownOperationShape):
            analyze(_player("a.splice(0,\u0663);"), "v1")

    def test_oversized_index(self) -> None:
        with pytest.raises(UnknownOperationShape):
            analyze(_player(f"Xy.Cd(a,{'9' * 5000});"), "v1")
        with pytest.raises(CipherError):
            analyze(_player(f"a.splice(0,{'9' * 5000});"), "v1")

    def test_not_a_distinct_transport_error(self) -> None:
        with pytest.raises(CipherProgramNotFound) as exc:
            analyze("", "v14")
        assert exc.value.hint is not None


class TestNTransform:
    def test_indirect_reference(self) -> None:
        program = analyze_player(PLAYER_JS, "v1")
        assert program.n_transform is not None
        assert program.n_transform.operations == (Reverse(), Splice(1))
        assert program.signature.operations == (Reverse(), Splice(2))

    def test_direct_reference(self) -> None:
        source = (
            _player("Xy.Ab(a,1);")
            + 'var Yx=function(a){var b=a.split("");b.splice(0,3);return b.join("")};'
            + 'function Gk(a){var b;(b=a.get("n"))&&(b=Yx(b),a.set("n",b))}'
        )
        program = analyze_player(source, "v2")
        assert program.n_transform.operations == (Splice(3),)

    def test_missing_n_function_is_optional(self) -> None:
        program = analyze_player(_player("Xy.Ab(a,1);"), "v3")
        assert program.n_transform is None
        assert program.signature.operations == (Reverse(),)

    def test_unrecognised_n_function_is_optional(self) -> None:
        source = (
            _player("Xy.Ab(a,1);")
            + "var Yx=function(a){return a+1};"
            + 'function Gk(a){var b;(b=a.get("n"))&&(b=Yx(b),a.set("n",b))}'
        )
        assert analyze_player(source, "v4").n_transform is None

    def test_oversized_array_index_is_optional(self) -> None:
        source = (
            _player("Xy.Ab(a,1);")
            + 'var Yx=function(a){var b=a.split("");b.reverse();return b.join("")};'
            + "var Nn=[Yx];"
            + f'function Gk(a){{var b;(b=a.get("n"))&&(b=Nn[{"9" * 5000}](b),a.set("n",b))}}'
        )
        assert analyze_player(source, "v5").n_transform is None
