"""Tests for PolicyEngine."""

from ctrain.runtime.gate.models import GateConfig, PolicyMode
from ctrain.runtime.gate.policy import PolicyEngine


class TestDenyMode:
    def test_listed_module_refused(self) -> None:
        engine = PolicyEngine(GateConfig(denylist=frozenset({"os"})), PolicyMode.DENY)
        assert not engine.permits("os")

    def test_submodule_refused(self) -> None:
        engine = PolicyEngine(GateConfig(denylist=frozenset({"urllib"})), PolicyMode.DENY)
        assert not engine.permits("urllib.request")
        assert not engine.permits("urllib.parse")

    def test_unlisted_module_permitted(self) -> None:
        engine = PolicyEngine(GateConfig(denylist=frozenset({"os"})), PolicyMode.DENY)
        assert engine.permits("json")

    def test_prefix_without_dot_is_not_a_submodule(self) -> None:
        engine = PolicyEngine(GateConfig(denylist=frozenset({"os"})), PolicyMode.DENY)
        assert engine.permits("ossaudiodev")

    def test_relative_import_refused(self) -> None:
        engine = PolicyEngine(GateConfig(), PolicyMode.DENY)
        assert not engine.permits(".sibling")

    def test_private_twin_refused(self) -> None:
        engine = PolicyEngine(GateConfig(denylist=frozenset({"socket"})), PolicyMode.DENY)
        assert engine.matching_entry("_socket") == "socket"
        assert not engine.permits("_socket")

    def test_explicit_private_entry_refused(self) -> None:
        engine = PolicyEngine(GateConfig(), PolicyMode.DENY)
        assert not engine.permits("_posixsubprocess")


class TestAllowMode:
    def test_listed_module_permitted(self) -> None:
        engine = PolicyEngine(GateConfig(allowlist=frozenset({"math"})), PolicyMode.ALLOW)
        assert engine.permits("math")

    def test_submodule_of_listed_permitted(self) -> None:
        engine = PolicyEngine(GateConfig(allowlist=frozenset({"xml"})), PolicyMode.ALLOW)
        assert engine.permits("xml.etree.ElementTree")

    def test_unlisted_refused(self) -> None:
        engine = PolicyEngine(GateConfig(allowlist=frozenset({"math"})), PolicyMode.ALLOW)
        assert not engine.permits("os")
        assert not engine.permits("mathx")

    def test_relative_import_refused(self) -> None:
        engine = PolicyEngine(GateConfig(), PolicyMode.ALLOW)
        assert not engine.permits(".")

    def test_private_twin_not_permitted(self) -> None:
        engine = PolicyEngine(GateConfig(allowlist=frozenset({"json"})), PolicyMode.ALLOW)
        assert not engine.permits("_json")


class TestMatchingEntry:
    def test_longest_match_wins(self) -> None:
        engine = PolicyEngine(
            GateConfig(denylist=frozenset({"xml", "xml.etree"})),
            PolicyMode.DENY,
        )
        assert engine.matching_entry("xml.etree.ElementTree") == "xml.etree"
        assert engine.matching_entry("xml.dom") == "xml"

    def test_no_match(self) -> None:
        engine = PolicyEngine(GateConfig(denylist=frozenset({"os"})), PolicyMode.DENY)
        assert engine.matching_entry("json") is None


class TestBlockedBuiltins:
    def test_defaults(self) -> None:
        engine = PolicyEngine(GateConfig(), PolicyMode.DENY)
        for name in ("eval", "exec", "compile", "__import__", "breakpoint"):
            assert engine.blocks_builtin(name)
        assert not engine.blocks_builtin("print")


class TestDeniesAttribute:
    def test_denylisted_module_name(self) -> None:
        engine = PolicyEngine(GateConfig(), PolicyMode.DENY)
        assert engine.denies_attribute("os")
        assert engine.denies_attribute("subprocess")

    def test_common_attribute_names_exempt(self) -> None:
        engine = PolicyEngine(GateConfig(), PolicyMode.DENY)
        assert not engine.denies_attribute("code")
        assert not engine.denies_attribute("select")

    def test_ordinary_attribute(self) -> None:
        engine = PolicyEngine(GateConfig(), PolicyMode.DENY)
        assert not engine.denies_attribute("append")

    def test_allow_mode_never_denies(self) -> None:
        engine = PolicyEngine(GateConfig(), PolicyMode.ALLOW)
        assert not engine.denies_attribute("os")
