from api_doc_generator.generator.conflicts import (
    Severity,
    classify_pair,
    find_conflicts,
    properties_agree,
    resolve_conflicts,
)
from api_doc_generator.log import GenerationLog, Level
from api_doc_generator.parser.base import OptionsClassDescriptor, PropertyDescriptor


def _options(name: str, section: str, *props: tuple[str, str]) -> OptionsClassDescriptor:
    return OptionsClassDescriptor(
        class_name=name,
        config_section=section,
        file=f"/src/{name}.cs",
        properties=[PropertyDescriptor(name=n, type=t) for t, n in props],
    )


class TestClassification:
    def test_different_sections_do_not_conflict(self):
        a = _options("A", "x:a", ("int", "Port"))
        b = _options("B", "x:b", ("string", "Port"))
        assert classify_pair(a, b) is None

    def test_disjoint_properties_are_benign(self):
        a = _options("A", "x", ("int", "Port"))
        b = _options("B", "x", ("string", "Host"))
        assert properties_agree(a, b)
        assert classify_pair(a, b) == Severity.WARNING

    def test_same_typed_shared_property_is_benign(self):
        a = _options("A", "x", ("int", "Port"), ("bool", "Secure"))
        b = _options("B", "x", ("int", "Port"))
        assert classify_pair(a, b) == Severity.WARNING

    def test_type_mismatch_is_hard(self):
        a = _options("A", "x", ("int", "Port"))
        b = _options("B", "x", ("string", "Port"))
        assert classify_pair(a, b) == Severity.ERROR

    def test_classification_is_symmetric(self):
        pairs = [
            (_options("A", "x", ("int", "Port")), _options("B", "x", ("string", "Port"))),
            (_options("A", "x", ("int", "Port")), _options("B", "x", ("int", "Port"), ("int", "Size"))),
            (_options("A", "x"), _options("B", "y")),
        ]
        for a, b in pairs:
            assert classify_pair(a, b) == classify_pair(b, a)


class TestMessages:
    def test_hard_conflict_names_both_classes(self):
        a = _options("A", "x", ("int", "Port"))
        b = _options("B", "x", ("string", "Port"))
        (conflict,) = find_conflicts([a, b])
        assert conflict.message == (
            "ERROR! Duplicated section 'x' and property type violation found in these options classes:\n"
            "\tA: /src/A.cs\n"
            "\t\tint Port\n"
            "\tB: /src/B.cs\n"
            "\t\tstring Port\n"
            "\tDocumentations of these classes are skipped."
        )

    def test_benign_conflict_message(self):
        a = _options("A", "x", ("int", "Port"), ("bool", "On"))
        b = _options("B", "x", ("int", "Port"))
        (conflict,) = find_conflicts([a, b])
        assert conflict.message.startswith("WARNING! Duplicated section 'x' found")
        assert "\t\tint Port; bool On" in conflict.message
        assert "skipped" not in conflict.message


class TestResolve:
    def test_hard_conflict_removes_both(self):
        log = GenerationLog()
        a = _options("A", "x", ("int", "Port"))
        b = _options("B", "x", ("string", "Port"))
        c = _options("C", "y", ("int", "Port"))
        kept, conflicts = resolve_conflicts([a, b, c], log)
        assert kept == [c]
        assert len(conflicts) == 1
        assert len(log.by_level(Level.ERROR)) == 1

    def test_benign_conflict_keeps_both(self):
        log = GenerationLog()
        a = _options("A", "x", ("int", "Port"))
        b = _options("B", "x", ("string", "Host"))
        kept, conflicts = resolve_conflicts([a, b], log)
        assert [oc.class_name for oc in kept] == ["A", "B"]
        assert conflicts[0].severity == Severity.WARNING
        assert len(log.by_level(Level.WARNING)) == 1
        assert log.by_level(Level.ERROR) == []

    def test_conflict_keeps_class_identity(self):
        a = _options("A", "x", ("int", "Port"))
        b = _options("B", "x", ("string", "Port"))
        (conflict,) = find_conflicts([a, b])
        assert conflict.first is a
        assert conflict.second is b
