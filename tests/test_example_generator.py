from api_doc_generator.generator.example import (
    REFERENCE_DATE,
    STRING_PLACEHOLDER,
    Audience,
    build_configuration_example,
    generate_example,
    merge_examples,
    nest_under_section,
    split_section,
)
from api_doc_generator.parser.base import (
    ClassDescriptor,
    EnumDescriptor,
    OptionsClassDescriptor,
    PropertyDescriptor,
)


def _prop(name: str, type_: str, full: str = "", **kwargs) -> PropertyDescriptor:
    return PropertyDescriptor(name=name, type=type_, type_full_name=full or type_, **kwargs)


def _options(name: str, section: str, properties: list[PropertyDescriptor], **kwargs) -> OptionsClassDescriptor:
    return OptionsClassDescriptor(
        namespace="App.Config", class_name=name, config_section=section, properties=properties, **kwargs
    )


def _class(name: str, properties: list[PropertyDescriptor], namespace: str = "App.Config") -> ClassDescriptor:
    return ClassDescriptor(namespace=namespace, class_name=name, properties=properties)


class TestPrimitives:
    def test_section_scenario(self):
        oc = _options("ServerOptions", "A:B", [_prop("Name", "string"), _prop("Count", "int")])
        example = nest_under_section(oc.config_section, generate_example(oc, {}, {}, Audience.FRONTEND))
        assert example == {"A": {"B": {"Name": "_stringValue_", "Count": 0}}}

    def test_primitive_families(self):
        oc = _options(
            "Opts",
            "X",
            [
                _prop("Flag", "bool"),
                _prop("MaybeFlag", "bool?"),
                _prop("Size", "long"),
                _prop("Ratio", "double"),
                _prop("Price", "decimal"),
                _prop("Created", "DateTime"),
                _prop("Tags", "string[]"),
                _prop("Names", "List<string>"),
            ],
        )
        assert generate_example(oc, {}, {}) == {
            "Flag": True,
            "MaybeFlag": True,
            "Size": 0,
            "Ratio": 0.0,
            "Price": 0.0,
            "Created": REFERENCE_DATE.isoformat(),
            "Tags": [STRING_PLACEHOLDER],
            "Names": [STRING_PLACEHOLDER],
        }

    def test_reference_date_constant(self):
        assert REFERENCE_DATE.isoformat() == "2023-10-19T09:45:18"

    def test_unresolved_type_is_empty_object(self):
        oc = _options("Opts", "X", [_prop("Thing", "Unknown"), _prop("Things", "Unknown[]")])
        assert generate_example(oc, {}, {}) == {"Thing": {}, "Things": [{}]}


class TestEnums:
    def test_enum_members_are_pipe_joined(self):
        enum = EnumDescriptor(namespace="App.Config", name="Mode", members=["Sql", "InMemory", "None"])
        oc = _options("Opts", "X", [_prop("Mode", "Mode", "App.Config.Mode", is_enum=True)])
        example = generate_example(oc, {}, {enum.full_name: enum})
        assert example == {"Mode": "Sql | InMemory | None"}

    def test_unknown_enum_placeholder(self):
        oc = _options("Opts", "X", [_prop("Mode", "Mode", "Other.Mode", is_enum=True)])
        assert generate_example(oc, {}, {}) == {"Mode": "_enum_value_of_Other.Mode_"}


class TestNestedClasses:
    def test_nested_class_by_full_name(self):
        retrier = _class("Retrier", [_prop("Count", "int")])
        oc = _options("Opts", "X", [_prop("Retrier", "Retrier", "App.Config.Retrier")])
        example = generate_example(oc, {retrier.full_name: retrier}, {})
        assert example == {"Retrier": {"Count": 0}}

    def test_nested_class_through_using_directive(self):
        server = _class("Server", [_prop("Host", "string")], namespace="App.Tools")
        oc = _options("Opts", "X", [_prop("Server", "Server", "Server")], using_directives=["App.Tools"])
        assert generate_example(oc, {server.full_name: server}, {}) == {"Server": {"Host": STRING_PLACEHOLDER}}

    def test_nested_class_through_own_namespace(self):
        server = _class("Server", [_prop("Port", "int")])
        oc = _options("Opts", "X", [_prop("Server", "Server", "Server")])
        assert generate_example(oc, {server.full_name: server}, {}) == {"Server": {"Port": 0}}

    def test_collection_of_classes(self):
        server = _class("Server", [_prop("Port", "int")])
        oc = _options(
            "Opts",
            "X",
            [_prop("Servers", "List<Server>", "System.Collections.Generic.List<App.Config.Server>")],
        )
        assert generate_example(oc, {server.full_name: server}, {}) == {"Servers": [{"Port": 0}]}

    def test_self_reference_terminates(self):
        node = _class("Node", [_prop("Name", "string"), _prop("Parent", "Node", "App.Config.Node")])
        oc = _options("Opts", "X", [_prop("Root", "Node", "App.Config.Node")])
        example = generate_example(oc, {node.full_name: node}, {})
        assert example == {"Root": {"Name": STRING_PLACEHOLDER, "Parent": {}}}

    def test_mutual_reference_terminates(self):
        a = _class("A", [_prop("B", "B", "App.Config.B")])
        b = _class("B", [_prop("A", "A", "App.Config.A")])
        oc = _options("Opts", "X", [_prop("First", "A", "App.Config.A")])
        example = generate_example(oc, {a.full_name: a, b.full_name: b}, {})
        assert example == {"First": {"B": {"A": {}}}}


class TestAudience:
    def test_backend_only_properties_hidden_from_frontend(self):
        oc = _options(
            "Opts",
            "X",
            [_prop("Name", "string"), _prop("Callback", "Func<int>", "System.Func<int>", is_backend_only=True)],
        )
        assert generate_example(oc, {}, {}, Audience.FRONTEND) == {"Name": STRING_PLACEHOLDER}
        assert generate_example(oc, {}, {}, Audience.BACKEND) == {"Name": STRING_PLACEHOLDER, "Callback": {}}

    def test_generation_is_idempotent(self):
        retrier = _class("Retrier", [_prop("Count", "int")])
        oc = _options("Opts", "A:B", [_prop("Retrier", "Retrier", "App.Config.Retrier"), _prop("On", "bool")])
        classes = {retrier.full_name: retrier}
        assert generate_example(oc, classes, {}) == generate_example(oc, classes, {})


class TestSections:
    def test_split_section_on_all_separators(self):
        assert split_section("a:b/c.d") == ["a", "b", "c", "d"]
        assert split_section("sensenet::Data") == ["sensenet", "Data"]

    def test_merge_at_shared_prefix(self):
        first = _options("First", "sensenet:Data", [_prop("Timeout", "int")])
        second = _options("Second", "sensenet:Email", [_prop("Server", "string")])
        example = build_configuration_example([first, second], {}, {})
        assert example == {"sensenet": {"Data": {"Timeout": 0}, "Email": {"Server": STRING_PLACEHOLDER}}}

    def test_merge_examples_is_deep(self):
        target = {"a": {"b": 1}}
        merge_examples(target, {"a": {"c": 2}, "d": 3})
        assert target == {"a": {"b": 1, "c": 2}, "d": 3}
