import pytest

from api_doc_generator.config import DEFAULT_CLASSIFICATION
from api_doc_generator.errors import ClassificationError, InputError
from api_doc_generator.generator.classification import (
    Category,
    ClassificationTable,
    assign_categories,
    load_classification,
)
from api_doc_generator.log import GenerationLog, Level
from api_doc_generator.parser.base import OptionsClassDescriptor


@pytest.fixture(scope="module")
def table():
    return load_classification(DEFAULT_CLASSIFICATION)


def _options(name: str) -> OptionsClassDescriptor:
    return OptionsClassDescriptor(class_name=name, config_section="x", file=f"/src/{name}.cs")


class TestPackagedTable:
    def test_category_order(self, table):
        assert [c.key for c in table.categories] == [
            "sensenet",
            "previewgenerator",
            "identityserver",
            "sn-io",
            "taskmanagement",
            "searchservice",
        ]

    def test_single_category(self, table):
        assert [c.key for c in table.categories_of("DataOptions")] == ["sensenet"]

    def test_multiple_categories_in_table_order(self, table):
        assert [c.key for c in table.categories_of("RabbitMqOptions")] == ["sensenet", "searchservice"]

    def test_unknown_class_raises(self, table):
        with pytest.raises(ClassificationError) as exc_info:
            table.categories_of("UnknownOptions")
        assert exc_info.value.class_name == "UnknownOptions"
        assert "UnknownOptions" in str(exc_info.value)

    def test_classes_in_is_sorted(self, table):
        names = table.classes_in("taskmanagement")
        assert names == sorted(names)
        assert "TaskManagementOptions" in names

    def test_category_lookup(self, table):
        assert table.category("sensenet").title == "Main sensenet service"
        with pytest.raises(KeyError):
            table.category("nope")


class TestCategoryHead:
    def test_head_has_front_matter_and_intro(self):
        category = Category(key="k", name="K", title="Tools", meta_title="Meta", intro="About tools.")
        assert category.head() == (
            '---\ntitle: "Tools"\nmetaTitle: "Meta"\nmetaDescription: "Tools"\n---\n\nAbout tools.\n\n'
        )


class TestValidation:
    def test_unknown_category_key_is_rejected(self, tmp_path):
        path = tmp_path / "table.yaml"
        path.write_text("categories:\n  - {key: a, name: A, title: A}\nclasses:\n  Foo: [b]\n")
        with pytest.raises(InputError, match="Invalid classification table"):
            load_classification(path)

    def test_unreadable_table(self, tmp_path):
        with pytest.raises(InputError, match="Cannot read"):
            load_classification(tmp_path / "missing.yaml")

    def test_empty_table(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_classification(path) == ClassificationTable()


class TestAssignCategories:
    def test_classified_classes_get_categories(self, table):
        log = GenerationLog()
        result = assign_categories([_options("DataOptions"), _options("RabbitMqOptions")], table, log)
        assert [oc.categories for oc in result] == [["sensenet"], ["sensenet", "searchservice"]]
        assert len(log) == 0

    def test_unclassified_class_is_dropped_with_error(self, table):
        log = GenerationLog()
        result = assign_categories([_options("UnknownOptions"), _options("DataOptions")], table, log)
        assert [oc.class_name for oc in result] == ["DataOptions"]
        errors = log.by_level(Level.ERROR)
        assert len(errors) == 1
        assert errors[0].file == "/src/UnknownOptions.cs"
