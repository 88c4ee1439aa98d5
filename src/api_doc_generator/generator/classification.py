"""Classification table: options class name -> product categories."""

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError, model_validator

from api_doc_generator.errors import ClassificationError, InputError


class Category(BaseModel):
    """A product category and the front matter of its aggregation file."""

    key: str
    name: str
    title: str
    meta_title: str = ""
    meta_description: str = ""
    intro: str = ""

    def head(self) -> str:
        lines = [
            "---",
            f'title: "{self.title}"',
            f'metaTitle: "{self.meta_title or self.title}"',
            f'metaDescription: "{self.meta_description or self.title}"',
            "---",
            "",
        ]
        if self.intro:
            lines += [self.intro, ""]
        return "\n".join(lines) + "\n"


class ClassificationTable(BaseModel):
    categories: list[Category] = []
    classes: dict[str, list[str]] = {}

    @model_validator(mode="after")
    def _known_categories(self):
        keys = {c.key for c in self.categories}
        for class_name, category_keys in self.classes.items():
            unknown = [k for k in category_keys if k not in keys]
            if unknown:
                raise ValueError(f"{class_name}: unknown categories {', '.join(unknown)}")
        return self

    def category(self, key: str) -> Category:
        for category in self.categories:
            if category.key == key:
                return category
        raise KeyError(key)

    def categories_of(self, class_name: str) -> list[Category]:
        """Return every category of a class, in table order.

        Raises ClassificationError when the class has no entry.
        """
        keys = self.classes.get(class_name)
        if not keys:
            raise ClassificationError(class_name)
        return [c for c in self.categories if c.key in keys]

    def classes_in(self, key: str) -> list[str]:
        return sorted(name for name, keys in self.classes.items() if key in keys)


def load_classification(path: Path) -> ClassificationTable:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise InputError(f"Cannot read classification table {path}: {e}") from e
    try:
        return ClassificationTable(**(data or {}))
    except ValidationError as e:
        raise InputError(f"Invalid classification table {path}: {e}") from e


def assign_categories(options_classes: list, table: ClassificationTable, log) -> list:
    """Attach categories to each options class; uncategorized classes are dropped.

    A missing entry stops that class only. It is logged as an error and the
    remaining classes are still returned.
    """
    result = []
    for oc in options_classes:
        try:
            oc.categories = [c.key for c in table.categories_of(oc.class_name)]
        except ClassificationError as e:
            log.error(str(e), oc.file)
            continue
        result.append(oc)
    return result
