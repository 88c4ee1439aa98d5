"""Options class writers: configuration index, cheat sheet and class pages."""

import logging
from pathlib import Path
from typing import TextIO

from api_doc_generator.config import FileLevel, GeneratorSettings
from api_doc_generator.generator.classification import Category, ClassificationTable
from api_doc_generator.generator.example import (
    Audience,
    ExampleGenerator,
    build_configuration_example,
    nest_under_section,
)
from api_doc_generator.generator.types import format_type, get_frontend_type
from api_doc_generator.log import GenerationLog
from api_doc_generator.parser.base import ClassDescriptor, EnumDescriptor, OptionsClassDescriptor
from api_doc_generator.writer.base import (
    CR,
    OutputRouter,
    entity_destination,
    entity_link,
    json_block,
    write_file,
    write_head,
)

logger = logging.getLogger(__name__)

LINK_PREFIX = "/configuration"
HEAD_TITLE = "Option class references"
SAMPLE_WARNING = (
    "**WARNING** This is a sample configuration containing example values. "
    "Do not use it without modifying it to reflect your environment."
)


def environment_variables(oc: OptionsClassDescriptor) -> list[str]:
    prefix = oc.config_section.replace(":", "__")
    return [f'{prefix}__{p.name}="_{p.type}_value_"' for p in oc.properties if not p.is_backend_only]


class OptionsClassWriter:
    """Common part of the audience-specific options class writers."""

    audience = Audience.FRONTEND

    def __init__(
        self,
        settings: GeneratorSettings,
        log: GenerationLog,
        table: ClassificationTable,
        classes: dict[str, ClassDescriptor],
        enums: dict[str, EnumDescriptor],
    ):
        self.settings = settings
        self.level = settings.file_level
        self.log = log
        self.table = table
        self.classes = classes
        self.enums = enums
        self.examples = ExampleGenerator(classes, enums, self.audience)

    def render_index(self, title: str, ocs: list[OptionsClassDescriptor]) -> str:
        raise NotImplementedError

    def render_options_class(self, oc: OptionsClassDescriptor) -> str:
        raise NotImplementedError

    # -- shared rendering -----------------------------------------------------

    def link(self, oc: OptionsClassDescriptor, category_key: str) -> str:
        return entity_link(LINK_PREFIX, self.level, category_key, oc.link_slug)

    def configuration_example(self, oc: OptionsClassDescriptor) -> dict:
        return nest_under_section(oc.config_section, self.examples.generate(oc))

    def render_example(self, oc: OptionsClassDescriptor) -> str:
        return f"### Configuration example:{CR}{json_block(self.configuration_example(oc))}"

    def render_environment_variables(self, oc: OptionsClassDescriptor) -> str:
        lines = ["### Environment variables example:", "```", *environment_variables(oc), "```"]
        return CR.join(lines) + CR

    def render_cheat_sheet(self, title: str, ocs: list[OptionsClassDescriptor]) -> str:
        """Merged configuration examples, one block per repository."""
        if not ocs:
            return ""
        by_repository: dict[str, list[OptionsClassDescriptor]] = {}
        for oc in ocs:
            by_repository.setdefault(oc.repository, []).append(oc)

        lines = [
            f"## {title} ({len(ocs)} sections)",
            "This article contains configuration examples, grouped by github repositories. "
            "Some of these can be combined into a single configuration file, "
            "but this is determined by the application.",
            "",
            "**WARNING** These are sample configurations containing example values. "
            "Do not use it without modifying it to reflect your environment.",
        ]
        text = CR.join(lines) + CR
        for repository, group in by_repository.items():
            example = build_configuration_example(group, self.classes, self.enums, self.audience)
            text += f"## {repository}{CR}{json_block(example)}"
        return text

    def render_configuration_examples(self, ocs: list[OptionsClassDescriptor]) -> str:
        if not ocs:
            return ""
        example = build_configuration_example(ocs, self.classes, self.enums, self.audience)
        return f"## Configuration example{CR}{CR}{SAMPLE_WARNING}{CR}{json_block(example)}"

    def render_category_file_head(self, category: Category, ocs: list[OptionsClassDescriptor]) -> str:
        members = [oc for oc in ocs if category.key in oc.categories]
        return category.head() + self.render_configuration_examples(members) + CR

    # -- files ----------------------------------------------------------------

    def write_index(self, ocs: list[OptionsClassDescriptor], out_dir: Path) -> None:
        text = write_head(HEAD_TITLE, self.settings.product_name) + self.render_index("Option classes", ocs)
        write_file(out_dir / "configuration-index.md", text)

    def write_cheat_sheet(self, ocs: list[OptionsClassDescriptor], out_dir: Path) -> None:
        text = write_head(HEAD_TITLE, self.settings.product_name) + self.render_cheat_sheet("CHEAT SHEET", ocs)
        write_file(out_dir / "configuration-cheatsheet.md", text)

    def _destinations(self, oc: OptionsClassDescriptor) -> list[tuple[Category, str]]:
        keys = oc.categories or [c.key for c in self.table.categories_of(oc.class_name)]
        destinations = []
        for key in keys:
            category = self.table.category(key)
            destinations.append((category, entity_destination(self.level, key, oc.link_slug)))
        if self.level == FileLevel.FLAT:
            destinations = destinations[:1]
        return destinations

    def write_options_classes(self, ocs: list[OptionsClassDescriptor], out_dir: Path) -> int:
        """Write every class once per category destination.

        Category aggregation files are created on first use. A class that
        fails to render is logged and skipped.
        """
        written = 0
        category_files: set[str] = set()
        with OutputRouter(out_dir) as router:
            for oc in ocs:
                try:
                    text = self.render_options_class(oc)
                    for category, key in self._destinations(oc):
                        if self.level == FileLevel.OPERATION and category.key not in category_files:
                            category_files.add(category.key)
                            write_file(out_dir / f"{category.key}.md", self.render_category_file_head(category, ocs))
                        stream = router.stream(key, self._head_writer(oc, category, ocs))
                        if self.level == FileLevel.CATEGORY:
                            stream.write(f'<a name="{oc.link_slug}"></a>{CR}{CR}')
                        stream.write(text)
                    written += 1
                except Exception as e:
                    self.log.error(f"Cannot write options class '{oc.class_name}': {e}", oc.file)
        return written

    def _head_writer(self, oc: OptionsClassDescriptor, category: Category, ocs: list[OptionsClassDescriptor]):
        def write(_key: str, stream: TextIO) -> None:
            if self.level == FileLevel.CATEGORY:
                stream.write(self.render_category_file_head(category, ocs))
            else:
                stream.write(write_head(oc.class_name, self.settings.product_name))

        return write

    def write_all(self, ocs: list[OptionsClassDescriptor], out_dir: Path) -> None:
        out_dir.mkdir(parents=True, exist_ok=True)
        self.write_index(ocs, out_dir)
        self.write_cheat_sheet(ocs, out_dir)
        self.write_options_classes(ocs, out_dir)


class FrontendOptionsClassWriter(OptionsClassWriter):
    audience = Audience.FRONTEND

    def render_index(self, title: str, ocs: list[OptionsClassDescriptor]) -> str:
        """One row per class and category, categories in table order."""
        if not ocs:
            return ""
        lines = [
            f"## {title} ({len(ocs)} sections)",
            "| ClassName | Application | Section |",
            "| --------- | ----------- | ------- |",
        ]
        by_name = {}
        for oc in ocs:
            by_name.setdefault(oc.class_name, oc)
        for category in self.table.categories:
            for class_name in self.table.classes_in(category.key):
                oc = by_name.get(class_name)
                if oc is None or category.key not in oc.categories:
                    continue
                lines.append(
                    f"| [{oc.class_name}]({self.link(oc, category.key)}) | {category.name} | {oc.config_section} |"
                )
        return CR.join(lines) + CR

    def render_options_class(self, oc: OptionsClassDescriptor) -> str:
        text = f"## {oc.class_name}{CR}{CR}"
        if oc.documentation:
            text += oc.documentation + CR
        text += CR
        text += self.render_example(oc)
        text += self.render_environment_variables(oc)
        lines = ["### Properties:"]
        for prop in oc.properties:
            if not prop.is_backend_only:
                lines.append(f"- **{prop.name}** ({get_frontend_type(prop.type)}): {prop.documentation}")
        return text + CR.join(lines) + CR + CR


class BackendOptionsClassWriter(OptionsClassWriter):
    audience = Audience.BACKEND

    def render_index(self, title: str, ocs: list[OptionsClassDescriptor]) -> str:
        if not ocs:
            return ""
        lines = [
            f"## {title} ({len(ocs)} classes)",
            "| OptionClass | Category | Repository | Project | File | Directory |",
            "| ----------- | -------- | ---------- | ------- | ---- | --------- |",
        ]
        for oc in sorted(ocs, key=lambda o: (o.file, o.class_name)):
            key = oc.categories[0] if oc.categories else ""
            path = oc.file_relative.replace("\\", "/")
            directory, _, name = path.rpartition("/")
            lines.append(
                f"| [{oc.class_name}]({self.link(oc, key)}) | {', '.join(oc.categories)} | {oc.repository} "
                f"| {oc.project_name} | {name} | {directory} |"
            )
        return CR.join(lines) + CR

    def render_options_class(self, oc: OptionsClassDescriptor) -> str:
        head = [
            f"- Repository: **{oc.repository}**",
            f"- Project: **{oc.project_name}**",
            f"- File: **{oc.file_relative}**",
            f"- Class: **{oc.full_name}**",
            f"- Section: **{oc.config_section}**",
        ]
        text = f"## {oc.class_name}{CR}{CR.join(head)}.{CR}{CR}"
        if oc.documentation:
            text += oc.documentation + CR
        text += CR
        lines = ["### Properties:"]
        for prop in oc.properties:
            line = f"- **{prop.name}** ({format_type(prop.type)}):"
            if prop.documentation:
                line += f" {prop.documentation.rstrip('.')}."
            if prop.default_value is not None:
                line += f" Default value: **{prop.default_value}**"
            lines.append(line)
        text += CR.join(lines) + CR + CR
        text += self.render_example(oc)
        text += self.render_environment_variables(oc)
        return text
