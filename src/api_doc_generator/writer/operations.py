"""Operation writers: index table, cheat sheet and detail pages."""

import logging
from itertools import groupby
from pathlib import Path
from typing import TextIO

from api_doc_generator.config import FileLevel, GeneratorSettings
from api_doc_generator.generator.types import format_type, get_frontend_type, get_json_type, is_allowed_parameter
from api_doc_generator.log import GenerationLog
from api_doc_generator.parser.base import OperationDescriptor, ParameterDescriptor
from api_doc_generator.parser.normalizer import OperationGroups
from api_doc_generator.writer.base import (
    CR,
    OutputRouter,
    category_sort_key,
    entity_destination,
    entity_link,
    write_file,
    write_head,
)

logger = logging.getLogger(__name__)

LINK_PREFIX = "/restapi"
HEAD_TITLE = "Api references"
QUOTES = "'\""
ALL_TABLES = (
    (".NET Standard / Core Operations", "core"),
    (".NET Framework Operations", "framework"),
    ("Test Operations", "test"),
)


def _ordered(ops: list[OperationDescriptor]) -> list[OperationDescriptor]:
    return sorted(ops, key=lambda o: (category_sort_key(o.category), o.operation_name))


class OperationWriter:
    """Common part of the audience-specific operation writers."""

    def __init__(self, settings: GeneratorSettings, log: GenerationLog):
        self.settings = settings
        self.level = settings.file_level
        self.log = log

    # -- audience hooks -------------------------------------------------------

    def display_type(self, type_: str) -> str:
        raise NotImplementedError

    def visible_parameters(self, op: OperationDescriptor) -> list[ParameterDescriptor]:
        raise NotImplementedError

    def render_table(self, title: str, ops: list[OperationDescriptor]) -> str:
        raise NotImplementedError

    def render_operation(self, op: OperationDescriptor) -> str:
        raise NotImplementedError

    # -- shared rendering -----------------------------------------------------

    def link(self, op: OperationDescriptor) -> str:
        return entity_link(LINK_PREFIX, self.level, op.category_in_link, op.link_slug)

    def render_tree(self, title: str, ops: list[OperationDescriptor]) -> str:
        if not ops:
            return ""
        lines = [f"## {title} ({len(ops)} operations)", ""]
        by_category = sorted(ops, key=lambda o: (category_sort_key(o.category), o.category))
        for category, group in groupby(by_category, key=lambda o: o.category):
            group = sorted(group, key=lambda o: o.operation_name)
            if self.level == FileLevel.CATEGORY:
                lines.append(f"- [{category}]({LINK_PREFIX}/{group[0].category_in_link})")
            else:
                lines.append(f"- {category}")
            for op in group:
                params = ", ".join(f"{self.display_type(p.type)} {p.name}" for p in self.visible_parameters(op))
                lines.append(
                    f"  - {'POST' if op.is_action else 'GET '} [{op.operation_name}]({self.link(op)})"
                    f"({params}) : {self.display_type(op.return_value.type)}"
                )
        return CR.join(lines) + CR

    def render_requirements(self, op: OperationDescriptor, include_content_types: bool = False) -> str:
        rows = [
            ("AllowedRoles", op.allowed_roles),
            ("RequiredPermissions", op.required_permissions),
            ("RequiredPolicies", op.required_policies),
            ("Scenarios", op.scenarios),
        ]
        if include_content_types:
            rows.insert(0, ("ContentTypes", op.content_types))
        count = len(op.content_types) + sum(len(values) for _, values in rows)
        if not count:
            return ""
        lines = ["### Requirements:"]
        lines += [f"- **{name}**: {', '.join(values)}" for name, values in rows if values]
        return CR.join(lines) + CR

    def _titled(self, groups: OperationGroups, single_title: str, render) -> str:
        text = write_head(HEAD_TITLE, self.settings.product_name)
        if self.settings.include_all:
            for title, name in ALL_TABLES:
                text += render(title, getattr(groups, name))
        else:
            text += render(single_title, groups.core)
        return text

    def write_index(self, groups: OperationGroups, out_dir: Path) -> None:
        write_file(out_dir / "index.md", self._titled(groups, "Operations", self.render_table))

    def write_cheat_sheet(self, groups: OperationGroups, out_dir: Path) -> None:
        write_file(out_dir / "cheatsheet.md", self._titled(groups, "CHEAT SHEET", self.render_tree))

    def _write_file_head(self, op: OperationDescriptor, stream: TextIO) -> None:
        title = op.operation_name if self.level == FileLevel.FLAT else op.category
        stream.write(write_head(title, self.settings.product_name))

    def write_operations(self, ops: list[OperationDescriptor], out_dir: Path) -> int:
        """Write the detail pages; returns the number of operations written.

        A failing operation is logged and skipped.
        """
        written = 0
        with OutputRouter(out_dir) as router:
            for op in ops:
                try:
                    text = self.render_operation(op)
                    key = entity_destination(self.level, op.category_in_link, op.link_slug)
                    stream = router.stream(key, lambda _key, s, op=op: self._write_file_head(op, s))
                    if self.level == FileLevel.CATEGORY:
                        stream.write(f'<a name="{op.link_slug}"></a>{CR}{CR}')
                    stream.write(text)
                    written += 1
                except Exception as e:
                    self.log.error(f"Cannot write operation '{op.operation_name}': {e}", op.file)
        return written

    def write_all(self, groups: OperationGroups, out_dir: Path) -> None:
        out_dir.mkdir(parents=True, exist_ok=True)
        self.write_index(groups, out_dir)
        self.write_cheat_sheet(groups, out_dir)
        self.write_operations(groups.all if self.settings.include_all else groups.core, out_dir)


class FrontendOperationWriter(OperationWriter):
    """Public pages: narrowed types, hidden infrastructure parameters."""

    def display_type(self, type_: str) -> str:
        return get_frontend_type(type_)

    def visible_parameters(self, op: OperationDescriptor) -> list[ParameterDescriptor]:
        return [p for p in op.parameters[1:] if is_allowed_parameter(p, self.settings.hidden_parameter_types)]

    def render_table(self, title: str, ops: list[OperationDescriptor]) -> str:
        if not ops:
            return ""
        lines = [f"## {title} ({len(ops)})", "| Category | Operation | Method |", "| -------- | --------- | ------ |"]
        for op in _ordered(ops):
            if self.level == FileLevel.CATEGORY:
                category = f"[{op.category}]({LINK_PREFIX}/{op.category_in_link})"
            else:
                category = op.category
            lines.append(f"| {category} | [{op.operation_name}]({self.link(op)}) | {op.http_method} |")
        return CR.join(lines) + CR

    def public_copy(self, op: OperationDescriptor) -> OperationDescriptor:
        """Deep copy with hidden parameters removed and types narrowed."""
        public = op.model_copy(deep=True)
        hidden = self.settings.hidden_parameter_types
        public.parameters = [p for p in public.parameters if is_allowed_parameter(p, hidden)]
        for parameter in public.parameters:
            parameter.type = get_json_type(parameter.type)
        return public

    def render_operation(self, op: OperationDescriptor) -> str:
        public = self.public_copy(op)
        head = ["- Method: **POST**" if op.is_action else "- Method: **GET** or optionally POST"]
        if op.icon:
            head.append(f"- Icon: **{op.icon}**")
        lines = [f"## {op.operation_name}", CR.join(head) + "."]
        if op.description and not self.settings.hide_description:
            lines += ["", op.description]
        lines.append("")
        if op.documentation:
            lines.append(op.documentation)
        lines.append("")
        text = CR.join(lines) + CR

        text += self.render_request_example(public)
        text += self.render_parameters(public)
        text += self.render_return_value(public)
        text += CR + self.render_requirements(public) + CR
        return text

    def render_parameters(self, op: OperationDescriptor) -> str:
        lines = ["### Parameters:"]
        params = op.parameters[1:]
        if not params:
            lines.append("There are no parameters.")
        for p in params:
            optional = " optional" if p.is_optional else ""
            lines.append(f"- **{p.name}** (`{p.type}`){optional}: {p.documentation}")
        return CR.join(lines) + CR

    def render_return_value(self, op: OperationDescriptor) -> str:
        frontend_type = get_frontend_type(op.return_value.type)
        doc = op.return_value.documentation
        if frontend_type == "`void`" and not doc:
            return ""
        if frontend_type == "`void`":
            body = doc
        elif not doc:
            body = f"Type: {frontend_type}."
        else:
            body = f"{doc} (Type: {frontend_type})."
        return f"{CR}### Return value:{CR}{body}{CR}"

    # -- request example ------------------------------------------------------

    def _only_root(self, op: OperationDescriptor) -> bool:
        return op.content_types == [self.settings.root_content_type]

    def render_request_example(self, op: OperationDescriptor) -> str:
        only_root = self._only_root(op)
        lines = ["### Request example:"]
        if op.parameters[0].documentation:
            lines.append(op.parameters[0].documentation)

        params = op.parameters[1:]
        get_example = "?" + "&".join(self._get_example(p) for p in params) if params else ""
        post_example = None
        if params:
            post_example = (
                "models=[{" + CR + "  " + ("," + CR + "  ").join(self._post_example(p) for p in params) + CR + "}]"
            )

        if op.is_action:
            lines += self._request("POST", op, only_root, post_example=post_example)
        else:
            lines += self._request("GET", op, only_root, suffix=get_example)
            if params:
                lines.append("or")
                lines += self._request("POST", op, only_root, post_example=post_example)

        if only_root:
            lines.append("Can only be called on the root content.")
        elif op.content_types:
            content_types = ", ".join(op.content_types)
            if content_types == "GenericContent, ContentType":
                lines.append("The `targetContent` can be any content type")
            else:
                lines.append(f"The `targetContent` can be {content_types}")
        return CR.join(lines) + CR

    def _request(self, method, op, only_root, suffix="", post_example=None) -> list[str]:
        target = "('Root')" if only_root else "/Root/...('targetContent')"
        lines = ["```", f"{method} {self.settings.service_root}{target}/{op.operation_name}{suffix}"]
        if post_example is not None:
            lines += ["DATA:", post_example]
        lines.append("```")
        return lines

    @staticmethod
    def _get_example(p: ParameterDescriptor) -> str:
        is_array = p.type.endswith("[]")
        type_ = p.type[:-2] if is_array else p.type
        if type_ == "string" and is_array:
            # ["Task", "Event"] -> prm=Task&prm=Event
            example = p.example or '["_item1_", "_item2_"]'
            items = [x.strip().strip('"') for x in example.strip().lstrip("[").rstrip("]").strip().split(",")]
            return "&".join(f"{p.name}={item}" for item in items)
        example = p.example or "_value_"
        return f"{p.name}={example.strip(QUOTES)}"

    @staticmethod
    def _post_example(p: ParameterDescriptor) -> str:
        is_array = p.type.endswith("[]")
        type_ = p.type[:-2] if is_array else p.type
        example = p.example
        if example is None:
            if type_ == "string":
                example = '["_item1_", "_item2_"]' if is_array else '"_value_"'
            else:
                example = "[_item1_, _item2_]" if is_array else "_value_"
        quoted = len(example) > 1 and example[0] in QUOTES and example[-1] in QUOTES
        if p.type == "string" and not quoted:
            example = f'"{example}"'
        return f'"{p.name}": {example}'


class BackendOperationWriter(OperationWriter):
    """Internal pages: source locations, declared types, all parameters."""

    def display_type(self, type_: str) -> str:
        return format_type(type_)

    def visible_parameters(self, op: OperationDescriptor) -> list[ParameterDescriptor]:
        return op.parameters[1:]

    def render_table(self, title: str, ops: list[OperationDescriptor]) -> str:
        if not ops:
            return ""
        lines = [
            f"## {title} ({len(ops)})",
            "| Category | Operation | Method | Repository | Project | File |",
            "| -------- | --------- | ------ | ---------- | ------- | ---- |",
        ]
        for op in _ordered(ops):
            lines.append(
                f"| {op.category} | [{op.operation_name}]({self.link(op)}) | {op.http_method} "
                f"| {op.repository} | {op.project_name} | {op.file_relative} |"
            )
        return CR.join(lines) + CR

    def render_operation(self, op: OperationDescriptor) -> str:
        head = [
            f"- Method: **{op.http_method}**",
            f"- Repository: **{op.repository}**",
            f"- Project: **{op.project_name}**",
            f"- File: **{op.file_relative}**",
            f"- Class: **{op.namespace}.{op.class_name}**",
            f"- Member: **{op.method_name}**",
        ]
        if op.icon:
            head.append(f"- Icon: **{op.icon}**")
        lines = [f"## {op.operation_name}", CR.join(head) + "."]
        if op.description:
            lines += ["", op.description]
        lines.append("")
        if op.documentation:
            lines.append(op.documentation)
        lines += ["", "### Parameters:"]

        params = op.parameters[1:]
        if not params:
            lines.append("There are no parameters.")
        for p in params:
            optional = " optional" if p.is_optional else ""
            lines.append(f"- **{p.name}** ({format_type(p.type)}){optional}: {p.documentation}")

        return_type = format_type(op.return_value.type)
        lines += ["", "### Return value:"]
        if op.return_value.documentation:
            lines.append(f"{op.return_value.documentation} (Type: {return_type}).")
        else:
            lines.append(f"Type: {return_type}.")
        text = CR.join(lines) + CR
        return text + CR + self.render_requirements(op, include_content_types=True) + CR
