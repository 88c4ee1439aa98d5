"""Service-registration writers: index table and cheat sheet."""

from pathlib import Path

from api_doc_generator.config import GeneratorSettings
from api_doc_generator.log import GenerationLog
from api_doc_generator.parser.base import ServiceRegistrationDescriptor
from api_doc_generator.writer.base import CR, write_file, write_head

LINK_PREFIX = "/services"
HEAD_TITLE = "Service registration references"


def escape_generic(text: str) -> str:
    return text.replace("<", "&lt;").replace(">", "&gt;")


def _ordered(registrations: list[ServiceRegistrationDescriptor]) -> list[ServiceRegistrationDescriptor]:
    return sorted(
        registrations,
        key=lambda r: (r.repository, r.project_name, r.class_name, r.method_signature),
    )


class RegistrationWriter:
    """Writes the index and the cheat sheet of the registration methods."""

    show_locations = False

    def __init__(self, settings: GeneratorSettings, log: GenerationLog):
        self.settings = settings
        self.log = log

    def render_index(self, title: str, registrations: list[ServiceRegistrationDescriptor]) -> str:
        if not registrations:
            return ""
        lines = [
            f"## {title} ({len(registrations)})",
            "| Category | Project | Class | Method |",
            "| -------- | ------- | ----- | ------ |",
        ]
        for reg in _ordered(registrations):
            lines.append(
                f"| {reg.repository} | {reg.project_name} | {reg.class_name} "
                f"| [{escape_generic(reg.method_signature)}]({LINK_PREFIX}/cheatsheet#{reg.link_slug}) |"
            )
        return CR.join(lines) + CR

    def render_registration(self, reg: ServiceRegistrationDescriptor) -> str:
        lines = [f"### {reg.class_name}.{escape_generic(reg.method_signature)}"]
        if self.show_locations:
            lines.append(f"- File: **{reg.file_relative}**")
        lines.append(f"- Returns: `{reg.return_value.type}`")
        if reg.documentation:
            lines += ["", reg.documentation, ""]
        if reg.type_parameters:
            lines.append("- Type parameters:")
            for tp in reg.type_parameters:
                doc = f": {tp.documentation}" if tp.documentation else ""
                lines.append(f"  - `{tp}`{doc}")
        documented = [p for p in reg.parameters if p.documentation]
        if documented:
            lines.append("- Parameters:")
            lines += [f"  - **{p.name}**: {p.documentation}" for p in documented]
        if reg.registrations:
            lines.append("- Registrations:")
            lines += [f"  - `{call}`" for call in reg.registrations]
        return CR.join(lines) + CR + CR

    def render_cheat_sheet(self, title: str, registrations: list[ServiceRegistrationDescriptor]) -> str:
        if not registrations:
            return ""
        text = f"## {title} ({len(registrations)} methods){CR}{CR}"
        repository = None
        for reg in _ordered(registrations):
            if reg.repository != repository:
                repository = reg.repository
                text += f"## {repository}{CR}{CR}"
            try:
                block = self.render_registration(reg)
            except Exception as e:
                self.log.error(f"Cannot write registration method '{reg.method_name}': {e}", reg.file)
                continue
            text += f'<a name="{reg.link_slug}"></a>{CR}{CR}{block}'
        return text

    def write_all(self, registrations: list[ServiceRegistrationDescriptor], out_dir: Path) -> None:
        head = write_head(HEAD_TITLE, self.settings.product_name)
        write_file(out_dir / "index.md", head + self.render_index("Service registrations", registrations))
        write_file(out_dir / "cheatsheet.md", head + self.render_cheat_sheet("CHEAT SHEET", registrations))


class FrontendRegistrationWriter(RegistrationWriter):
    show_locations = False


class BackendRegistrationWriter(RegistrationWriter):
    show_locations = True

    def render_index(self, title: str, registrations: list[ServiceRegistrationDescriptor]) -> str:
        if not registrations:
            return ""
        lines = [
            f"## {title} ({len(registrations)})",
            "| Repository | Project | Class | Method | File |",
            "| ---------- | ------- | ----- | ------ | ---- |",
        ]
        for reg in _ordered(registrations):
            lines.append(
                f"| {reg.repository} | {reg.project_name} | {reg.class_name} "
                f"| {escape_generic(reg.method_signature)} | {reg.file_relative} |"
            )
        return CR.join(lines) + CR
