from pathlib import Path

import pytest

from api_doc_generator.config import GeneratorSettings
from api_doc_generator.log import GenerationLog, Level
from api_doc_generator.parser.base import ServiceRegistrationDescriptor
from api_doc_generator.pipeline import prepare
from api_doc_generator.writer.registrations import (
    BackendRegistrationWriter,
    FrontendRegistrationWriter,
    escape_generic,
)

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def run():
    return prepare(GeneratorSettings(input=FIXTURES / "declarations.yaml"), GenerationLog())


class TestFrontendRegistrationWriter:
    def test_escape_generic(self):
        assert escape_generic("Add<T>()") == "Add&lt;T&gt;()"

    def test_registration_block(self, run):
        (reg,) = run.normalized.registrations
        text = FrontendRegistrationWriter(run.settings, GenerationLog()).render_registration(reg)
        assert text == (
            "### EmailExtensions.AddSenseNetEmailSender&lt;T&gt;"
            "(IServiceCollection services, Action&lt;EmailOptions&gt; configure)\n"
            "- Returns: `IServiceCollection`\n"
            "\n"
            "Adds an email sender implementation.\n"
            "\n"
            "- Type parameters:\n"
            "  - `T : class, IEmailSender`: Sender implementation type.\n"
            "- Parameters:\n"
            "  - **configure**: Configures the email options.\n"
            "- Registrations:\n"
            "  - `AddSingleton<IEmailSender, T>()`\n"
            "  - `Configure<EmailOptions>(...)`\n"
            "\n"
        )

    def test_index(self, run):
        index = FrontendRegistrationWriter(run.settings, GenerationLog()).render_index(
            "Service registrations", run.normalized.registrations
        )
        assert index.startswith("## Service registrations (1)\n| Category | Project | Class | Method |\n")
        assert "(/services/cheatsheet#addsensenetemailsender) |" in index

    def test_cheat_sheet_groups_by_repository(self, run):
        text = FrontendRegistrationWriter(run.settings, GenerationLog()).render_cheat_sheet(
            "CHEAT SHEET", run.normalized.registrations
        )
        assert text.startswith(
            '## CHEAT SHEET (1 methods)\n\n## sensenet\n\n<a name="addsensenetemailsender"></a>\n\n### EmailExtensions.'
        )

    def test_failing_method_is_logged(self, run):
        log = GenerationLog()
        writer = FrontendRegistrationWriter(run.settings, log)
        broken = ServiceRegistrationDescriptor(class_name="X", method_name="AddBroken", file="/src/X.cs")

        def render(reg):
            raise RuntimeError("bad signature")

        writer.render_registration = render
        text = writer.render_cheat_sheet("CHEAT SHEET", [broken])
        assert "AddBroken" not in text.split("\n", 1)[1]
        assert "<a name=" not in text
        (error,) = log.by_level(Level.ERROR)
        assert "AddBroken" in error.message

    def test_write_all(self, run, tmp_path):
        FrontendRegistrationWriter(run.settings, GenerationLog()).write_all(run.normalized.registrations, tmp_path)
        assert (tmp_path / "index.md").read_text().startswith("---\ntitle: Service registration references\n")
        assert "- Registrations:" in (tmp_path / "cheatsheet.md").read_text()

    def test_index_links_resolve_to_cheat_sheet_anchors(self, run, tmp_path):
        FrontendRegistrationWriter(run.settings, GenerationLog()).write_all(run.normalized.registrations, tmp_path)
        index = (tmp_path / "index.md").read_text()
        cheat_sheet = (tmp_path / "cheatsheet.md").read_text()
        for reg in run.normalized.registrations:
            assert f"(/services/cheatsheet#{reg.link_slug})" in index
            assert f'<a name="{reg.link_slug}"></a>' in cheat_sheet


class TestBackendRegistrationWriter:
    def test_file_is_shown(self, run):
        (reg,) = run.normalized.registrations
        text = BackendRegistrationWriter(run.settings, GenerationLog()).render_registration(reg)
        assert "- File: **sensenet/src/ContentRepository/Extensions/EmailExtensions.cs**\n" in text

    def test_index_has_file_column(self, run):
        index = BackendRegistrationWriter(run.settings, GenerationLog()).render_index(
            "Service registrations", run.normalized.registrations
        )
        assert "| Repository | Project | Class | Method | File |" in index
        assert index.rstrip().endswith("| sensenet/src/ContentRepository/Extensions/EmailExtensions.cs |")
