"""End-to-end generation: read, normalize, check, render, publish."""

import logging
import shutil
import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from api_doc_generator.config import GeneratorSettings
from api_doc_generator.errors import InputError
from api_doc_generator.generator.classification import ClassificationTable, assign_categories, load_classification
from api_doc_generator.generator.conflicts import SectionConflict, resolve_conflicts
from api_doc_generator.log import GenerationLog
from api_doc_generator.parser.base import OperationDescriptor, OptionsClassDescriptor
from api_doc_generator.parser.declarations import DeclarationSet, parse_declarations
from api_doc_generator.parser.detect import detect_inputs
from api_doc_generator.parser.normalizer import (
    RESERVED_NAMES,
    NormalizedSet,
    Normalizer,
    OperationGroups,
    assign_link_slugs,
    partition_operations,
)
from api_doc_generator.report import GenerationReport
from api_doc_generator.writer.base import write_file
from api_doc_generator.writer.operations import BackendOperationWriter, FrontendOperationWriter
from api_doc_generator.writer.options import BackendOptionsClassWriter, FrontendOptionsClassWriter
from api_doc_generator.writer.registrations import BackendRegistrationWriter, FrontendRegistrationWriter

logger = logging.getLogger(__name__)

AUDIENCES = {
    "frontend": (FrontendOperationWriter, FrontendOptionsClassWriter, FrontendRegistrationWriter),
    "backend": (BackendOperationWriter, BackendOptionsClassWriter, BackendRegistrationWriter),
}


class GenerationResult(BaseModel):
    """Summary of a finished run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    output: Path
    operations: int = 0
    options_classes: int = 0
    registrations: int = 0
    log: GenerationLog


def load_input(input_path: Path) -> DeclarationSet:
    files = detect_inputs(input_path)
    if not files:
        raise InputError(f"No declaration files found in {input_path}")
    declarations = DeclarationSet()
    for file_path in files:
        declarations.extend(parse_declarations(file_path))
    logger.info("Loaded %d declarations from %d files", len(declarations.declarations), len(files))
    return declarations


def publish(staging: Path, output: Path) -> None:
    """Replace the output directory with the finished staging tree."""
    if output.exists():
        shutil.rmtree(output)
    staging.rename(output)


class PreparedRun(BaseModel):
    """Normalized, checked and linked entities, ready to be rendered."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    settings: GeneratorSettings
    table: ClassificationTable
    normalized: NormalizedSet
    groups: OperationGroups
    options_classes: list[OptionsClassDescriptor]
    conflicts: list[SectionConflict]

    @property
    def documented_operations(self) -> list[OperationDescriptor]:
        return self.groups.all if self.settings.include_all else self.groups.core

    def report(self) -> str:
        return GenerationReport(
            self.settings, self.normalized, self.groups, self.options_classes, self.conflicts
        ).render()


def prepare(settings: GeneratorSettings, log: GenerationLog) -> PreparedRun:
    """Read the input and run every check that precedes rendering."""
    declarations = load_input(settings.input)
    table = load_classification(settings.classification)

    normalized = Normalizer(settings, log).normalize(declarations)
    groups = partition_operations(normalized.operations)

    options_classes, conflicts = resolve_conflicts(normalized.options_classes, log)
    options_classes = assign_categories(options_classes, table, log)

    run = PreparedRun(
        settings=settings,
        table=table,
        normalized=normalized,
        groups=groups,
        options_classes=options_classes,
        conflicts=conflicts,
    )
    assign_link_slugs(run.documented_operations, lambda op: op.operation_name, reserved=RESERVED_NAMES)
    assign_link_slugs(run.options_classes, lambda oc: oc.class_name)
    assign_link_slugs(normalized.registrations, lambda reg: reg.method_name)
    return run


def render(run: PreparedRun, target: Path, log: GenerationLog) -> None:
    """Write the report and both audience trees under target."""
    settings = run.settings
    write_file(target / "generation.txt", run.report())
    for audience, (operation_writer, options_writer, registration_writer) in AUDIENCES.items():
        audience_dir = target / audience
        operation_writer(settings, log).write_all(run.groups, audience_dir / "ODataOperations")
        options_writer(settings, log, run.table, run.normalized.classes, run.normalized.enums).write_all(
            run.options_classes, audience_dir / "OptionClasses"
        )
        registration_writer(settings, log).write_all(
            run.normalized.registrations, audience_dir / "ServiceRegistrations"
        )
        logger.debug("Wrote %s pages", audience)


def generate(settings: GeneratorSettings, log: GenerationLog | None = None) -> GenerationResult:
    """Run a full generation and publish it to settings.output.

    Input errors are raised before anything is written. Entity-level
    problems are recorded in the returned log.
    """
    if settings.output is None:
        raise InputError("No output directory given.")
    log = log if log is not None else GenerationLog()
    run = prepare(settings, log)

    output = settings.output.resolve()
    output.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{output.name}-", dir=output.parent))
    try:
        render(run, staging, log)
        publish(staging, output)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise

    return GenerationResult(
        output=output,
        operations=len(run.documented_operations),
        options_classes=len(run.options_classes),
        registrations=len(run.normalized.registrations),
        log=log,
    )
