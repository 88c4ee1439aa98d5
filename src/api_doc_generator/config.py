"""Generator settings.

Settings come from CLI options, optionally layered over a YAML settings
file. Explicit CLI values always win over the file.
"""

from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from api_doc_generator.errors import InputError

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_CLASSIFICATION = DATA_DIR / "classification.yaml"


class FileLevel(str, Enum):
    """Granularity of the generated Markdown files."""

    CATEGORY = "category"  # one file per category, entities anchored inside
    OPERATION = "operation"  # one file per entity inside a category directory
    FLAT = "flat"  # one file per entity, single directory


class GeneratorSettings(BaseModel):
    """All knobs of a generation run."""

    input: Path
    output: Path | None = None
    file_level: FileLevel = FileLevel.FLAT
    include_all: bool = False
    hide_description: bool = True
    product_name: str = "sensenet"
    service_root: str = "/odata.svc"
    content_parameter_types: list[str] = ["Content", "SenseNet.ContentRepository.Content"]
    hidden_parameter_types: list[str] = [
        "HttpContext",
        "ODataRequest",
        "IConfiguration",
        "Microsoft.AspNetCore.Http.HttpContext",
        "SenseNet.OData.ODataRequest",
        "Microsoft.Extensions.Configuration.IConfiguration",
    ]
    root_content_type: str = "PortalRoot"
    classification: Path = DEFAULT_CLASSIFICATION


def load_settings(config_path: Path | None = None, **overrides) -> GeneratorSettings:
    """Build settings from an optional YAML file plus explicit overrides.

    Overrides whose value is None are ignored so that unset CLI options
    do not clobber values from the file.
    """
    data: dict = {}
    if config_path is not None:
        try:
            loaded = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise InputError(f"Cannot read settings file {config_path}: {e}") from e
        if loaded is not None and not isinstance(loaded, dict):
            raise InputError(f"Settings file {config_path} must contain a mapping.")
        data.update(loaded or {})

    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return GeneratorSettings(**data)
    except ValidationError as e:
        raise InputError(f"Invalid settings: {e}") from e
