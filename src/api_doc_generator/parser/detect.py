"""Resolve the input path into the declaration dumps to read."""

from pathlib import Path

from api_doc_generator.errors import InputError

SUPPORTED_SUFFIXES = (".yaml", ".yml", ".json")
SKIPPED_DIRECTORIES = {"obj", "bin", ".git", ".vs", "lut"}


def detect_inputs(input_path: Path) -> list[Path]:
    """Return the declaration files for a file or directory input.

    A file must carry a supported suffix. A directory is searched
    recursively, in sorted order, skipping build and VCS directories.
    """
    path = input_path.resolve()
    if path.is_file():
        if path.suffix.lower() not in SUPPORTED_SUFFIXES:
            raise InputError(
                f"Unsupported input file type '{path.suffix}'. "
                f"Supported: {', '.join(SUPPORTED_SUFFIXES)}"
            )
        return [path]

    if not path.is_dir():
        raise InputError(f"Unknown file or directory: {input_path}")

    files = []
    for candidate in sorted(path.rglob("*")):
        if not candidate.is_file() or candidate.suffix.lower() not in SUPPORTED_SUFFIXES:
            continue
        relative_dirs = candidate.relative_to(path).parts[:-1]
        if any(part.lower() in SKIPPED_DIRECTORIES for part in relative_dirs):
            continue
        files.append(candidate)
    return files
