"""Configuration file support.

RunnerConfig

`root` (`Path`)
: Folder with the `*.py` and `*.md` journals. Relative paths resolve against
  the folder holding the configuration file.

`output` (`Path | None`)
: Output folder. Defaults to `<root>/output`.

`output_kind` (`html | latex`)
: Markup produced for every journal.

`float_format` (`str`)
: Format applied to floating point results. Accepts .NET style specifiers
  (`G4`, `F2`, `E3`, `N2`, `P1`) or any Python format spec.

`template_location` (`Path | None`)
: Folder containing a `styles` folder with `template.html` / `template.tex`.
  The styles bundled with the package are used when omitted.

`whitelist` (`list[str] | None`)
: Only process these file names.

`overwrite` (`bool`)
: Regenerate every journal even when its output is up to date.

`fail_fast` (`bool`)
: Abort the run at the first snippet that fails to evaluate instead of
  skipping the journal.

`markdown_extensions` (`list[str]`)
: Additional Python-Markdown extensions.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import yaml

from .context import (
    DEFAULT_FLOAT_FORMAT,
    DEFAULT_OUTPUT_FOLDER,
    OutputKind,
    ProcessingContext,
    abort_on_failure,
    ignore_failure,
)
from .exceptions import RunnerError


class ConfigError(RunnerError):
    """Raised when a configuration file cannot be loaded."""


class RunnerConfig(BaseModel):
    """Settings for a journal run."""

    model_config = ConfigDict(extra="forbid")

    root: Path = Path(".")
    output: Path | None = None
    output_kind: OutputKind = OutputKind.HTML
    float_format: str = DEFAULT_FLOAT_FORMAT
    template_location: Path | None = None
    whitelist: list[str] | None = None
    overwrite: bool = False
    fail_fast: bool = False
    markdown_extensions: list[str] = Field(default_factory=list)

    @field_validator("output_kind", mode="before")
    @classmethod
    def _parse_output_kind(cls, value: Any) -> OutputKind:
        return OutputKind.parse(value)

    @field_validator("whitelist", mode="before")
    @classmethod
    def _coerce_whitelist(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    def resolve_paths(self, base: Path) -> RunnerConfig:
        """Return a copy whose relative paths are anchored at ``base``."""

        def anchor(path: Path | None) -> Path | None:
            if path is None or path.is_absolute():
                return path
            return base / path

        return self.model_copy(
            update={
                "root": anchor(self.root),
                "output": anchor(self.output),
                "template_location": anchor(self.template_location),
            }
        )

    def to_context(self) -> ProcessingContext:
        """Build the processing context described by this configuration."""
        root = Path(self.root)
        return ProcessingContext(
            root=root,
            output=Path(self.output) if self.output is not None else root / DEFAULT_OUTPUT_FOLDER,
            output_kind=self.output_kind,
            float_format=self.float_format,
            template_location=self.template_location,
            file_whitelist=tuple(self.whitelist) if self.whitelist is not None else None,
            failed_handler=abort_on_failure if self.fail_fast else ignore_failure,
            markdown_extensions=tuple(self.markdown_extensions),
        )


def load_config(path: Path | str) -> RunnerConfig:
    """Read a YAML configuration file."""
    config_path = Path(path)
    try:
        payload = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration '{config_path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in '{config_path}': {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Configuration '{config_path}' must contain a mapping.")
    try:
        config = RunnerConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration '{config_path}': {exc}") from exc
    return config.resolve_paths(config_path.resolve().parent)


__all__ = ["ConfigError", "RunnerConfig", "load_config"]
