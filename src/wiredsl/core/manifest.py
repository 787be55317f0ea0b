import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError
from .ir.devices import DEFAULT_DEVICE, DEVICE_PRESETS
from .parser import DEFAULT_BINDING_MARKER

MANIFEST_NAME = "wire.toml"


@dataclass
class CompilerConfig:
    """Options for one ``compile()`` call."""

    file_path: str = "<input>"
    default_device: str = DEFAULT_DEVICE
    grid_columns: int = 12
    binding_marker: str = DEFAULT_BINDING_MARKER
    warnings_as_errors: bool = False


@dataclass
class CompileSection:
    """The ``[compile]`` table."""

    default_device: str = DEFAULT_DEVICE
    grid_columns: int = 12
    binding_marker: str = DEFAULT_BINDING_MARKER
    warnings_as_errors: bool = False


@dataclass
class WireManifest:
    """
    Project manifest loaded from wire.toml.

    Example:

        [project]
        name = "demo"
        entry = "main.wire"

        [compile]
        default_device = "mobile"
        warnings_as_errors = true
    """

    name: str
    entry: str
    project_root: str
    compile: CompileSection = field(default_factory=CompileSection)

    @property
    def entry_path(self) -> Path:
        return Path(self.project_root) / self.entry

    def compiler_config(self) -> CompilerConfig:
        return CompilerConfig(
            file_path=str(self.entry_path),
            default_device=self.compile.default_device,
            grid_columns=self.compile.grid_columns,
            binding_marker=self.compile.binding_marker,
            warnings_as_errors=self.compile.warnings_as_errors,
        )


def load_manifest(path: Path) -> WireManifest:
    """
    Load and check a wire.toml manifest.

    Raises:
        ConfigError: If the file is missing, not TOML, or has invalid values
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"Manifest not found: {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    project = data.get("project", {})
    compile_data = data.get("compile", {})

    section = CompileSection(
        default_device=compile_data.get("default_device", DEFAULT_DEVICE),
        grid_columns=compile_data.get("grid_columns", 12),
        binding_marker=compile_data.get("binding_marker", DEFAULT_BINDING_MARKER),
        warnings_as_errors=compile_data.get("warnings_as_errors", False),
    )

    if section.default_device not in DEVICE_PRESETS:
        known = ", ".join(sorted(DEVICE_PRESETS))
        raise ConfigError(f"Unknown default_device {section.default_device!r} (expected one of: {known})")
    if not isinstance(section.grid_columns, int) or not 1 <= section.grid_columns <= 12:
        raise ConfigError(f"grid_columns must be an integer between 1 and 12, got {section.grid_columns!r}")
    if not section.binding_marker or not section.binding_marker.isidentifier():
        raise ConfigError(f"binding_marker must be an identifier prefix, got {section.binding_marker!r}")

    return WireManifest(
        name=project.get("name", path.parent.name),
        entry=project.get("entry", "main.wire"),
        project_root=str(path.parent),
        compile=section,
    )


def find_manifest(start: Path) -> Path | None:
    """Walk up from ``start`` looking for wire.toml."""
    for directory in [start, *start.parents]:
        candidate = directory / MANIFEST_NAME
        if candidate.is_file():
            return candidate
    return None
