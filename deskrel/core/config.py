"""Typed configuration loading and access.

This module maps ``deskrel.toml`` onto frozen dataclasses. Every table is
optional; the defaults reproduce the Intel macOS desktop release.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_obj_list,
    as_str_dict,
    get_bool,
    get_float,
    get_int,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "PipelineConfig",
    "BinarySpec",
    "BuildConfig",
    "ResourceSpec",
    "BundleConfig",
    "SigningConfig",
    "PublishConfig",
    "CleanupScope",
    "CleanupConfig",
    "ConfigError",
    "CONFIG_FILE_NAME",
    "load_config",
    "load_config_or_default",
    # Timing defaults
    "DEFAULT_BUNDLE_ATTEMPTS",
    "DEFAULT_BUNDLE_RETRY_DELAY_SECONDS",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "DEFAULT_SIGNING_DEADLINE_SECONDS",
    "DEFAULT_SMOKE_GRACE_SECONDS",
]

CONFIG_FILE_NAME = "deskrel.toml"

# -----------------------------------------------------------------------------
# Timing defaults
# -----------------------------------------------------------------------------

DEFAULT_BUNDLE_ATTEMPTS = 2
DEFAULT_BUNDLE_RETRY_DELAY_SECONDS = 5.0
DEFAULT_POLL_INTERVAL_SECONDS = 30.0
DEFAULT_SIGNING_DEADLINE_SECONDS = 15 * 60.0
DEFAULT_SMOKE_GRACE_SECONDS = 5.0


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


BinaryKind = Literal["cargo", "command"]


@dataclass(frozen=True, slots=True)
class BinarySpec:
    """One executable the bundle needs.

    ``cargo`` binaries are built with ``cargo build -p <package>`` for the
    target triple; ``command`` binaries run ``command`` in ``cwd`` and are
    expected at ``output`` (workspace relative).
    """

    name: str
    kind: BinaryKind = "cargo"
    package: str | None = None
    bin: str | None = None
    command: tuple[str, ...] = ()
    cwd: str = "."
    output: str | None = None


def _default_binaries() -> tuple[BinarySpec, ...]:
    return (
        BinarySpec(name="goosed", kind="cargo", package="goose-server", bin="goosed"),
        BinarySpec(
            name="temporal-service",
            kind="command",
            command=("./build.sh",),
            cwd="temporal-service",
            output="temporal-service/temporal-service",
        ),
    )


@dataclass(frozen=True, slots=True)
class BuildConfig:
    target: str = "x86_64-apple-darwin"
    flags: tuple[str, ...] = ()
    binaries: tuple[BinarySpec, ...] = field(default_factory=_default_binaries)


@dataclass(frozen=True, slots=True)
class ResourceSpec:
    """A prebuilt file shipped next to the binaries (workspace relative)."""

    source: str
    name: str


def _default_resources() -> tuple[ResourceSpec, ...]:
    return (ResourceSpec(source="bin/temporal", name="temporal"),)


@dataclass(frozen=True, slots=True)
class BundleConfig:
    desktop_dir: str = "ui/desktop"
    bin_dir: str = "src/bin"
    config_file: str = "package.json"
    arch_field: str = "build.mac.target[0].arch"
    arch: str = "x64"
    command: tuple[str, ...] = ("npm", "run", "bundle:intel")
    output_dir: str = "out/Goose-darwin-x64"
    archive: str = "Goose_intel_mac.zip"
    app: str = "Goose.app"
    attempts: int = DEFAULT_BUNDLE_ATTEMPTS
    retry_delay: float = DEFAULT_BUNDLE_RETRY_DELAY_SECONDS
    resources: tuple[ResourceSpec, ...] = field(default_factory=_default_resources)


@dataclass(frozen=True, slots=True)
class SigningConfig:
    enabled: bool = False
    bucket: str = "block-goose-artifacts-bucket-production"
    prefix: str = "unsigned"
    function: str = "codesign_helper"
    region: str | None = None
    app_label: str = "goose"
    arch_label: str = "intel"
    extra_files: tuple[str, ...] = ("entitlements.plist",)
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS
    deadline: float = DEFAULT_SIGNING_DEADLINE_SECONDS


@dataclass(frozen=True, slots=True)
class PublishConfig:
    artifacts_dir: str = "dist"
    artifact_name: str = "Goose-darwin-x64"
    smoke: bool = True
    process_pattern: str = "Goose.app/Contents/MacOS/Goose"
    grace: float = DEFAULT_SMOKE_GRACE_SECONDS


@dataclass(frozen=True, slots=True)
class CleanupScope:
    """Targets reclaimed by one disk guard invocation.

    Paths are workspace relative unless they start with ``~``; glob patterns
    are allowed and ``{target}`` expands to the target triple.
    """

    paths: tuple[str, ...] = ()
    commands: tuple[tuple[str, ...], ...] = ()


def _default_pre_build() -> CleanupScope:
    return CleanupScope(
        paths=("target", "~/Library/Caches/*"),
        commands=(("npm", "cache", "clean", "--force"), ("brew", "cleanup")),
    )


def _default_post_build() -> CleanupScope:
    return CleanupScope(
        paths=(
            "target/debug",
            "target/{target}/debug",
            "target/{target}/release/deps",
            "target/{target}/release/build",
            "target/{target}/release/incremental",
        )
    )


def _default_final() -> CleanupScope:
    return CleanupScope(paths=("target",))


@dataclass(frozen=True, slots=True)
class CleanupConfig:
    pre_build: CleanupScope = field(default_factory=_default_pre_build)
    post_build: CleanupScope = field(default_factory=_default_post_build)
    final: CleanupScope = field(default_factory=_default_final)


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Main configuration container."""

    version: str = ""
    build: BuildConfig = field(default_factory=BuildConfig)
    bundle: BundleConfig = field(default_factory=BundleConfig)
    signing: SigningConfig = field(default_factory=SigningConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    cleanup: CleanupConfig = field(default_factory=CleanupConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> PipelineConfig:
        """Create a PipelineConfig from a mapping (parsed TOML).

        Raises:
            ValueError: A value is present but out of range or malformed.
        """
        build: StrDict = get_table(data, "build") or {}
        bundle: StrDict = get_table(data, "bundle") or {}
        signing: StrDict = get_table(data, "signing") or {}
        publish: StrDict = get_table(data, "publish") or {}
        cleanup: StrDict = get_table(data, "cleanup") or {}

        b = BundleConfig()
        s = SigningConfig()
        p = PublishConfig()

        attempts = get_int(bundle, "attempts")
        if attempts is not None and attempts < 1:
            raise ValueError("bundle.attempts must be >= 1")
        poll_interval = get_float(signing, "poll_interval")
        if poll_interval is not None and poll_interval < 0:
            raise ValueError("signing.poll_interval must be >= 0")
        deadline = get_float(signing, "deadline")
        if deadline is not None and deadline <= 0:
            raise ValueError("signing.deadline must be > 0")

        return cls(
            version=get_str(data, "version") or "",
            build=BuildConfig(
                target=get_str(build, "target") or BuildConfig().target,
                flags=tuple(get_str_list(build, "flags") or ()),
                binaries=_parse_binaries(build) or _default_binaries(),
            ),
            bundle=BundleConfig(
                desktop_dir=get_str(bundle, "desktop_dir") or b.desktop_dir,
                bin_dir=get_str(bundle, "bin_dir") or b.bin_dir,
                config_file=get_str(bundle, "config_file") or b.config_file,
                arch_field=get_str(bundle, "arch_field") or b.arch_field,
                arch=get_str(bundle, "arch") or b.arch,
                command=tuple(get_str_list(bundle, "command") or b.command),
                output_dir=get_str(bundle, "output_dir") or b.output_dir,
                archive=get_str(bundle, "archive") or b.archive,
                app=get_str(bundle, "app") or b.app,
                attempts=attempts if attempts is not None else b.attempts,
                retry_delay=_or(get_float(bundle, "retry_delay"), b.retry_delay),
                resources=_parse_resources(bundle),
            ),
            signing=SigningConfig(
                enabled=_or(get_bool(signing, "enabled"), s.enabled),
                bucket=get_str(signing, "bucket") or s.bucket,
                prefix=get_str(signing, "prefix") or s.prefix,
                function=get_str(signing, "function") or s.function,
                region=get_str(signing, "region"),
                app_label=get_str(signing, "app_label") or s.app_label,
                arch_label=get_str(signing, "arch_label") or s.arch_label,
                extra_files=tuple(_or(get_str_list(signing, "extra_files"), list(s.extra_files))),
                poll_interval=_or(poll_interval, s.poll_interval),
                deadline=_or(deadline, s.deadline),
            ),
            publish=PublishConfig(
                artifacts_dir=get_str(publish, "artifacts_dir") or p.artifacts_dir,
                artifact_name=get_str(publish, "artifact_name") or p.artifact_name,
                smoke=_or(get_bool(publish, "smoke"), p.smoke),
                process_pattern=get_str(publish, "process_pattern") or p.process_pattern,
                grace=_or(get_float(publish, "grace"), p.grace),
            ),
            cleanup=CleanupConfig(
                pre_build=_parse_scope(cleanup, "pre_build") or _default_pre_build(),
                post_build=_parse_scope(cleanup, "post_build") or _default_post_build(),
                final=_parse_scope(cleanup, "final") or _default_final(),
            ),
        )


def _or[T](value: T | None, default: T) -> T:
    return default if value is None else value


def _parse_binaries(build: StrDict) -> tuple[BinarySpec, ...]:
    items = as_obj_list(build.get("binaries"))
    if items is None:
        return ()

    out: list[BinarySpec] = []
    for item in items:
        entry = as_str_dict(item)
        if entry is None:
            raise ValueError("build.binaries entries must be tables")
        name = get_str(entry, "name")
        if name is None:
            raise ValueError("build.binaries entry missing 'name'")

        command = get_str_list(entry, "command")
        if command:
            output = get_str(entry, "output")
            if output is None:
                raise ValueError(f"build.binaries '{name}': command binaries need 'output'")
            out.append(
                BinarySpec(
                    name=name,
                    kind="command",
                    command=tuple(command),
                    cwd=get_str(entry, "cwd") or ".",
                    output=output,
                )
            )
            continue

        package = get_str(entry, "package")
        if package is None:
            raise ValueError(f"build.binaries '{name}': need 'package' or 'command'")
        out.append(
            BinarySpec(
                name=name,
                kind="cargo",
                package=package,
                bin=get_str(entry, "bin") or name,
            )
        )
    return tuple(out)


def _parse_resources(bundle: StrDict) -> tuple[ResourceSpec, ...]:
    items = as_obj_list(bundle.get("resources"))
    if items is None:
        return _default_resources()

    out: list[ResourceSpec] = []
    for item in items:
        entry = as_str_dict(item)
        source = get_str(entry, "source") if entry is not None else None
        if entry is None or source is None:
            raise ValueError("bundle.resources entries need a 'source'")
        out.append(ResourceSpec(source=source, name=get_str(entry, "name") or Path(source).name))
    return tuple(out)


def _parse_scope(cleanup: StrDict, key: str) -> CleanupScope | None:
    table = get_table(cleanup, key)
    if table is None:
        return None

    commands: list[tuple[str, ...]] = []
    for item in as_obj_list(table.get("commands")) or []:
        if not isinstance(item, list) or not all(isinstance(x, str) for x in item):
            raise ValueError(f"cleanup.{key}.commands must be lists of strings")
        commands.append(tuple(item))

    return CleanupScope(
        paths=tuple(get_str_list(table, "paths") or ()),
        commands=tuple(commands),
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[PipelineConfig, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to deskrel.toml

    Returns:
        Ok(PipelineConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(PipelineConfig.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[PipelineConfig, ConfigError]:
    """Like load_config, but a missing file yields the defaults."""
    if not path.exists():
        return Ok(PipelineConfig())
    return load_config(path)
