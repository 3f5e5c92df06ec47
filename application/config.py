"""Installer configuration."""
import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from domain.runtime_graph import RuntimeGraph

DEFAULT_TARGET_FRAMEWORK = "net8.0"
ENV_PREFIX = "TOOL_PACKAGE_"

_OS_NAMES = {"linux": "linux", "darwin": "osx", "windows": "win"}
_ARCHITECTURES = {
    "x86_64": "x64",
    "amd64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
}


def detect_runtime_identifier(system: Optional[str] = None, machine: Optional[str] = None) -> str:
    """Runtime identifier of the current process, e.g. linux-x64 or win-arm64."""
    system = (system or platform.system()).lower()
    machine = (machine or platform.machine()).lower()
    os_name = _OS_NAMES.get(system, "unix")
    architecture = _ARCHITECTURES.get(machine)
    if not architecture:
        return os_name
    return f"{os_name}-{architecture}"


def default_local_download_dir() -> Path:
    return Path.home() / ".nuget" / "packages"


@dataclass
class InstallerConfig:
    store_dir: Path
    local_download_dir: Path
    target_framework: str = DEFAULT_TARGET_FRAMEWORK
    runtime_identifier: str = ""
    runtime_graph_path: Optional[Path] = None
    move_retry_attempts: int = 10
    move_retry_initial_delay: float = 0.01
    http_timeout: float = 30.0

    def __post_init__(self):
        self.store_dir = Path(self.store_dir)
        self.local_download_dir = Path(self.local_download_dir)
        if self.runtime_graph_path is not None:
            self.runtime_graph_path = Path(self.runtime_graph_path)
        if not self.runtime_identifier:
            self.runtime_identifier = detect_runtime_identifier()
        if self.move_retry_attempts < 0:
            raise ValueError("move_retry_attempts must not be negative")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "InstallerConfig":
        """
        Build a configuration from TOOL_PACKAGE_* variables.

        TOOL_PACKAGE_STORE_DIR defaults to ~/.dotnet/tools/.store and
        TOOL_PACKAGE_LOCAL_DOWNLOAD_DIR to ~/.nuget/packages.
        """
        env = os.environ if environ is None else environ

        def get(name: str, default=None):
            value = env.get(ENV_PREFIX + name)
            return value if value else default

        return cls(
            store_dir=Path(get("STORE_DIR", Path.home() / ".dotnet" / "tools" / ".store")),
            local_download_dir=Path(get("LOCAL_DOWNLOAD_DIR", default_local_download_dir())),
            target_framework=get("TARGET_FRAMEWORK", DEFAULT_TARGET_FRAMEWORK),
            runtime_identifier=get("RUNTIME_IDENTIFIER", ""),
            runtime_graph_path=get("RUNTIME_GRAPH"),
            move_retry_attempts=int(get("MOVE_RETRY_ATTEMPTS", 10)),
            move_retry_initial_delay=float(get("MOVE_RETRY_INITIAL_DELAY", 0.01)),
            http_timeout=float(get("HTTP_TIMEOUT", 30.0)),
        )

    def load_runtime_graph(self) -> RuntimeGraph:
        if self.runtime_graph_path is not None:
            return RuntimeGraph.from_file(self.runtime_graph_path)
        return RuntimeGraph.load_default()
