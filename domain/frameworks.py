"""Target framework monikers and their compatibility rules."""
import re
from dataclasses import dataclass
from typing import Optional, Tuple

NET_CORE_APP = ".NETCoreApp"
NET_STANDARD = ".NETStandard"
NET_FRAMEWORK = ".NETFramework"
ANY = "Any"

_NET_RE = re.compile(r'^net(\d+)\.(\d+)(?:-([a-z][a-z0-9.]*))?$')
_NETCOREAPP_RE = re.compile(r'^netcoreapp(\d+)\.(\d+)$')
_NETSTANDARD_RE = re.compile(r'^netstandard(\d+)\.(\d+)$')
_NETFRAMEWORK_RE = re.compile(r'^net(\d)(\d)(\d)?$')

# Highest .NET Standard version each runtime line implements.
_NETSTANDARD_SUPPORT = {
    NET_CORE_APP: [((3, 0), (2, 1)), ((2, 0), (2, 0)), ((1, 0), (1, 6))],
    NET_FRAMEWORK: [((4, 6, 1), (2, 0)), ((4, 6), (1, 3)), ((4, 5, 1), (1, 2)), ((4, 5), (1, 1))],
}


@dataclass(frozen=True)
class TargetFramework:
    """A parsed target framework moniker such as net8.0 or netstandard2.0."""
    identifier: str
    version: Tuple[int, ...] = ()
    platform: str = ""

    @property
    def is_any(self) -> bool:
        return self.identifier == ANY

    @property
    def short_folder_name(self) -> str:
        if self.is_any:
            return "any"
        if self.identifier == NET_FRAMEWORK:
            return "net" + "".join(str(part) for part in self.version)
        major, minor = self.version[0], self.version[1]
        if self.identifier == NET_STANDARD:
            return f"netstandard{major}.{minor}"
        if major >= 5:
            name = f"net{major}.{minor}"
            return f"{name}-{self.platform}" if self.platform else name
        return f"netcoreapp{major}.{minor}"

    @property
    def dotnet_framework_name(self) -> str:
        if self.is_any:
            return ANY
        return f"{self.identifier},Version=v{'.'.join(str(part) for part in self.version)}"

    def __str__(self) -> str:
        return self.short_folder_name


ANY_FRAMEWORK = TargetFramework(ANY)


def parse_framework(folder_name: str) -> Optional[TargetFramework]:
    """Parse a short folder name; returns None for anything unrecognized."""
    name = (folder_name or "").strip().lower()
    if name == "any":
        return ANY_FRAMEWORK

    match = _NETCOREAPP_RE.match(name)
    if match:
        return TargetFramework(NET_CORE_APP, (int(match.group(1)), int(match.group(2))))

    match = _NETSTANDARD_RE.match(name)
    if match:
        return TargetFramework(NET_STANDARD, (int(match.group(1)), int(match.group(2))))

    match = _NET_RE.match(name)
    if match:
        major, minor = int(match.group(1)), int(match.group(2))
        if major < 5:
            return None
        return TargetFramework(NET_CORE_APP, (major, minor), match.group(3) or "")

    match = _NETFRAMEWORK_RE.match(name)
    if match:
        version = tuple(int(part) for part in match.groups() if part is not None)
        return TargetFramework(NET_FRAMEWORK, version)

    return None


def _platform_name(platform: str) -> str:
    return re.sub(r'[\d.]+$', '', platform)


def _supported_netstandard(target: TargetFramework) -> Optional[Tuple[int, ...]]:
    for minimum, netstandard in _NETSTANDARD_SUPPORT.get(target.identifier, []):
        if target.version >= minimum:
            return netstandard
    return None


def is_compatible(target: TargetFramework, candidate: TargetFramework) -> bool:
    """True when assets built for candidate can run on target."""
    if candidate.is_any:
        return True
    if target.is_any:
        return False

    if candidate.identifier == target.identifier:
        if candidate.platform and _platform_name(candidate.platform) != _platform_name(target.platform):
            return False
        return candidate.version <= target.version

    if candidate.identifier == NET_STANDARD:
        supported = _supported_netstandard(target)
        return supported is not None and candidate.version <= supported

    return False


def _rank(target: TargetFramework, candidate: TargetFramework) -> Tuple:
    if candidate.is_any:
        return (0,)
    family = 2 if candidate.identifier == target.identifier else 1
    return (family, bool(candidate.platform), candidate.version)


def compare_nearest(target: TargetFramework, best: TargetFramework, candidate: TargetFramework) -> int:
    """
    Compare two compatible frameworks against a target.

    Returns a positive number when candidate is nearer to target than best,
    negative when best is nearer, zero when they are equivalent.
    """
    best_rank = _rank(target, best)
    candidate_rank = _rank(target, candidate)
    if candidate_rank > best_rank:
        return 1
    if candidate_rank < best_rank:
        return -1
    return 0
