"""Package identity and version range model."""
import functools
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import semantic_version

_UNCONSTRAINED_TOKENS = ("", "*", "latest")
_FLOATING_RE = re.compile(r'^(\d+)(?:\.(\d+))?\.\*$')
_VERSION_RE = re.compile(
    r'^(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.(\d+))?'
    r'(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?'
    r'(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$'
)


@dataclass(frozen=True)
class PackageId:
    """Case-normalized package name."""
    value: str

    def __init__(self, value: str):
        normalized = (value or "").strip().lower()
        if not normalized:
            raise ValueError("Package id must not be empty")
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        return self.value


@functools.total_ordering
class NuGetVersion:
    """
    A NuGet version: major.minor.patch[.revision][-prerelease].

    Release labels are ordered by semantic_version (case-insensitively),
    after the four numeric parts. Build metadata is accepted and dropped.
    """

    def __init__(self, value: str):
        found = _VERSION_RE.match(value.strip()) if value else None
        if not found:
            raise ValueError(f"Invalid version: {value!r}")
        major, minor, patch, revision, release = found.groups()
        self.major = int(major)
        self.minor = int(minor or 0)
        self.patch = int(patch or 0)
        self.revision = int(revision or 0)
        self.prerelease: Tuple[str, ...] = tuple(release.split(".")) if release else ()
        self._precedence = semantic_version.Version(
            major=self.major,
            minor=self.minor,
            patch=self.patch,
            prerelease=tuple(part.lower() for part in self.prerelease),
        )

    def _key(self) -> Tuple[int, int, int, int]:
        return (self.major, self.minor, self.patch, self.revision)

    def __eq__(self, other) -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._key() == other._key() and self._precedence == other._precedence

    def __lt__(self, other) -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        if self._key() != other._key():
            return self._key() < other._key()
        return self._precedence < other._precedence

    def __hash__(self) -> int:
        return hash((self._key(), self._precedence.prerelease))

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.revision:
            text += f".{self.revision}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        return text

    def __repr__(self) -> str:
        return f"NuGetVersion('{self}')"


Version = NuGetVersion


def parse_version(value: str) -> Version:
    """Parse a NuGet version leniently ('1.0' -> 1.0.0, '1.2.3.4' keeps its revision)."""
    if value is None or not str(value).strip():
        raise ValueError("Version must not be empty")
    return NuGetVersion(str(value))


def normalize_version(version: Version) -> str:
    """Normalized form: three parts, a fourth only when the revision is set, no metadata."""
    return str(version)


@dataclass(frozen=True)
class VersionRange:
    """
    A constraint over package versions in NuGet interval notation.

    Supported forms: '1.0' (minimum, inclusive), '[1.0]' (exact),
    '[1.0,2.0)', '(,2.0]', floating '1.*' / '1.2.*' and the unconstrained
    forms None, '', '*' and 'latest'.
    """
    min_version: Optional[Version] = None
    max_version: Optional[Version] = None
    include_min: bool = True
    include_max: bool = False

    @classmethod
    def all(cls) -> "VersionRange":
        return cls()

    @classmethod
    def exact(cls, version: Version) -> "VersionRange":
        return cls(version, version, True, True)

    @classmethod
    def parse(cls, value: Optional[str]) -> "VersionRange":
        if value is None or value.strip().lower() in _UNCONSTRAINED_TOKENS:
            return cls.all()

        text = value.strip()
        floating = _FLOATING_RE.match(text)
        if floating:
            major = int(floating.group(1))
            if floating.group(2) is None:
                return cls(NuGetVersion(f"{major}.0.0"), NuGetVersion(f"{major + 1}.0.0"))
            minor = int(floating.group(2))
            return cls(NuGetVersion(f"{major}.{minor}.0"), NuGetVersion(f"{major}.{minor + 1}.0"))

        if text[0] not in "[(":
            return cls(parse_version(text), None, True, False)

        if text[-1] not in "])":
            raise ValueError(f"Invalid version range: {value}")

        include_min = text[0] == "["
        include_max = text[-1] == "]"
        inner = text[1:-1]

        if "," not in inner:
            if not (include_min and include_max):
                raise ValueError(f"Invalid version range: {value}")
            return cls.exact(parse_version(inner))

        left, right = (part.strip() for part in inner.split(",", 1))
        min_version = parse_version(left) if left else None
        max_version = parse_version(right) if right else None
        if min_version is None and max_version is None:
            raise ValueError(f"Invalid version range: {value}")
        if min_version is not None and max_version is not None and max_version < min_version:
            raise ValueError(f"Invalid version range: {value}")
        return cls(min_version, max_version, include_min, include_max)

    @property
    def is_unconstrained(self) -> bool:
        return self.min_version is None and self.max_version is None

    @property
    def allows_prerelease(self) -> bool:
        return any(bound is not None and bound.prerelease for bound in (self.min_version, self.max_version))

    def satisfies(self, version: Version) -> bool:
        if version.prerelease and not self.allows_prerelease:
            return False
        if self.min_version is not None:
            if version < self.min_version or (version == self.min_version and not self.include_min):
                return False
        if self.max_version is not None:
            if version > self.max_version or (version == self.max_version and not self.include_max):
                return False
        return True

    def find_best_match(self, versions: Iterable[Version]) -> Optional[Version]:
        """Return the highest version satisfying the range, or None."""
        candidates = [v for v in versions if self.satisfies(v)]
        if not candidates:
            return None
        return max(candidates)

    def __str__(self) -> str:
        if self.is_unconstrained:
            return "*"
        if self.min_version is not None and self.min_version == self.max_version:
            return f"[{self.min_version}]"
        if self.max_version is None and self.include_min:
            return str(self.min_version)
        left = "[" if self.include_min else "("
        right = "]" if self.include_max else ")"
        low = str(self.min_version) if self.min_version is not None else ""
        high = str(self.max_version) if self.max_version is not None else ""
        return f"{left}{low}, {high}{right}"
