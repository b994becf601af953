"""Profile sources and the FormValidator facade.

Profiles live in memory as mappings or in a YAML/JSON file holding a mapping
of profile name to profile options:

    customer_infos:
      required: [fullname, phone, email]
      optional: [company, fax]
      filters: [trim]
      constraints:
        email: email
        phone: american_phone
      msgs:
        prefix: err_

Only serializable options fit in a file; callable filters and constraints are
registered by name in the registry and referenced by that name.

A ProfileStore keeps the parsed profiles of one file and reloads them when
the file's modification time is newer than the last load.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from formcheck.core.exceptions import ProfileError, ProfileLoadError
from formcheck.core.protocols import ParamSource
from formcheck.validation.engine import Engine
from formcheck.validation.profile import Profile
from formcheck.validation.registry import Registry
from formcheck.validation.result import Results

logger = logging.getLogger(__name__)


def _read_document(path: Path) -> Any:
    content = path.read_text()
    if path.suffix == ".json":
        return json.loads(content)
    if path.suffix in (".yaml", ".yml"):
        return yaml.safe_load(content)
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return yaml.safe_load(content)


def load_profiles(path: str | Path) -> dict[str, Profile]:
    """Load named profiles from a YAML or JSON file.

    The format follows the extension (.json, .yaml, .yml); other extensions
    are tried as JSON first, then as YAML.

    Args:
        path: Path to the profile file

    Returns:
        Dictionary of profile name to parsed Profile

    Raises:
        ProfileLoadError: If the file is missing, unparsable, not a mapping of
                          mappings, or a profile in it is structurally invalid

    Example:
        >>> profiles = load_profiles("profiles.yaml")
        >>> sorted(profiles)
        ['customer_infos', 'signup']
    """
    path = Path(path)
    if not path.exists():
        raise ProfileLoadError(
            f"Profile file not found: {path}", file_path=str(path), reason="File not found"
        )

    try:
        document = _read_document(path)
    except json.JSONDecodeError as e:
        raise ProfileLoadError(
            f"Invalid JSON in {path}: {e}", file_path=str(path), reason="Syntax error"
        ) from e
    except yaml.YAMLError as e:
        raise ProfileLoadError(
            f"Invalid YAML in {path}: {e}", file_path=str(path), reason="Syntax error"
        ) from e
    except OSError as e:
        raise ProfileLoadError(
            f"Failed to read profiles from {path}: {e}", file_path=str(path), reason="Unreadable"
        ) from e

    if not isinstance(document, dict):
        msg = f"Profile file must contain a mapping of profile names, got: {type(document).__name__}"
        raise ProfileLoadError(msg, file_path=str(path), reason="Invalid structure")

    profiles: dict[str, Profile] = {}
    for name, options in document.items():
        if not isinstance(options, dict):
            msg = f"Profile '{name}' in {path} must be a mapping, got: {type(options).__name__}"
            raise ProfileLoadError(msg, file_path=str(path), profile=str(name), reason="Invalid structure")
        try:
            profiles[str(name)] = Profile.from_dict(options)
        except ProfileError as e:
            raise ProfileLoadError(
                f"Invalid profile '{name}' in {path}: {e}",
                file_path=str(path),
                profile=str(name),
                reason="Invalid profile",
            ) from e
    return profiles


class ProfileStore:
    """Named profiles loaded from a file, reloaded when the file changes.

    Attributes:
        path: Path of the profile file
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._profiles: dict[str, Profile] = {}
        self._mtime: float | None = None

    def _stale(self) -> bool:
        try:
            mtime = self.path.stat().st_mtime
        except OSError:
            return True
        return self._mtime is None or mtime > self._mtime

    def profiles(self) -> dict[str, Profile]:
        """Current profiles, reloading the file first if it is newer than the last load."""
        if self._stale():
            profiles = load_profiles(self.path)
            self._mtime = self.path.stat().st_mtime
            self._profiles = profiles
            logger.info("Loaded %d profile(s) from %s", len(profiles), self.path)
        return dict(self._profiles)

    def get(self, name: str) -> Profile:
        """Look up a profile by name.

        Raises:
            ProfileLoadError: If no profile has that name
        """
        profiles = self.profiles()
        if name not in profiles:
            available = ", ".join(sorted(profiles)) or "none"
            raise ProfileLoadError(
                f"No such profile '{name}'. Available: {available}",
                file_path=str(self.path),
                profile=name,
                reason="Unknown profile",
            )
        return profiles[name]


class FormValidator:
    """Evaluates input against named profiles.

    Profiles come from an in-memory mapping of name to profile, or from a
    file (reloaded when it changes). Options in ``defaults`` apply to every
    profile unless the profile sets them itself.

    Example:
        >>> validator = FormValidator({
        ...     "login": {"required": ["user", "password"]},
        ... })
        >>> results = validator.check({"user": "mark"}, "login")
        >>> results.missing()
        ['password']
    """

    def __init__(
        self,
        profiles: Mapping[str, Any] | str | Path | None = None,
        defaults: Mapping[str, Any] | None = None,
        registry: Registry | None = None,
    ) -> None:
        self._store: ProfileStore | None = None
        self._profiles: dict[str, Any] = {}
        if isinstance(profiles, (str, Path)):
            self._store = ProfileStore(profiles)
        elif profiles is not None:
            if not isinstance(profiles, Mapping):
                msg = f"Profiles must be a mapping or a file path, got: {type(profiles).__name__}"
                raise ProfileLoadError(msg, reason="Invalid profiles")
            self._profiles = dict(profiles)
        self._defaults = dict(defaults or {})
        self.engine = Engine(registry)

    def profile(self, name: str) -> Profile:
        """Resolve a profile by name, with defaults applied.

        Raises:
            ProfileLoadError: If no profile has that name
            ProfileError: If the profile is structurally invalid
        """
        if self._store is not None:
            found: Any = self._store.get(name)
        elif name in self._profiles:
            found = self._profiles[name]
        else:
            available = ", ".join(sorted(self._profiles)) or "none"
            raise ProfileLoadError(
                f"No such profile '{name}'. Available: {available}",
                profile=name,
                reason="Unknown profile",
            )
        return self._with_defaults(found)

    def _with_defaults(self, profile: Profile | Mapping[str, Any]) -> Profile:
        if not self._defaults:
            return Profile.from_dict(profile)
        if isinstance(profile, Profile):
            # a Profile built directly records no options; use it as given
            if profile.options is None:
                return profile
            return Profile.from_dict({**self._defaults, **profile.options})
        if not isinstance(profile, Mapping):
            raise ProfileError(
                f"Profile must be a mapping, got: {type(profile).__name__}",
                reason="Invalid profile",
            )
        return Profile.from_dict({**self._defaults, **profile})

    def check(
        self,
        data: Mapping[str, Any] | ParamSource,
        profile: str | Profile | Mapping[str, Any],
    ) -> Results:
        """Evaluate ``data`` against a named or inline profile."""
        if isinstance(profile, str):
            resolved = self.profile(profile)
        else:
            resolved = self._with_defaults(profile)
        return self.engine.evaluate(resolved, data)

    def validate(
        self,
        data: Mapping[str, Any] | ParamSource,
        profile: str | Profile | Mapping[str, Any],
    ) -> tuple[dict[str, Any], list[str], list[str], list[str]]:
        """Evaluate and return ``(valid, missing, invalid, unknown)``.

        ``invalid`` holds field names only; use ``check`` for the failed
        constraint names.
        """
        results = self.check(data, profile)
        return results.valid(), results.missing(), results.invalid(), results.unknown()
