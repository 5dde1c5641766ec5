"""Settings framework implementation."""

import os
import typing
from argparse import ArgumentParser
from argparse import Namespace
from types import NoneType
from types import UnionType
from typing import Any
from typing import Callable
from typing import Generic
from typing import Iterator
from typing import TypeVar

T = TypeVar("T")

SettingType = type[T] | UnionType | Callable[[str], T]

ENV_PREFIX = "CODEINTEL_"

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off", ""})


def parse_bool(text: str) -> bool:
    """
    Parse a boolean from an environment variable or CLI argument.

    bool() cannot be used for this, since bool("false") is True.
    """
    lowered = text.strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise ValueError(f"Not a boolean: {text!r}")


class Setting(Generic[T]):  # pylint: disable=R0902
    """
    A single setting.

    manager: The SettingsManager this setting belongs to.

    See the module-level setting() for descriptions of the other parameters.
    """

    def __init__(
        self,
        manager: "SettingsManager",
        name: str,
        type: SettingType[T],  # pylint: disable=W0622
        *,
        env_name: str | None = None,
        cli_option: str | list[str] | None = None,
        description: str | None = None,
        default: T | None = None,
    ):
        if isinstance(cli_option, str):
            cli_option = [cli_option]
        self.manager = manager
        self.name = name
        self.type = type
        self.env_name = env_name or manager.env_prefix + name.upper().replace("-", "_")
        self.cli_option = cli_option
        self.description = description
        self.default = default
        self.value = default
        self._is_optional = typing.get_origin(type) is UnionType and NoneType in typing.get_args(type)

    @property
    def _parser(self) -> Callable[[str], T]:
        """
        A callable turning a string into a non-None value of this setting.

        Optionals are unwrapped to their enclosed type, since calling "int | None" on a string just fails.
        """
        if typing.get_origin(self.type) is UnionType:
            subtypes = [t for t in typing.get_args(self.type) if t is not NoneType]
            if len(subtypes) == 1:
                return subtypes[0]
            raise RuntimeError(f"Setting {self.name!r} has an ambiguous type {self.type}")
        if self.type is bool:
            return parse_bool  # type: ignore
        assert callable(self.type), f"Setting type {self.type} cannot be used to parse strings"
        return self.type

    @property
    def _type_name(self) -> str:
        "A short string naming this setting's type, for CLI help."
        parser = self._parser
        if parser is parse_bool:
            return "bool"
        return getattr(parser, "__name__", str(parser))

    @property
    def present(self) -> bool:
        "Whether the setting has a usable value."
        return self.value is not None or self._is_optional

    def get(self) -> T:
        "Return the setting's value, or raise an error if it is missing."
        self.manager.ensure_loaded(False)
        if self.value is None and not self._is_optional:
            raise RuntimeError(f"Setting {self.name!r} absent or not loaded")
        return self.value  # type: ignore

    def parse(self, text: str) -> None:
        "Parse a string (e.g. from the environment) and store the result as this setting's value."
        self.value = self._parser(text)

    def add_to_cli(self, parser: ArgumentParser) -> None:
        "If this setting has a CLI option, add it to the given parser."
        if self.cli_option is None:
            return
        parser.add_argument(
            *self.cli_option,
            metavar=f"<{self._type_name.upper()}>",
            dest=f"setting-{self.name}",
            help=self.description,
            type=self._parser,
        )

    def get_from_cli(self, args: Namespace) -> None:
        "If this setting has a CLI option that was given, take its value from the parsed arguments."
        if self.cli_option is None:
            return
        value = getattr(args, f"setting-{self.name}", None)
        if value is not None:
            self.value = value


class SettingsManager:
    """
    A collection of settings and the means to bulk-configure them.
    """

    def __init__(self, env_prefix: str = ENV_PREFIX) -> None:
        self.env_prefix = env_prefix
        self.settings: dict[str, Setting] = {}
        self.may_add = True
        self.loaded = False

    def __iter__(self) -> Iterator[Setting]:
        return iter(self.settings.values())

    @property
    def values(self) -> dict[str, object]:
        "Return a dict of all settings and their current values."
        return {k: s.value for k, s in self.settings.items()}

    @staticmethod
    def _error(s: Setting, problem: str) -> RuntimeError:
        "An error about setting s, with hints on how to fix it."
        lines = [problem, f"Hint: Set the environment variable {s.env_name} (expected type: {s.type})"]
        if s.description is not None:
            lines.append(f"Setting description: {s.description}")
        return RuntimeError("\n".join(lines))

    def add(self, name: str, type: SettingType[T], **kwargs: Any) -> Setting[T]:  # pylint: disable=W0622
        """
        Register a new setting with this manager and return it.

        Keyword arguments are forwarded to the Setting constructor.
        """
        if name in self.settings:
            raise ValueError(f"Trying to declare setting {name!r} which already exists")
        if not self.may_add or self.loaded:
            raise RuntimeError(f"Trying to declare setting {name!r} after settings have been finalized")
        result = Setting(self, name, type, **kwargs)
        self.settings[name] = result
        return result

    def add_to_cli(self, parser: ArgumentParser | None = None) -> None:
        """
        Add the CLI options of all settings to the given parser. No new settings may be declared afterwards.
        """
        if parser is not None:
            for s in self:
                s.add_to_cli(parser)
        self.may_add = False

    def apply(self, values: dict[str, str]) -> None:
        """
        Set settings from unparsed strings, keyed by setting name (*not* environment variable).

        Settings not mentioned keep their current values.
        """
        for s in self:
            if s.name in values:
                s.parse(values[s.name])
        self.loaded = True

    def load(self, args: Namespace | None = None, need_all: bool = True) -> None:
        """
        Load values for all settings from the environment and, if given, parsed CLI arguments.

        CLI arguments take precedence over environment variables.
        need_all: If true, raise an error if the value for a setting is missing.
        """
        for s in self:
            env_text = os.environ.get(s.env_name)
            if env_text is not None:
                try:
                    s.parse(env_text)
                except ValueError as exc:
                    raise self._error(s, f"Invalid value for setting {s.name!r}: {type(exc).__name__}: {exc}") from exc
            if args is not None:
                s.get_from_cli(args)
            if need_all and not s.present:
                raise self._error(s, f"Missing required setting {s.name!r}")
        self.loaded = True

    def reset(self) -> None:
        "Restore every setting to its declared default. Values must be loaded again afterwards."
        for s in self:
            s.value = s.default
        self.loaded = False

    def ensure_loaded(self, need_all: bool = True) -> None:
        """
        Ensure that apply() or load() have been called, and optionally that all settings are present.
        """
        if not self.loaded:
            # Developers: call navcommon.settings.load_settings() after all settings are declared and before use.
            raise RuntimeError("Settings were never loaded!")
        if need_all:
            for s in self:
                if not s.present:
                    raise self._error(s, f"Missing required setting {s.name!r}")


SETTINGS = SettingsManager()


def setting(
    name: str,
    type: SettingType[T],  # pylint: disable=W0622
    *,
    env_name: str | None = None,
    cli_option: str | list[str] | None = None,
    description: str | None = None,
    default: T | None = None,
) -> Setting[T]:
    """
    Declare a setting in the global settings manager.

    name: The setting's name, must be unique.
    type: The setting's type or factory function, something callable given a string.
    env_name: Environment variable name for the setting. Default: CODEINTEL_ plus the upper-cased name.
    cli_option: Name (or names) of CLI options as understood by argparse add_argument().
    description: A string to help the user to determine what to set the setting to.
    default: The default value for the setting.
    """
    return SETTINGS.add(
        name,
        type,
        env_name=env_name,
        cli_option=cli_option,
        description=description,
        default=default,
    )


def init_settings(parser: ArgumentParser | None = None) -> None:
    """
    Bind the global settings to an argparse parser (if given). No new settings may be declared afterwards.
    """
    SETTINGS.add_to_cli(parser)


def load_settings(args: Namespace | None = None) -> None:
    """
    Load values for all declared settings from the environment and the parsed CLI arguments.
    """
    SETTINGS.load(args)
