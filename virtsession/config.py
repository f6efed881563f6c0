# This file is part of Virtsession
#
# Virtsession is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# Virtsession is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with Virtsession.  If not, see <http://www.gnu.org/licenses/>.

"""Configuration loader."""

__all__ = ['Config', 'ConfigSchema']

import os
import tomllib
from collections import UserDict
from pathlib import Path
from typing import ClassVar

from pydantic import ValidationError

from .common import EntityModel
from .exceptions import ConfigLoaderError
from .utils import dictutil


class LibvirtConfigSchema(EntityModel):
    """Schema for libvirt config."""

    uri: str | None = None
    readonly: bool = False


class ConfigSchema(EntityModel):
    """Configuration file schema."""

    libvirt: LibvirtConfigSchema


class Config(UserDict):
    """
    UserDict for storing configuration.

    Environment variables prefix is ``VSN_``. Environment variables
    have higher priority than configuration file.

    :cvar str ENV_LIBVIRT_URI: name of variable overriding libvirt URI
    :cvar str ENV_LIBVIRT_READONLY: name of variable overriding access
        mode, ``1``, ``true``, ``yes`` and ``on`` enable read-only mode,
        ``0``, ``false``, ``no`` and ``off`` disable it
    :cvar Path DEFAULT_CONFIG_FILE: :file:`/etc/virtsession/virtsession.toml`
    :cvar dict DEFAULT_CONFIGURATION: libvirt URI None means that libvirt
        picks default URI itself (``LIBVIRT_DEFAULT_URI`` etc.)
    """

    ENV_LIBVIRT_URI = 'VSN_LIBVIRT_URI'
    ENV_LIBVIRT_READONLY = 'VSN_LIBVIRT_READONLY'

    DEFAULT_CONFIG_FILE = Path('/etc/virtsession/virtsession.toml')
    DEFAULT_CONFIGURATION: ClassVar[dict] = {
        'libvirt': {
            'uri': None,
            'readonly': False,
        },
    }

    def __init__(self, file: Path | str | None = None):
        """
        Initialise Config.

        :param file: Path to configuration file. If `file` is None
            use default path from :attr:`Config.DEFAULT_CONFIG_FILE`.
            Missing default file is not an error.
        """
        self.file = Path(file) if file else self.DEFAULT_CONFIG_FILE
        try:
            if self.file.exists() or file:
                with self.file.open('rb') as configfile:
                    loaded = tomllib.load(configfile)
            else:
                loaded = {}
        except tomllib.TOMLDecodeError as etoml:
            raise ConfigLoaderError(
                f'Bad TOML syntax: {self.file}: {etoml}'
            ) from etoml
        except (OSError, ValueError) as eread:
            raise ConfigLoaderError(
                f'Config read error: {self.file}: {eread}'
            ) from eread
        config = dictutil.override(self.DEFAULT_CONFIGURATION, loaded)
        uri = os.getenv(self.ENV_LIBVIRT_URI)
        if uri:
            config['libvirt']['uri'] = uri
        readonly = os.getenv(self.ENV_LIBVIRT_READONLY)
        if readonly:
            config['libvirt']['readonly'] = readonly
        try:
            schema = ConfigSchema(**config)
        except ValidationError as e:
            raise ConfigLoaderError(
                f'Invalid configuration: {self.file}: {e}'
            ) from e
        super().__init__(schema.model_dump())
