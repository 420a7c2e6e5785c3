# © 2025 EarthDaily Analytics Corp.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import os
from threading import Lock

import dynaconf

from medianstack.exceptions import ConfigError

PRODUCTION_ENVIRONMENT = "production"  #: Standard environment
TESTING_ENVIRONMENT = "testing"  #: Small tiles and workers for the test suite

ENVVAR_PREFIX = "MEDIANSTACK"

_MAX_PIXEL = 0xFFFFFFFF


class Settings(dynaconf.Dynaconf):
    """
    Configuration settings for medianstack.

    Based on the ``Dynaconf`` package. This settings class supports configuration from
    named "environments" in a ``settings.toml`` file as well as environment variables
    with names that are prefixed with ``MEDIANSTACK_`` (or the prefix specified
    in the ``envvar_prefix``).

    Recognized settings:

    ``output``
        Path of the composited raster (``out.tif``).
    ``max_workers``
        Threads used for loading and compositing, ``0`` for the executor default.
    ``rows_per_tile``
        Canvas rows handed to one compositing task.
    ``empty_pixel``
        Packed pixel written where no opaque sample covers the canvas.
    ``require_position``
        Fail instead of defaulting to the (0, 0) origin when an image carries
        no position tags.
    ``progress``
        ``true`` or ``false`` to force progress bars, unset to show them only
        on a terminal.
    ``log_level``, ``log_format``
        Passed to :py:func:`logging.basicConfig` by the command line.

    Normally ``Settings`` is configured implicitly on first use. Custom
    initialization is possible by calling, before anything else:

    .. code-block::

        from medianstack.config import Settings
        Settings.select_env(...)
    """

    class _EnvDescriptor:
        # Retrieve the correct env string for `peek_settings()`
        def __get__(self, obj, objtype=None):
            if obj is None:
                if objtype._settings is None:
                    return None
                else:
                    return objtype._settings.env_for_dynaconf
            else:
                return obj.env_for_dynaconf

    env = _EnvDescriptor()
    """str : The current configuration name or `None` of no environment was selected."""

    # The global settings instance, can only be set once via select_env or get_settings
    _settings = None

    _lock = Lock()

    @classmethod
    def select_env(cls, env=None, settings_file=None, envvar_prefix=ENVVAR_PREFIX):
        """
        Configure medianstack.

        Parameters
        ----------
        env : str, optional
            Name of the environment to configure. Must appear in
            ``medianstack/config/settings.toml``. If not supplied will be determined
            from the `MEDIANSTACK_ENV` environment variable (or use the prefix
            specified in the `envvar_prefix`_ENV), if set. Otherwise defaults to
            `production`.
        settings_file : str, optional
            If supplied, will be consulted for additional configuration overrides. These
            are applied over those in the ``medianstack/config/settings.toml`` file,
            but are themselves overwritten by any environment variable settings matching
            the `envvar_prefix`.
        envvar_prefix : str, optional
            Prefix for environment variable names to consult for configuration
            overrides.

        Returns
        -------
        Settings
            A dict-like object containing the configured settings.

        Raises
        ------
        ConfigError
            If no configuration could be established, if an invalid environment
            name or setting value was given, or if you try to change the
            environment after it has been selected.
        """
        # Double-checked: safe under CPython and the GIL.
        settings = cls._settings

        if settings is None:
            with cls._lock:
                settings = cls._settings

                if settings is None:
                    settings = cls._select_env(
                        env=env,
                        settings_file=settings_file,
                        envvar_prefix=envvar_prefix,
                    )

        if (
            settings is not None
            and env is not None
            and env.lower() != settings.current_env.lower()
        ):
            raise ConfigError(
                f"Configuration '{settings.current_env}' has already been selected"
            )

        return settings

    @classmethod
    def get_settings(cls):
        """
        Configure and retrieve the current or default settings.

        Returns
        -------
        Settings
            A dict-like object containing the configured settings.

        Raises
        ------
        ConfigError
            If no configuration could be established.
        """
        settings = cls._settings

        if settings is None:
            with cls._lock:
                settings = cls._settings
                if settings is None:
                    settings = cls._select_env()

        return settings

    @classmethod
    def peek_settings(cls, env=None, settings_file=None, envvar_prefix=ENVVAR_PREFIX):
        """Retrieve the settings without configuring medianstack.

        See :py:meth:`select_env` for an explanation of the parameters, return value,
        and exceptions that can be raised.
        """
        selector = f"{envvar_prefix}_ENV"
        original_selector_value = os.environ.get(selector)

        settings = cls._get_settings(
            env=env,
            settings_file=settings_file,
            envvar_prefix=envvar_prefix,
        )

        # Return the environ back to its original state
        if original_selector_value is None:
            os.environ.pop(selector, None)
        else:
            os.environ[selector] = original_selector_value

        return settings

    @classmethod
    def _select_env(cls, env=None, settings_file=None, envvar_prefix=ENVVAR_PREFIX):
        cls._settings = cls._get_settings(
            env=env, settings_file=settings_file, envvar_prefix=envvar_prefix
        )
        return cls._settings

    @classmethod
    def _get_settings(cls, env=None, settings_file=None, envvar_prefix=ENVVAR_PREFIX):
        # On success os.environ keeps the selector for the chosen environment.
        selector = f"{envvar_prefix}_ENV"
        original_selector_value = os.environ.get(selector)

        def restore_env():
            if original_selector_value is None:
                os.environ.pop(selector, None)
            else:
                os.environ[selector] = original_selector_value

        if env:
            os.environ[selector] = env
        elif not os.environ.get(selector):
            os.environ[selector] = PRODUCTION_ENVIRONMENT

        builtin_settings_file = os.path.join(
            os.path.dirname(os.path.abspath(__file__)), "settings.toml"
        )

        try:
            settings = cls(
                # First load the packaged settings.
                settings_file=[builtin_settings_file],
                # Then the given settings file, if any.
                includes=[] if not settings_file else [settings_file],
                core_loaders=["TOML"],
                # [default] is always used, the selector picks the overrides.
                environments=True,
                env_switcher=selector,
                # e.g. MEDIANSTACK_OUTPUT=mosaic.tif
                envvar_prefix=envvar_prefix,
            )
        except Exception as e:
            restore_env()
            raise ConfigError(str(e)) from e

        try:
            # Make sure we selected an environment that exists!
            assert settings.env_for_dynaconf
            assert settings.environment_name
        except (AttributeError, KeyError, AssertionError):
            message = f"Configuration '{os.environ[selector]}' doesn't exist!"
            restore_env()

            if not env:
                message += f" Check your {selector} environment variable."

            raise ConfigError(message) from None

        try:
            _validate(settings)
        except ConfigError:
            restore_env()
            raise

        return settings


def _validate(settings):
    output = settings.get("output")
    if not output or not isinstance(output, str):
        raise ConfigError("Setting 'output' must be a non-empty path")

    for key, minimum in (("max_workers", 0), ("rows_per_tile", 1)):
        value = settings.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            raise ConfigError(
                f"Setting '{key}' must be an integer >= {minimum}, got {value!r}"
            )

    empty_pixel = settings.get("empty_pixel")
    if (
        isinstance(empty_pixel, bool)
        or not isinstance(empty_pixel, int)
        or not 0 <= empty_pixel <= _MAX_PIXEL
    ):
        raise ConfigError(
            f"Setting 'empty_pixel' must be a packed 32-bit pixel, got {empty_pixel!r}"
        )

    progress = settings.get("progress")
    if progress is not None and not isinstance(progress, bool):
        raise ConfigError(f"Setting 'progress' must be true or false, got {progress!r}")


def max_workers(settings):
    """The ``max_workers`` setting as accepted by a ``ThreadPoolExecutor``."""
    return settings.max_workers or None


get_settings = Settings.get_settings
"""An alias for :py:meth:`Settings.get_settings`"""

peek_settings = Settings.peek_settings
"""An alias for :py:meth:`Settings.peek_settings`"""

select_env = Settings.select_env
"""An alias for :py:meth:`Settings.select_env`"""

__all__ = [
    "PRODUCTION_ENVIRONMENT",
    "TESTING_ENVIRONMENT",
    "Settings",
    "get_settings",
    "max_workers",
    "peek_settings",
    "select_env",
]
