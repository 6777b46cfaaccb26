"""Config commands -- view the effective configuration.

Provides the ``opennow config`` sub-command group. The configuration file
lives in the opennow config directory; environment overrides
(``OPENNOW_CALLBACK_PORTS``, ``OPENNOW_AUTHORIZE_URL``) are applied on top
of it before display.
"""

from __future__ import annotations

import typer

from opennow.exceptions import OpennowError
from opennow.output import error, format_response, info


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration.

    Example::

        opennow config show
        opennow --json config show
    """
    from opennow.config import get_config_dir, load_global_config, resolve_login_config

    try:
        config = load_global_config()
        login = resolve_login_config(global_config=config)
    except OpennowError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    data = config.model_dump(mode="json")
    data["login"] = login.model_dump(mode="json")
    info(f"Config directory: {get_config_dir()}")
    format_response(data)


@config_app.command("path")
def config_path() -> None:
    """Print the path of the configuration file."""
    from opennow.config import global_config_path
    from opennow.output import print_data

    print_data(str(global_config_path()))
