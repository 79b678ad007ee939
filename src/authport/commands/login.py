"""Login commands -- one per login strategy.

Provides the ``authport login`` sub-command group. Running ``authport login``
without a sub-command performs the default Google browser login.

Typical usage::

    authport login                      # Google browser login
    authport login aws                  # AWS Builder ID, device code flow
    authport login aws-authcode         # AWS Builder ID, authorization code flow
    authport login import               # reuse the IDE's token file
    authport login import-json          # paste token JSON into a local form
"""

from __future__ import annotations

from typing import Optional

import typer

from authport.models import LoginStrategy
from authport.output import error


login_app = typer.Typer(invoke_without_command=True)


_NO_BROWSER_HELP = "Print the URL instead of opening a browser."
_PROMPT_HELP = "Prompt hint passed to the authenticator."
_AUTH_DIR_HELP = "Directory to save the credential in."
_AUTHENTICATOR_HELP = "Name of the authenticator to use."


def _run(
    strategy: LoginStrategy,
    no_browser: bool = False,
    prompt: str = "",
    auth_dir: Optional[str] = None,
    authenticator: Optional[str] = None,
    import_timeout: Optional[float] = None,
    ide_token_path: Optional[str] = None,
) -> None:
    """Resolve config and run *strategy*, mapping failures to the exit code.

    The orchestrator reports its own failures; only errors raised before it
    runs (configuration, authenticator loading) are printed here.
    """
    from authport.config import resolve_config
    from authport.exceptions import AuthportError, ConfigError
    from authport.login import run_login
    from authport.models import LoginOptions

    try:
        config = resolve_config(
            cli_auth_dir=auth_dir,
            cli_authenticator=authenticator,
            cli_import_timeout=import_timeout,
            cli_ide_token_path=ide_token_path,
        )
        run_login(strategy, config, LoginOptions(no_browser=no_browser, prompt=prompt))
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    except AuthportError as exc:
        raise typer.Exit(code=exc.exit_code) from None


@login_app.callback()
def login_default(
    ctx: typer.Context,
    no_browser: bool = typer.Option(False, "--no-browser", help=_NO_BROWSER_HELP),
    prompt: str = typer.Option("", "--prompt", help=_PROMPT_HELP),
    auth_dir: Optional[str] = typer.Option(None, "--auth-dir", help=_AUTH_DIR_HELP),
    authenticator: Optional[str] = typer.Option(
        None, "--authenticator", help=_AUTHENTICATOR_HELP
    ),
) -> None:
    """Log in and save the credential. Defaults to the Google browser login."""
    if ctx.invoked_subcommand is None:
        _run(
            LoginStrategy.BROWSER_OAUTH,
            no_browser=no_browser,
            prompt=prompt,
            auth_dir=auth_dir,
            authenticator=authenticator,
        )


@login_app.command("google")
def login_google(
    no_browser: bool = typer.Option(False, "--no-browser", help=_NO_BROWSER_HELP),
    prompt: str = typer.Option("", "--prompt", help=_PROMPT_HELP),
    auth_dir: Optional[str] = typer.Option(None, "--auth-dir", help=_AUTH_DIR_HELP),
    authenticator: Optional[str] = typer.Option(
        None, "--authenticator", help=_AUTHENTICATOR_HELP
    ),
) -> None:
    """Log in with Google through the browser (OAuth redirect)."""
    _run(
        LoginStrategy.BROWSER_OAUTH,
        no_browser=no_browser,
        prompt=prompt,
        auth_dir=auth_dir,
        authenticator=authenticator,
    )


@login_app.command("aws")
def login_aws(
    no_browser: bool = typer.Option(False, "--no-browser", help=_NO_BROWSER_HELP),
    prompt: str = typer.Option("", "--prompt", help=_PROMPT_HELP),
    auth_dir: Optional[str] = typer.Option(None, "--auth-dir", help=_AUTH_DIR_HELP),
    authenticator: Optional[str] = typer.Option(
        None, "--authenticator", help=_AUTHENTICATOR_HELP
    ),
) -> None:
    """Log in with an AWS Builder ID using the device code flow.

    Example::

        authport login aws --no-browser
    """
    _run(
        LoginStrategy.DEVICE_CODE_OAUTH,
        no_browser=no_browser,
        prompt=prompt,
        auth_dir=auth_dir,
        authenticator=authenticator,
    )


@login_app.command("aws-authcode")
def login_aws_authcode(
    no_browser: bool = typer.Option(False, "--no-browser", help=_NO_BROWSER_HELP),
    prompt: str = typer.Option("", "--prompt", help=_PROMPT_HELP),
    auth_dir: Optional[str] = typer.Option(None, "--auth-dir", help=_AUTH_DIR_HELP),
    authenticator: Optional[str] = typer.Option(
        None, "--authenticator", help=_AUTHENTICATOR_HELP
    ),
) -> None:
    """Log in with an AWS Builder ID using the authorization code flow."""
    _run(
        LoginStrategy.AUTH_CODE_OAUTH,
        no_browser=no_browser,
        prompt=prompt,
        auth_dir=auth_dir,
        authenticator=authenticator,
    )


@login_app.command("import")
def login_import(
    file: Optional[str] = typer.Option(
        None, "--file", help="Token file to import (default: the IDE's token file)."
    ),
    auth_dir: Optional[str] = typer.Option(None, "--auth-dir", help=_AUTH_DIR_HELP),
    authenticator: Optional[str] = typer.Option(
        None, "--authenticator", help=_AUTHENTICATOR_HELP
    ),
) -> None:
    """Import the token the IDE saved after you signed in there.

    Example::

        authport login import --file ~/Downloads/token.json
    """
    _run(
        LoginStrategy.FILE_IMPORT,
        auth_dir=auth_dir,
        authenticator=authenticator,
        ide_token_path=file,
    )


@login_app.command("import-json")
def login_import_json(
    no_browser: bool = typer.Option(False, "--no-browser", help=_NO_BROWSER_HELP),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        min=1,
        help="Seconds to wait for the JSON to be submitted (default: 300).",
    ),
    auth_dir: Optional[str] = typer.Option(None, "--auth-dir", help=_AUTH_DIR_HELP),
    authenticator: Optional[str] = typer.Option(
        None, "--authenticator", help=_AUTHENTICATOR_HELP
    ),
) -> None:
    """Paste token JSON into a local web form and import it.

    Starts a one-shot web server on 127.0.0.1, opens it in the browser, and
    waits for the form to be submitted.
    """
    _run(
        LoginStrategy.INTERACTIVE_JSON_IMPORT,
        no_browser=no_browser,
        auth_dir=auth_dir,
        authenticator=authenticator,
        import_timeout=timeout,
    )
