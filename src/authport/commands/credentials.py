"""Credential commands -- inspect and remove stored credentials.

Typical workflow::

    authport credentials list
    authport credentials show kiro-user_example.com
    authport credentials remove kiro-user_example.com --force
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from authport.output import error, get_output, info, success, suggest


credentials_app = typer.Typer(no_args_is_help=True)

_SECRET_MARKERS = ("token", "secret")


def _preview(key: str, value: Any) -> str:
    text = str(value)
    if any(marker in key.lower() for marker in _SECRET_MARKERS):
        return text[:8] + "..." if len(text) > 8 else "***"
    return text


def _resolve_config(auth_dir: Optional[str]):  # noqa: ANN202
    from authport.config import resolve_config
    from authport.exceptions import ConfigError

    try:
        return resolve_config(cli_auth_dir=auth_dir)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


@credentials_app.command("list")
def credentials_list(
    auth_dir: Optional[str] = typer.Option(None, "--auth-dir", help="Credential directory."),
) -> None:
    """List stored credentials."""
    from authport.auth.credential_store import FileCredentialStore

    config = _resolve_config(auth_dir)
    store = FileCredentialStore()
    paths = store.list_paths(config)
    if not paths:
        info("No stored credentials.")
        suggest("Log in first: authport login")
        return

    rows: list[list[str]] = []
    for path in paths:
        record = store.load(path)
        if record is None:
            rows.append([path.stem, "error", "-", "-", "-"])
            continue
        rows.append(
            [
                path.stem,
                record.provider,
                record.auth_method,
                record.label or "-",
                record.created_at.strftime("%Y-%m-%d %H:%M"),
            ]
        )
    get_output().print_table(
        ["Name", "Provider", "Method", "Label", "Created"], rows, title="Stored Credentials"
    )


@credentials_app.command("show")
def credentials_show(
    name: str = typer.Argument(help="Credential name, as shown by 'credentials list'."),
    auth_dir: Optional[str] = typer.Option(None, "--auth-dir", help="Credential directory."),
) -> None:
    """Show one stored credential with secrets truncated."""
    from authport.auth.credential_store import FileCredentialStore
    from authport.exceptions import InvalidUsageError

    config = _resolve_config(auth_dir)
    store = FileCredentialStore()
    try:
        path = store.resolve(config, name)
    except InvalidUsageError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    record = store.load(path)
    if record is None:
        error(f'No stored credential named "{name}".')
        raise typer.Exit(code=1)

    rows = [
        ["File", str(path)],
        ["Provider", record.provider],
        ["Method", record.auth_method],
        ["Label", record.label or "-"],
        ["Created", record.created_at.isoformat()],
    ]
    rows.extend([key, _preview(key, value)] for key, value in sorted(record.metadata.items()))
    get_output().print_table(["Field", "Value"], rows, title="Stored Credential")


@credentials_app.command("remove")
def credentials_remove(
    ctx: typer.Context,
    name: str = typer.Argument(help="Credential name, as shown by 'credentials list'."),
    auth_dir: Optional[str] = typer.Option(None, "--auth-dir", help="Credential directory."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Delete a stored credential. Asks for confirmation unless --force is set."""
    from authport.auth.credential_store import FileCredentialStore
    from authport.exceptions import InvalidUsageError

    config = _resolve_config(auth_dir)
    store = FileCredentialStore()
    try:
        path = store.resolve(config, name)
    except InvalidUsageError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not path.is_file():
        info(f'No stored credential named "{name}".')
        return

    if ctx.obj and ctx.obj.get("force"):
        force = True
    if not force:
        confirmed = typer.confirm(f'Remove stored credential "{name}"?')
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    store.delete(path)
    success(f'Removed stored credential "{name}".')
