"""authport -- acquire and persist service credentials from the command line.

authport drives a family of interchangeable login strategies (browser
OAuth, device-code OAuth, authorization-code OAuth, token file import, and
an interactive paste-in-the-browser JSON import) and hands the resulting
credential record to a credential store.

Typical workflow::

    authport login                # default browser OAuth login
    authport login import-json    # paste token JSON into a local web form
    authport credentials list     # inspect what has been stored

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric process exit codes.
    output: stderr/stdout formatting with Rich support.
    browser: Best-effort default-browser launcher.
    capture: Ephemeral loopback server capturing one pasted payload.
    login: The login orchestrator.
"""

__version__ = "0.1.0"
