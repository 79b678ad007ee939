"""Built-in CLI sub-commands for authport.

* :mod:`~authport.commands.login` -- run one of the login strategies and
  save the resulting credential.
* :mod:`~authport.commands.credentials` -- list, show, and remove stored
  credentials.

Each module exports a :class:`typer.Typer` sub-application that
:mod:`authport.app` registers on the root app.
"""
