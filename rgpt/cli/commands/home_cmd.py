from __future__ import annotations

import typer

from rgpt.core.errors import ErrorCode
from rgpt.core.home import HOME_ENV_VAR, detect_home_info
from rgpt.core.result import Err
from rgpt.output.console import RichConsole, Style


def where() -> None:
    """Show the data home `rgpt` will use and how it was found."""
    console = RichConsole()
    info = detect_home_info()
    if isinstance(info, Err):
        console.error(info.error.message)
        console.print(f"hint: pass --home <path> or set {HOME_ENV_VAR}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    home = info.value.home
    console.print(f"home: {home.root}")
    console.print(f"source: {info.value.source}")
    console.print(f"config: {home.config_path if home.config_path.exists() else 'defaults'}")
