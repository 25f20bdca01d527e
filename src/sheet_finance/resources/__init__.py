"""Files shipped with the package."""

from importlib.resources import files

APPS_SCRIPT_NAME = "apps_script.gs"


def load_apps_script() -> str:
    """Text of the spreadsheet script that serves read-write mode.

    Deployed as a web app, it answers GET with every row as JSON and POST
    with add or soft-delete actions.
    """
    return files(__name__).joinpath(APPS_SCRIPT_NAME).read_text(encoding="utf-8")
