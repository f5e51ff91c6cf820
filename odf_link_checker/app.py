"""
Application information.

Name, version and homepage are combined into the User-Agent header sent
with every request: Wikipedia blocks requests using default agents.
"""

APP_NAME = "ChkODF"
APP_CLI = "odf-link-checker"
APP_HOME = "https://github.com/fmjrey/chkodf"
MAJOR_VERSION = 0
MINOR_VERSION = 1
VERSION_STRING = f"{MAJOR_VERSION}.{MINOR_VERSION}.0"

USER_AGENT = f"{APP_NAME}/{MAJOR_VERSION}.{MINOR_VERSION} ({APP_HOME})"
DEFAULT_HEADERS = {
    'User-Agent': USER_AGENT,
}


def greet(username: str = None, verbose: bool = True) -> str:
    """Return (and optionally print) the startup greeting."""
    msg = f"{APP_NAME} - version {VERSION_STRING}"
    if username:
        msg += f", run by {username}"
    msg += f"\nUser-Agent: {USER_AGENT}"
    if verbose:
        print(msg)
    return msg
