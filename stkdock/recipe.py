"""SuperTuxKart server recipe: the ordered shell commands sent to the node."""

import os

import yaml

from stkdock.errors import ConfigError

STK_CODE_REPO = "https://github.com/supertuxkart/stk-code"
STK_ASSETS_REPO = "https://svn.code.sf.net/p/supertuxkart/code/stk-assets"
SERVER_CONFIG_URL = (
    "https://gist.githubusercontent.com/jbpratt/e31529a43e274cb5b1af3234169a98c4"
    "/raw/bc9cb9d743be44b748aeaf0cf89ed915751669d1/stk-conf"
)
SERVER_CONFIG_PATH = "$HOME/.config/supertuxkart/config-0.10/server_config.xml"
SERVER_PORT = 2759

BUILD_PACKAGES = [
    "build-essential",
    "subversion",
    "cmake",
    "libbluetooth-dev",
    "libsdl2-dev",
    "libcurl4-openssl-dev",
    "libenet-dev",
    "libfreetype6-dev",
    "libharfbuzz-dev",
    "libjpeg-dev",
    "libogg-dev",
    "libopenal-dev",
    "libpng-dev",
    "libssl-dev",
    "libvorbis-dev",
    "nettle-dev",
    "pkg-config",
    "zlib1g-dev",
]


def build_commands(username, password):
    """Return the built-in recipe for a server-only SuperTuxKart build.

    Lines run in one shell, so ``cd`` carries over to later lines.
    """
    return [
        ["sudo", "apt-get", "-y", "update"],
        ["sudo", "apt-get", "-y", "upgrade"],
        ["sudo", "apt-get", "-y", "install", *BUILD_PACKAGES],
        ["mkdir", "stk"],
        ["cd", "stk"],
        ["git", "clone", STK_CODE_REPO, "stk-code"],
        ["svn", "co", STK_ASSETS_REPO, "stk-assets"],
        ["cd", "stk-code"],
        ["mkdir", "cmake_build"],
        ["cd", "cmake_build"],
        ["cmake", "..", "-DSERVER_ONLY=ON"],
        ["sudo", "make", "install"],
        ["supertuxkart", "--init-user", f"--login={username}", f"--password={password}"],
        ["wget", SERVER_CONFIG_URL, "-O", SERVER_CONFIG_PATH],
        ["sudo", "ufw", "allow", str(SERVER_PORT)],
    ]


def load_commands_file(path, username, password):
    """Load a recipe from a YAML list of token lists.

    Tokens may reference ``{stk_username}`` and ``{stk_password}``; any other
    text, braces included, is kept verbatim.
    """
    path = os.path.expanduser(path)
    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read commands file '{path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing commands file '{path}': {e}") from e

    if not isinstance(raw, list) or not raw:
        raise ConfigError(f"Commands file '{path}' must contain a non-empty list of commands")

    commands = []
    for i, cmd in enumerate(raw):
        if not isinstance(cmd, list) or not cmd:
            raise ConfigError(f"Commands file '{path}': entry {i} must be a non-empty list of tokens")
        commands.append([_substitute(str(token), username, password) for token in cmd])
    return commands


def _substitute(token, username, password):
    # only the two named placeholders; other braces are shell syntax
    return token.replace("{stk_username}", username).replace("{stk_password}", password)
